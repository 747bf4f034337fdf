from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, Float, DateTime, UniqueConstraint

from marketplace.data.database import Base


class UserRatingModel(Base):
    __tablename__ = "user_ratings"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    review_type = Column(String, nullable=False)

    rating = Column(Float, nullable=True)
    total_reviews = Column(Integer, nullable=False, default=0)

    #srednie pod-ocen liczone tylko z recenzji ktore je podaly
    service_rating = Column(Float, nullable=True)
    timeliness_rating = Column(Float, nullable=True)
    cleanliness_rating = Column(Float, nullable=True)
    communication_rating = Column(Float, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (UniqueConstraint("user_id", "review_type", name="u_user_review_type"),)
