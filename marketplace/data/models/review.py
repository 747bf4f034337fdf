from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Text, UniqueConstraint

from marketplace.data.database import Base

REVIEW_TYPES = (
    "SERVICE_PROVIDER",
    "CUSTOMER",
    "DRIVER",
    "MOVER",
    "EMERGENCY_RESPONDER",
    "BUSINESS",
)


class ReviewModel(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    giver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    business_id = Column(Integer, ForeignKey("stores.id"), nullable=True, index=True)
    booking_id = Column(Integer, nullable=True)

    type = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)

    service_rating = Column(Integer, nullable=True)
    timeliness_rating = Column(Integer, nullable=True)
    cleanliness_rating = Column(Integer, nullable=True)
    communication_rating = Column(Integer, nullable=True)

    helpful_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    #jedna recenzja na (giver, booking); NULL booking nie koliduje
    __table_args__ = (UniqueConstraint("giver_id", "booking_id", name="u_giver_booking"),)


class ReviewVoteModel(Base):
    __tablename__ = "review_votes"

    id = Column(Integer, primary_key=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    __table_args__ = (UniqueConstraint("review_id", "user_id", name="u_review_vote"),)
