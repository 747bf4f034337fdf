from sqlalchemy import Column, Integer, ForeignKey, String, Float

from marketplace.data.database import Base


class StoreModel(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    #agregat liczony zawsze od nowa z recenzji, None = brak ocen
    rating = Column(Float, nullable=True)
    total_reviews = Column(Integer, nullable=False, default=0)
