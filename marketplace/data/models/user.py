from sqlalchemy import Column, Integer, String
from marketplace.data.database import Base

ADMIN_ROLES = ("SUPER_ADMIN", "CITY_ADMIN")


class UserModel(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="CUSTOMER")
