# backend/models/users.py
from sqlalchemy import Boolean, Column, Integer, String
from database import Base

# Seller account; the core only reads it to show who created a quotation or sale
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(80), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=True)
    role = Column(String(20), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
