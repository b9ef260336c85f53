# backend/models/sale.py
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship
from database import Base

# Binding sale; created once, never updated
class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    total = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(50), nullable=False)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    seller = relationship("User")
    lines = relationship(
        "SaleLine",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleLine.id",
    )


class SaleLine(Base):
    __tablename__ = "sale_lines"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)
    # Price read under the row lock at commit time
    unit_price = Column(Numeric(12, 2), nullable=False)

    sale = relationship("Sale", back_populates="lines")
    product = relationship("Product")
