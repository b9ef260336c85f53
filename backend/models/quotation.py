# backend/models/quotation.py
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship
from database import Base

# Draft, non-binding order. Never touches stock.
class Quotation(Base):
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, index=True)
    client = Column(String(200), nullable=True)
    payment_method = Column(String(50), nullable=True)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    seller = relationship("User")
    # Lines live and die with their header
    lines = relationship(
        "QuotationLine",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationLine.id",
    )


# Value snapshot of a product at the time the quotation was computed
class QuotationLine(Base):
    __tablename__ = "quotation_lines"

    id = Column(Integer, primary_key=True, index=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    description = Column(String(255), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)

    quotation = relationship("Quotation", back_populates="lines")
    product = relationship("Product")
