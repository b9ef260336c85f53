# backend/models/margin_range.py
from sqlalchemy import CheckConstraint, Column, Index, Integer, Numeric
from database import Base

# Purchase-price interval [min_value, max_value] (both ends inclusive) mapped
# to a markup percentage. max_value NULL is the open-ended tail range.
# Ranges never overlap; the check runs in the service inside the write transaction.
class MarginRange(Base):
    __tablename__ = "margin_ranges"

    id = Column(Integer, primary_key=True, index=True)
    min_value = Column(Numeric(12, 2), nullable=False)
    max_value = Column(Numeric(12, 2), nullable=True)
    percentage = Column(Numeric(6, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("max_value IS NULL OR max_value >= min_value", name="ck_margin_range_bounds"),
        CheckConstraint("percentage >= 0", name="ck_margin_range_pct_nonneg"),
        Index("ix_margin_ranges_bounds", "min_value", "max_value"),
    )
