# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Audit trail of committed mutations: sale commits and deletions, restocks,
# quotation, margin range and product writes. Rows are staged in the same
# transaction as the change, so a rolled-back operation leaves no entry.
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    # Acting seller/admin; kept as NULL if the user row is removed
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # e.g. SALE_COMMIT, STOCK_RESTOCK, MARGIN_RANGE_UPDATE
    action = Column(String(50), index=True)
    # sales, stock, quotations, margin_ranges, products
    resource = Column(String(50), index=True)
    status = Column(String(20), index=True)

    # Affected ids and amounts (sale id and total, restock entries, changed fields)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)
