# backend/models/product.py
from sqlalchemy import Boolean, CheckConstraint, Column, Index, Integer, Numeric, String, text
from database import Base

# Model Product
# Catalog entry sold at the point of sale. stock_qty is only ever changed
# through relative UPDATEs (sales debit, restocks credit) and may never go
# below zero. code is unique among active products, barcode is unique when set.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), nullable=False, index=True)
    barcode = Column(String(64), unique=True, nullable=True)

    description = Column(String(255), nullable=False)
    location = Column(String(120), nullable=True)

    # Stock levels.
    stock_max = Column(Integer, CheckConstraint("stock_max >= 0"), nullable=False, default=0)
    stock_min = Column(Integer, CheckConstraint("stock_min >= 0"), nullable=False, default=0)
    stock_qty = Column(Integer, CheckConstraint("stock_qty >= 0", name="ck_products_stock_nonneg"), nullable=False, default=0)

    # Prices.
    purchase_price = Column(Numeric(12, 2), CheckConstraint("purchase_price >= 0"), nullable=False, default=0)
    sale_price = Column(Numeric(12, 2), CheckConstraint("sale_price >= 0"), nullable=False, default=0)

    # Reference data is owned elsewhere; plain ids only.
    supplier_id = Column(Integer, nullable=True)
    category_id = Column(Integer, nullable=True)

    active = Column(Boolean, nullable=False, default=True)

    # Optional image path.
    image = Column(String, nullable=True)

    # Code is unique among active rows only
    __table_args__ = (
        Index(
            "uq_products_code_active", "code", unique=True,
            postgresql_where=text("active"), sqlite_where=text("active"),
        ),
    )
