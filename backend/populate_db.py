import os
import sys
import logging
from decimal import Decimal

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

# Database models and setup
from database import SessionLocal, init_db
from models.margin_range import MarginRange
from models.product import Product
from models.users import User
from services.margin_ranges import resolve_sale_price

logger = logging.getLogger(__name__)

# Configuration
SEED_USERS = [
    {"username": "admin", "full_name": "Store Admin", "role": "admin"},
    {"username": "seller", "full_name": "Counter Seller", "role": "sales"},
]
SEED_RANGES = [
    (Decimal("0"), Decimal("100"), Decimal("30")),
    (Decimal("100.01"), Decimal("1000"), Decimal("20")),
    (Decimal("1000.01"), None, Decimal("10")),
]
SEED_PRODUCTS = [
    # code, description, location, purchase price, stock
    ("P-001", "Cuaderno A4 100 hojas", "A1", Decimal("45.00"), 120),
    ("P-002", "Bolígrafo azul", "A2", Decimal("8.50"), 500),
    ("P-003", "Calculadora científica", "B1", Decimal("320.00"), 15),
    ("P-004", "Mochila escolar", "C3", Decimal("1250.00"), 6),
]
# End Configuration


def populate():
    init_db()
    session = SessionLocal()
    try:
        if session.query(User).count() == 0:
            session.add_all([User(**u) for u in SEED_USERS])

        if session.query(MarginRange).count() == 0:
            session.add_all([
                MarginRange(min_value=lo, max_value=hi, percentage=pct) for lo, hi, pct in SEED_RANGES
            ])
            session.flush()

        for code, description, location, purchase_price, stock in SEED_PRODUCTS:
            if session.query(Product).filter(Product.code == code).first():
                continue
            session.add(Product(
                code=code,
                description=description,
                location=location,
                stock_max=stock * 2,
                stock_min=max(1, stock // 10),
                stock_qty=stock,
                purchase_price=purchase_price,
                sale_price=resolve_sale_price(session, purchase_price),
                active=True,
            ))

        session.commit()
        logger.info("Seed data loaded")
    except Exception:
        session.rollback()
        logger.exception("Seeding failed")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    populate()
