import os

# Keep the module-level engine off the filesystem; tests build their own
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session, sessionmaker

from database import Base, build_engine
import models  # noqa: F401
from models.margin_range import MarginRange
from models.product import Product
from models.users import User
from utils.permissions import Identity


@pytest.fixture(scope="function")
def engine(tmp_path):
    """
    Fresh SQLite file database per test.

    A file (not :memory:) so that several sessions/threads share it and the
    BEGIN IMMEDIATE locking is exercised for real.
    """
    engine = build_engine(f"sqlite:///{tmp_path / 'pos_test.db'}", lock_timeout=10)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def users(db_session):
    db_session.add_all([
        User(id=1, username="admin", full_name="Ana Admin", role="admin"),
        User(id=2, username="seller", full_name="Sergio Seller", role="sales"),
        User(id=3, username="clerk", full_name=None, role="warehouse"),
    ])
    db_session.commit()


@pytest.fixture
def admin(users):
    return Identity(user_id=1, role="admin")


@pytest.fixture
def seller(users):
    return Identity(user_id=2, role="sales")


@pytest.fixture
def clerk(users):
    return Identity(user_id=3, role="warehouse")


@pytest.fixture
def make_product(db_session):
    def _make(code, stock_qty=10, sale_price="20.00", purchase_price="10.00", active=True, description=None, barcode=None):
        product = Product(
            code=code,
            barcode=barcode,
            description=description or f"Product {code}",
            stock_max=100,
            stock_min=0,
            stock_qty=stock_qty,
            purchase_price=Decimal(purchase_price),
            sale_price=Decimal(sale_price),
            active=active,
        )
        db_session.add(product)
        db_session.flush()
        product_id = product.id
        db_session.commit()
        return product_id

    return _make


@pytest.fixture
def margin_table(db_session):
    """[0, 100] -> 10 %, [100.01, unbounded) -> 5 %"""
    db_session.add_all([
        MarginRange(min_value=Decimal("0"), max_value=Decimal("100"), percentage=Decimal("10")),
        MarginRange(min_value=Decimal("100.01"), max_value=None, percentage=Decimal("5")),
    ])
    db_session.commit()


def read_product(session: Session, product_id: int):
    """Fresh read that leaves no transaction (and no SQLite write lock) behind."""
    session.expire_all()
    row = session.query(Product.stock_qty, Product.sale_price, Product.purchase_price).filter(Product.id == product_id).first()
    session.rollback()
    return row


def stock_of(session: Session, product_id: int) -> int:
    return read_product(session, product_id).stock_qty
