from decimal import Decimal

import pytest

from models.log import Log
from models.product import Product
import services.restock as restock_service
from services.restock import restock
from services.sales import lock_products
from utils.errors import AuthError, ConflictError, NotFoundError, ValidationError

from conftest import read_product, stock_of


def test_restock_adds_to_current_stock(db_session, admin, make_product):
    a = make_product("A", stock_qty=3)

    result = restock(db_session, admin, {"entries": [{"product_id": a, "quantity_delta": 5}]})

    assert result.updated == 1
    assert result.items[0].stock_qty == 8
    assert stock_of(db_session, a) == 8


def test_same_batch_twice_adds_twice(db_session, admin, make_product):
    a = make_product("A", stock_qty=0)
    batch = {"entries": [{"product_id": a, "quantity_delta": 5}]}

    restock(db_session, admin, batch)
    restock(db_session, admin, batch)

    assert stock_of(db_session, a) == 10


def test_repeated_product_in_one_batch_accumulates(db_session, admin, make_product):
    a = make_product("A", stock_qty=1)
    b = make_product("B", stock_qty=0)

    result = restock(db_session, admin, {"entries": [
        {"product_id": b, "quantity_delta": 2},
        {"product_id": a, "quantity_delta": 4},
        {"product_id": a, "quantity_delta": 6},
    ]})

    assert result.updated == 2
    assert [(item.id, item.stock_qty) for item in result.items] == [(a, 11), (b, 2)]


def test_price_overwrites_are_applied(db_session, admin, make_product):
    a = make_product("A", stock_qty=1, purchase_price="10.00", sale_price="20.00")
    b = make_product("B", stock_qty=1, purchase_price="5.00", sale_price="6.00")

    restock(db_session, admin, {"entries": [
        {"product_id": a, "quantity_delta": 1, "new_purchase_price": "12.345", "new_sale_price": "24"},
        {"product_id": b, "quantity_delta": 1},
    ]})

    row_a = read_product(db_session, a)
    assert row_a.purchase_price == Decimal("12.35")
    assert row_a.sale_price == Decimal("24.00")
    row_b = read_product(db_session, b)
    assert row_b.purchase_price == Decimal("5.00")
    assert row_b.sale_price == Decimal("6.00")


def test_invalid_entry_rejects_whole_batch(db_session, admin, make_product):
    ids = [make_product(code, stock_qty=4) for code in ("A", "B", "C")]

    with pytest.raises(ValidationError):
        restock(db_session, admin, {"entries": [
            {"product_id": ids[0], "quantity_delta": 5},
            {"product_id": ids[1], "quantity_delta": -1},
            {"product_id": ids[2], "quantity_delta": 5},
        ]})

    assert [stock_of(db_session, pid) for pid in ids] == [4, 4, 4]


@pytest.mark.parametrize("payload", [
    {"entries": []},
    {},
    {"entries": [{"product_id": 1, "quantity_delta": 0}]},
    {"entries": [{"product_id": 1, "quantity_delta": 1, "new_sale_price": "-3"}]},
])
def test_malformed_batches(db_session, admin, make_product, payload):
    make_product("A", stock_qty=4)
    with pytest.raises(ValidationError):
        restock(db_session, admin, payload)
    assert stock_of(db_session, 1) == 4


def test_unknown_product_rejects_whole_batch(db_session, admin, make_product):
    a = make_product("A", stock_qty=4)

    with pytest.raises(NotFoundError) as exc:
        restock(db_session, admin, {"entries": [
            {"product_id": a, "quantity_delta": 5},
            {"product_id": 999, "quantity_delta": 5},
        ]})

    assert exc.value.context == {"product_id": 999}
    assert stock_of(db_session, a) == 4
    assert db_session.query(Log).count() == 0


def test_inactive_product_rejects_whole_batch(db_session, admin, make_product):
    a = make_product("A", stock_qty=4)
    b = make_product("B", stock_qty=4, active=False)

    with pytest.raises(ConflictError):
        restock(db_session, admin, {"entries": [
            {"product_id": a, "quantity_delta": 5},
            {"product_id": b, "quantity_delta": 5},
        ]})

    assert stock_of(db_session, a) == 4
    assert stock_of(db_session, b) == 4


def test_restock_is_admin_only(db_session, seller, make_product):
    a = make_product("A", stock_qty=4)

    with pytest.raises(AuthError) as exc:
        restock(db_session, seller, {"entries": [{"product_id": a, "quantity_delta": 5}]})

    assert exc.value.status_code == 403
    assert stock_of(db_session, a) == 4


def test_restock_writes_audit_entry(db_session, admin, make_product):
    a = make_product("A", stock_qty=0)

    restock(db_session, admin, {"entries": [{"product_id": a, "quantity_delta": 2}]})

    entry = db_session.query(Log).filter(Log.action == "STOCK_RESTOCK").one()
    assert entry.user_id == 1
    assert entry.meta["count"] == 1


def test_products_are_locked_in_ascending_order_before_writing(db_session, admin, make_product, monkeypatch):
    a = make_product("A", stock_qty=0)
    b = make_product("B", stock_qty=0)
    calls = []

    def recording_lock(session, product_ids):
        calls.append((list(product_ids), stock_of_locked(session, product_ids)))
        return lock_products(session, product_ids)

    def stock_of_locked(session, product_ids):
        return [session.query(Product.stock_qty).filter(Product.id == pid).scalar() for pid in product_ids]

    monkeypatch.setattr(restock_service, "lock_products", recording_lock)

    restock(db_session, admin, {"entries": [
        {"product_id": b, "quantity_delta": 1},
        {"product_id": a, "quantity_delta": 2},
    ]})

    # one locking pass, ascending ids, taken while nothing had been written yet
    assert calls == [([a, b], [0, 0])]
    assert stock_of(db_session, a) == 2


def test_deactivated_product_is_seen_by_restock(db_session, session_factory, admin, make_product):
    a = make_product("A", stock_qty=1)

    other = session_factory()
    other.query(Product).filter(Product.id == a).update({"active": False})
    other.commit()
    other.close()

    with pytest.raises(ConflictError):
        restock(db_session, admin, {"entries": [{"product_id": a, "quantity_delta": 5}]})
    assert stock_of(db_session, a) == 1
