from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from services import catalog
from services.catalog import create_product, delete_product, get_product, list_products, update_product
from services.margin_ranges import as_money
from utils.errors import AuthError, ConflictError, NotFoundError, ValidationError


def _product(code="P-1", **overrides):
    payload = {
        "code": code,
        "description": f"Item {code}",
        "stock_max": 50,
        "stock_min": 5,
        "stock_qty": 10,
        "purchase_price": "50.00",
    }
    payload.update(overrides)
    return payload


def test_create_derives_sale_price_from_margin_ranges(db_session, admin, margin_table):
    out = create_product(db_session, admin, _product())

    assert out.sale_price == Decimal("55.00")
    assert out.purchase_price == Decimal("50.00")
    assert get_product(db_session, out.id).stock_qty == 10


def test_create_keeps_explicit_sale_price(db_session, admin, margin_table):
    out = create_product(db_session, admin, _product(sale_price="99.999"))
    assert out.sale_price == Decimal("100.00")


def test_create_without_covering_range_fails(db_session, admin):
    with pytest.raises(NotFoundError):
        create_product(db_session, admin, _product())
    assert list_products(db_session) == []


def test_create_uses_custom_pricing_strategy(db_session, admin, margin_table):
    def round_up_to_whole(price, pct):
        return as_money((price * (1 + pct / 100)).to_integral_value(rounding="ROUND_CEILING"))

    out = create_product(db_session, admin, _product(purchase_price="50.10"), strategy=round_up_to_whole)
    assert out.sale_price == Decimal("56.00")


def test_code_is_unique_among_active_products(db_session, admin, margin_table):
    create_product(db_session, admin, _product("DUP"))

    with pytest.raises(ConflictError):
        create_product(db_session, admin, _product(" DUP "))

    # an inactive copy does not collide
    create_product(db_session, admin, _product("DUP", active=False))
    assert len(list_products(db_session)) == 2
    assert len(list_products(db_session, active_only=True)) == 1


def test_reactivating_duplicate_code_is_a_conflict(db_session, admin, margin_table):
    create_product(db_session, admin, _product("DUP"))
    old = create_product(db_session, admin, _product("DUP", active=False))

    with pytest.raises(ConflictError):
        update_product(db_session, admin, old.id, {"active": True})


def test_barcode_is_globally_unique(db_session, admin, margin_table):
    create_product(db_session, admin, _product("A", barcode="7501234567890", active=False))

    with pytest.raises(ConflictError) as exc:
        create_product(db_session, admin, _product("B", barcode="7501234567890"))
    assert exc.value.context == {"barcode": "7501234567890"}

    # blank barcodes mean "none" and never collide
    create_product(db_session, admin, _product("C", barcode="  "))
    create_product(db_session, admin, _product("D", barcode=""))


def test_update_rederives_sale_price(db_session, admin, margin_table):
    out = create_product(db_session, admin, _product())

    updated = update_product(db_session, admin, out.id, {"purchase_price": "200"})

    assert updated.purchase_price == Decimal("200.00")
    assert updated.sale_price == Decimal("210.00")


def test_update_ignores_nulls_on_required_fields(db_session, admin, margin_table):
    out = create_product(db_session, admin, _product(location="A1"))

    updated = update_product(db_session, admin, out.id, {"code": None, "description": None, "location": None})

    assert updated.code == "P-1"
    assert updated.description == "Item P-1"
    assert updated.location is None


def test_update_cannot_touch_stock(db_session, admin, margin_table):
    out = create_product(db_session, admin, _product())

    updated = update_product(db_session, admin, out.id, {"stock_qty": 999, "stock_max": 80})

    assert updated.stock_qty == 10
    assert updated.stock_max == 80


def test_update_unknown_product(db_session, admin):
    with pytest.raises(NotFoundError):
        update_product(db_session, admin, 12345, {"description": "x"})


def test_delete_requires_empty_stock(db_session, admin, make_product):
    stocked = make_product("S", stock_qty=1)
    empty = make_product("E", stock_qty=0)

    with pytest.raises(ConflictError):
        delete_product(db_session, admin, stocked)
    delete_product(db_session, admin, empty)

    assert [p.id for p in list_products(db_session)] == [stocked]
    with pytest.raises(NotFoundError):
        get_product(db_session, empty)


def test_catalog_writes_are_admin_only(db_session, seller, margin_table):
    with pytest.raises(AuthError):
        create_product(db_session, seller, _product())


def test_invalid_product_payload(db_session, admin, margin_table):
    with pytest.raises(ValidationError):
        create_product(db_session, admin, _product(purchase_price="-1"))
    with pytest.raises(ValidationError):
        create_product(db_session, admin, _product(code="   "))


def test_database_rejects_duplicate_active_code(db_session, make_product):
    make_product("DUP")
    make_product("DUP", active=False)

    with pytest.raises(IntegrityError):
        make_product("DUP")
    db_session.rollback()


def test_unique_index_violation_is_reported_as_conflict(db_session, admin, margin_table, monkeypatch):
    # Simulate a concurrent writer that committed after the uniqueness pre-check
    monkeypatch.setattr(catalog, "_ensure_unique", lambda *args, **kwargs: None)
    create_product(db_session, admin, _product("RACE", barcode="111"))

    with pytest.raises(ConflictError) as code_clash:
        create_product(db_session, admin, _product("RACE"))
    assert code_clash.value.context == {"code": "RACE", "barcode": None}

    with pytest.raises(ConflictError):
        create_product(db_session, admin, _product("OTHER", barcode="111"))

    assert len(list_products(db_session)) == 1
