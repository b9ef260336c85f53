import pytest
from fastapi.testclient import TestClient
from jose import jwt

from config import settings
from database import get_db
from main import create_app
from utils.tokenJWT import decode_identity

from conftest import stock_of


def _token(user_id, role):
    return jwt.encode({"sub": str(user_id), "role": role}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


@pytest.fixture
def client(session_factory, users):
    app = create_app(create_tables=False)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seller_headers():
    return {"Authorization": f"Bearer {_token(2, 'sales')}"}


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {_token(1, 'admin')}"}


def test_missing_token_is_401(client):
    response = client.get("/quotations")
    assert response.status_code == 401
    assert response.json()["kind"] == "auth"


def test_bad_token_is_401(client):
    response = client.get("/quotations", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_sale_round_trip(client, seller_headers, db_session, make_product):
    product_id = make_product("A", stock_qty=5, sale_price="4.50")

    response = client.post("/sales", headers=seller_headers, json={
        "payment_method": "cash",
        "items": [{"product_id": product_id, "quantity": 2, "unit_price": "0.01"}],
    })

    assert response.status_code == 201
    body = response.json()
    assert body["total"] == "9.00"
    assert body["lines"][0]["subtotal"] == "9.00"
    assert stock_of(db_session, product_id) == 3

    detail = client.get(f"/sales/{body['sale_id']}", headers=seller_headers)
    assert detail.status_code == 200
    assert detail.json()["seller_name"] == "Sergio Seller"


def test_insufficient_stock_error_shape(client, seller_headers, db_session, make_product):
    product_id = make_product("A", stock_qty=1)

    response = client.post("/sales", headers=seller_headers, json={
        "payment_method": "cash",
        "items": [{"product_id": product_id, "quantity": 3}],
    })

    assert response.status_code == 409
    assert response.json() == {
        "kind": "conflict",
        "message": 'Insufficient stock for "Product A"',
        "context": {"product_id": product_id, "available": 1, "requested": 3},
    }
    assert stock_of(db_session, product_id) == 1


def test_request_validation_uses_error_shape(client, seller_headers):
    response = client.post("/sales", headers=seller_headers, json={"payment_method": "cash", "items": []})

    assert response.status_code == 400
    body = response.json()
    assert body["kind"] == "validation"
    assert body["context"]["errors"]


def test_quotation_endpoints(client, seller_headers, make_product):
    product_id = make_product("A", stock_qty=5, sale_price="20.00")

    created = client.post("/quotations", headers=seller_headers, json={
        "client": "ACME",
        "items": [{"product_id": product_id, "quantity": 3}],
    })
    assert created.status_code == 201
    quotation_id = created.json()["id"]
    assert created.json()["total"] == "60.00"

    updated = client.put(f"/quotations/{quotation_id}", headers=seller_headers, json={
        "items": [{"product_id": product_id, "quantity": 0}],
    })
    assert updated.json()["total"] == "20.00"

    listed = client.get("/quotations", headers=seller_headers)
    assert [q["id"] for q in listed.json()] == [quotation_id]

    assert client.delete(f"/quotations/{quotation_id}", headers=seller_headers).status_code == 200
    missing = client.get(f"/quotations/{quotation_id}", headers=seller_headers)
    assert missing.status_code == 404
    assert missing.json()["kind"] == "not_found"


def test_margin_range_endpoints(client, seller_headers):
    created = client.post("/margin-ranges", headers=seller_headers, json={"min": 0, "max": 100, "percentage": 10})
    assert created.status_code == 201

    overlap = client.post("/margin-ranges", headers=seller_headers, json={"min": 100, "max": None, "percentage": 5})
    assert overlap.status_code == 409

    quote = client.get("/margin-ranges/resolve", headers=seller_headers, params={"purchase_price": "50"})
    assert quote.status_code == 200
    assert quote.json()["sale_price"] == "55.00"

    gap = client.get("/margin-ranges/resolve", headers=seller_headers, params={"purchase_price": "500"})
    assert gap.status_code == 404


def test_restock_endpoint_requires_admin(client, seller_headers, admin_headers, make_product):
    product_id = make_product("A", stock_qty=0)
    payload = {"entries": [{"product_id": product_id, "quantity_delta": 4}]}

    assert client.post("/stock/restock", headers=seller_headers, json=payload).status_code == 403

    response = client.post("/stock/restock", headers=admin_headers, json=payload)
    assert response.status_code == 200
    assert response.json()["updated"] == 1
    assert response.json()["items"][0]["stock_qty"] == 4


def test_product_endpoints(client, admin_headers, seller_headers, margin_table):
    created = client.post("/products", headers=admin_headers, json={
        "code": "NEW", "description": "New thing", "purchase_price": "10.00", "stock_qty": 0,
    })
    assert created.status_code == 201
    assert created.json()["sale_price"] == "11.00"

    listing = client.get("/products", headers=seller_headers)
    assert listing.json()["total"] == 1

    forbidden = client.post("/products", headers=seller_headers, json={
        "code": "X", "description": "X", "purchase_price": "1",
    })
    assert forbidden.status_code == 403


def test_decode_identity_reads_subject_and_role():
    identity = decode_identity(_token(7, "Sales"))
    assert identity.user_id == 7
    assert identity.role == "Sales"


def test_token_without_numeric_subject_is_rejected(client):
    token = jwt.encode({"sub": "someone", "role": "admin"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    response = client.get("/sales", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Could not validate credentials"
