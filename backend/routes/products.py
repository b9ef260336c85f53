# backend/routes/products.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_identity
from utils.permissions import Identity, require_role
import schemas.product as product_schemas
from services import catalog

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=product_schemas.ProductListPage)
def list_products(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    require_role(identity)
    items = catalog.list_products(db, active_only=active_only)
    return {"items": items, "total": len(items)}


@router.get("/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    require_role(identity)
    return catalog.get_product(db, product_id)


# sale_price is derived from the margin ranges when omitted
@router.post("", response_model=product_schemas.ProductOut, status_code=201)
def create_product(
    payload: product_schemas.ProductCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return catalog.create_product(db, identity, payload)


@router.patch("/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return catalog.update_product(db, identity, product_id, payload)


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    catalog.delete_product(db, identity, product_id)
    return {"message": "Product deleted"}
