# backend/routes/margin_ranges.py
from decimal import Decimal
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_identity
from utils.permissions import Identity, require_role
from schemas.margin_range import MarginRangeIn, MarginRangeOut, SalePriceQuote
from services import margin_ranges as margin_service

router = APIRouter(prefix="/margin-ranges", tags=["Margin ranges"])


@router.get("", response_model=List[MarginRangeOut])
def list_margin_ranges(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    require_role(identity)
    return margin_service.list_margin_ranges(db)


# Preview the sale price the catalog would derive for a purchase price
@router.get("/resolve", response_model=SalePriceQuote)
def resolve_sale_price(
    purchase_price: Decimal = Query(..., ge=0),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    require_role(identity)
    sale_price = margin_service.resolve_sale_price(db, purchase_price)
    return SalePriceQuote(purchase_price=purchase_price, sale_price=sale_price)


@router.post("", response_model=MarginRangeOut, status_code=201)
def create_margin_range(
    payload: MarginRangeIn,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return margin_service.create_margin_range(db, identity, payload)


@router.put("/{range_id}", response_model=MarginRangeOut)
def update_margin_range(
    range_id: int,
    payload: MarginRangeIn,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return margin_service.update_margin_range(db, identity, range_id, payload)


@router.delete("/{range_id}")
def delete_margin_range(range_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    margin_service.delete_margin_range(db, identity, range_id)
    return {"ok": True}
