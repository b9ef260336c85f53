# backend/routes/sales.py
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_identity
from utils.permissions import Identity
from schemas.sale import SaleCreate, SaleDetail, SaleReceipt, SaleSummary
from services import sales as sale_service

router = APIRouter(prefix="/sales", tags=["Sales"])


# Commit a binding sale; prices come from the catalog, never from the request
@router.post("", response_model=SaleReceipt, status_code=201)
def commit_sale(
    payload: SaleCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return sale_service.commit_sale(db, identity, payload)


@router.get("", response_model=List[SaleSummary])
def list_sales(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return sale_service.list_sales(db, identity)


@router.get("/{sale_id}", response_model=SaleDetail)
def get_sale(sale_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return sale_service.get_sale(db, identity, sale_id)


# Administrative removal; stock is not restored
@router.delete("/{sale_id}")
def delete_sale(sale_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    sale_service.delete_sale(db, identity, sale_id)
    return {"ok": True}
