# backend/routes/quotations.py
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_identity
from utils.permissions import Identity
from schemas.quotation import QuotationCreate, QuotationOut, QuotationSummary
from services import quotations as quotation_service

router = APIRouter(prefix="/quotations", tags=["Quotations"])


@router.post("", response_model=QuotationOut, status_code=201)
def create_quotation(
    payload: QuotationCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return quotation_service.create_quotation(db, identity, payload)


@router.get("", response_model=List[QuotationSummary])
def list_quotations(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return quotation_service.list_quotations(db, identity)


@router.get("/{quotation_id}", response_model=QuotationOut)
def get_quotation(quotation_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return quotation_service.get_quotation(db, identity, quotation_id)


# Full replacement: lines are recomputed from the payload
@router.put("/{quotation_id}", response_model=QuotationOut)
def update_quotation(
    quotation_id: int,
    payload: QuotationCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return quotation_service.update_quotation(db, identity, quotation_id, payload)


@router.delete("/{quotation_id}")
def delete_quotation(quotation_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    quotation_service.delete_quotation(db, identity, quotation_id)
    return {"ok": True}
