# backend/routes/stock.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_identity
from utils.permissions import Identity
import schemas.stock as stock_schemas
from services.restock import restock

router = APIRouter(tags=["Stock"])


# Batch delivery: all entries are applied or none
@router.post("/restock", response_model=stock_schemas.RestockResult)
def receive_restock(
    payload: stock_schemas.RestockRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return restock(db, identity, payload)
