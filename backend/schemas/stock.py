# backend/schemas/stock.py
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


# Single entry of a restock batch
class RestockEntry(BaseModel):
    product_id: int
    quantity_delta: int = Field(gt=0)
    new_purchase_price: Optional[Decimal] = Field(default=None, ge=0)
    new_sale_price: Optional[Decimal] = Field(default=None, ge=0)


# Whole batch; applied all-or-nothing
class RestockRequest(BaseModel):
    entries: List[RestockEntry] = Field(min_length=1)


# Post-update state of a restocked product
class RestockedProduct(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    stock_qty: int
    purchase_price: Decimal
    sale_price: Decimal


class RestockResult(BaseModel):
    updated: int
    items: List[RestockedProduct]
