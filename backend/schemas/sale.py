# backend/schemas/sale.py
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional


# Requested product for a binding sale. Any price sent by the client is ignored.
class SaleItemIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    product_id: int
    quantity: int = Field(gt=0)


class SaleCreate(BaseModel):
    payment_method: str
    items: List[SaleItemIn] = Field(min_length=1)

    @field_validator("payment_method", mode="before")
    @classmethod
    def _require_payment_method(cls, value):
        if isinstance(value, str):
            value = value.strip()
        if not value:
            raise ValueError("payment method is required")
        return value


class SaleReceiptLine(BaseModel):
    product_id: Optional[int] = None
    description: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


# Returned by a successful commit, ready to print
class SaleReceipt(BaseModel):
    sale_id: int
    total: Decimal
    payment_method: str
    lines: List[SaleReceiptLine]


class SaleSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: Optional[datetime] = None
    total: Decimal
    payment_method: str
    seller_id: int
    seller_name: Optional[str] = None


class SaleDetail(SaleSummary):
    lines: List[SaleReceiptLine]
