# backend/schemas/quotation.py
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional


# Requested product; quantity defaults to 1 and is clamped up to 1
class QuotationItemIn(BaseModel):
    product_id: int
    quantity: int = 1

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value):
        if value is None or value == "":
            return 1
        try:
            quantity = int(Decimal(str(value).strip()))
        except (InvalidOperation, TypeError, ValueError, OverflowError):
            raise ValueError("quantity must be a number")
        return max(1, quantity)


class QuotationCreate(BaseModel):
    client: Optional[str] = None
    payment_method: Optional[str] = None
    items: List[QuotationItemIn] = Field(default_factory=list)


# Priced line computed from the catalog at calculation time
class OrderLine(BaseModel):
    product_id: int
    description: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class OrderCalculation(BaseModel):
    lines: List[OrderLine]
    total: Decimal


class QuotationLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: Optional[int] = None
    description: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    # Current catalog stock, informational only
    stock_qty: Optional[int] = None


class QuotationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client: Optional[str] = None
    payment_method: Optional[str] = None
    total: Decimal
    seller_id: int
    seller_name: Optional[str] = None
    created_at: Optional[datetime] = None


class QuotationOut(QuotationSummary):
    lines: List[QuotationLineOut]
