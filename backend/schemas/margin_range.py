# backend/schemas/margin_range.py
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional

# Spellings accepted for the open-ended upper bound
UNBOUNDED_TOKENS = {"infinity", "inf", "+inf", "unbounded"}


# Input for creating or replacing a margin range
class MarginRangeIn(BaseModel):
    # Bounds are compared exactly as they are stored (NUMERIC(12, 2))
    min: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    max: Optional[Decimal] = Field(default=None, max_digits=12, decimal_places=2)
    percentage: Decimal = Field(ge=0, max_digits=6, decimal_places=2)

    @field_validator("max", mode="before")
    @classmethod
    def _unbounded_max(cls, value):
        if value is None:
            return None
        if isinstance(value, str) and value.strip().lower() in UNBOUNDED_TOKENS:
            return None
        if isinstance(value, float) and value == float("inf"):
            return None
        return value

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.max is not None and self.max < self.min:
            raise ValueError("max must be greater than or equal to min")
        return self


class MarginRangeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    min: Decimal
    # None is the open-ended tail range
    max: Optional[Decimal] = None
    percentage: Decimal


class SalePriceQuote(BaseModel):
    purchase_price: Decimal
    sale_price: Decimal
