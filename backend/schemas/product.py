# backend/schemas/product.py
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Trims codes; a blank barcode means "no barcode"
class CodeFieldsMixin(BaseModel):
    @field_validator("code", mode="before", check_fields=False)
    @classmethod
    def _strip_code(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("barcode", mode="before", check_fields=False)
    @classmethod
    def _blank_barcode(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value


# Shared base attributes for product entities
class ProductBase(CodeFieldsMixin, ORMBase):
    code: str = Field(min_length=1, max_length=64)
    barcode: Optional[str] = Field(default=None, max_length=64)
    description: str = Field(min_length=1, max_length=255)
    location: Optional[str] = None
    stock_max: int = Field(default=0, ge=0)
    stock_min: int = Field(default=0, ge=0)
    supplier_id: Optional[int] = None
    category_id: Optional[int] = None
    image: Optional[str] = None


# Schema for creating a new product; sale_price is derived from the margin ranges when omitted
class ProductCreate(ProductBase):
    stock_qty: int = Field(default=0, ge=0)
    purchase_price: Decimal = Field(ge=0)
    sale_price: Optional[Decimal] = Field(default=None, ge=0)
    active: bool = True


# Schema for partial product updates
class ProductUpdate(CodeFieldsMixin, ORMBase):
    """Schema for PATCH requests - all fields optional. Stock changes go through restock or sales."""
    code: Optional[str] = Field(None, min_length=1, max_length=64)
    barcode: Optional[str] = Field(None, max_length=64)
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = None
    stock_max: Optional[int] = Field(None, ge=0)
    stock_min: Optional[int] = Field(None, ge=0)
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    supplier_id: Optional[int] = None
    category_id: Optional[int] = None
    active: Optional[bool] = None
    image: Optional[str] = None


# Full product representation including ID
class ProductOut(ProductBase):
    id: int
    stock_qty: int
    purchase_price: Decimal
    sale_price: Decimal
    active: bool


class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
