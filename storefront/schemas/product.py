"""
Schemas for product endpoints.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from storefront.core.enums import ProductStatus
from storefront.schemas.base import BaseSchema


class ProductRead(BaseSchema):
    id: int
    seller_id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    sales_count: int
    status: ProductStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StockUpdate(BaseSchema):
    stock: int = Field(..., ge=0)


class ProductCreate(BaseSchema):
    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    stock: int = Field(0, ge=0)
    status: ProductStatus = ProductStatus.ACTIVE


class ProductUpdate(BaseSchema):
    """Details only; stock moves through the stock endpoint."""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    status: Optional[ProductStatus] = None
