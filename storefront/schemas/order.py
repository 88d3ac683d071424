"""
Schemas for order-related API endpoints.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from storefront.core.enums import OrderStatus
from storefront.schemas.base import BaseSchema


class OrderItemRequest(BaseSchema):
    product_id: int
    quantity: int = Field(..., ge=1)


class ShippingInfo(BaseSchema):
    recipient_name: str = Field(..., min_length=1, max_length=100)
    recipient_phone: str = Field(..., min_length=1, max_length=20)
    address: str = Field(..., min_length=1, max_length=500)


class OrderCreate(ShippingInfo):
    items: List[OrderItemRequest] = Field(..., min_length=1)
    # Accepted for forward compatibility; discounts are not applied yet
    coupon_id: Optional[int] = None


class OrderUpdate(BaseSchema):
    """Shipping fields only; unset fields are left unchanged."""
    recipient_name: Optional[str] = Field(None, min_length=1, max_length=100)
    recipient_phone: Optional[str] = Field(None, min_length=1, max_length=20)
    address: Optional[str] = Field(None, min_length=1, max_length=500)


class OrderStatusUpdate(BaseSchema):
    status: OrderStatus

    @field_validator('status')
    @classmethod
    def validate_not_cancelled(cls, v):
        if v == OrderStatus.CANCELLED:
            raise ValueError('Use the cancel endpoint to cancel an order')
        return v


class OrderItemRead(BaseSchema):
    id: int
    product_id: Optional[int] = None
    seller_id: int
    product_name: str
    price: Decimal
    quantity: int
    subtotal: Decimal


class OrderRead(BaseSchema):
    id: int
    user_id: int
    order_number: str
    status: OrderStatus
    total_amount: Decimal
    final_amount: Decimal
    recipient_name: str
    recipient_phone: str
    address: str
    items: List[OrderItemRead] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
