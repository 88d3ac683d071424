"""
Shared enums and constants used across the application.
"""

from enum import Enum


class UserRole(str, Enum):
    USER = "USER"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


class ProductStatus(str, Enum):
    """Product status values used in both models and schemas"""
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    SOLD_OUT = "SOLD_OUT"
    INACTIVE = "INACTIVE"


class OrderStatus(str, Enum):
    """Order lifecycle. Moves forward only; CANCELLED only from PENDING or PAID."""
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_modifiable(self) -> bool:
        # Shipping details and cancellation are only allowed before dispatch
        return self in (OrderStatus.PENDING, OrderStatus.PAID)

    def can_transition_to(self, target: "OrderStatus") -> bool:
        if target == OrderStatus.CANCELLED:
            return self.is_modifiable
        return (self, target) in _FORWARD_TRANSITIONS


_FORWARD_TRANSITIONS = {
    (OrderStatus.PENDING, OrderStatus.PAID),
    (OrderStatus.PAID, OrderStatus.SHIPPED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
}


class NotificationType(str, Enum):
    RESTOCK = "RESTOCK"
    STOCK_ALERT = "STOCK_ALERT"
    ORDER = "ORDER"
    SYSTEM = "SYSTEM"
