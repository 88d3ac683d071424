"""
Service-level exceptions.

Every error raised by a service carries an ErrorCode, which fixes the HTTP
status and the stable machine-readable code rendered by the global exception
handler in storefront.main.
"""
from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    # 400
    VALIDATION_FAILED = (400, "Input validation failed")

    # 403
    FORBIDDEN = (403, "Access is forbidden")
    ACCESS_DENIED = (403, "You do not have access to this resource")

    # 404
    RESOURCE_NOT_FOUND = (404, "Resource not found")
    USER_NOT_FOUND = (404, "User not found")
    SELLER_NOT_FOUND = (404, "Seller not found")
    PRODUCT_NOT_FOUND = (404, "Product not found")
    ORDER_NOT_FOUND = (404, "Order not found")
    SUBSCRIPTION_NOT_FOUND = (404, "Restock subscription not found")
    NOTIFICATION_NOT_FOUND = (404, "Notification not found")

    # 409
    DUPLICATE_RESOURCE = (409, "Duplicate resource")
    DUPLICATE_BUSINESS_NUMBER = (409, "Business number is already registered")
    DUPLICATE_RESTOCK_SUBSCRIPTION = (409, "Already subscribed to restock alerts for this product")
    INSUFFICIENT_STOCK = (409, "Insufficient stock")

    # 422
    INVALID_ORDER_STATUS = (422, "Order status does not allow this operation")
    INVALID_STATE_TRANSITION = (422, "Invalid state transition")
    PRODUCT_IN_STOCK = (422, "Product is currently in stock")

    # 500
    INTERNAL_SERVER_ERROR = (500, "Internal server error")
    DATABASE_ERROR = (500, "Database error")

    def __init__(self, status_code: int, default_message: str):
        self.status_code = status_code
        self.default_message = default_message

    @property
    def code(self) -> str:
        return self.name


class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    default_code = ErrorCode.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Any] = None,
    ):
        self.error_code = error_code or self.default_code
        self.message = message or self.error_code.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.error_code.status_code


class ResourceNotFoundError(BaseServiceError):
    """Raised when a user, seller, product, order or subscription is absent."""
    default_code = ErrorCode.RESOURCE_NOT_FOUND


class ForbiddenError(BaseServiceError):
    """Raised when acting on an entity owned by someone else."""
    default_code = ErrorCode.ACCESS_DENIED


class InsufficientStockError(BaseServiceError):
    """Raised when an order line asks for more than the product has."""
    default_code = ErrorCode.INSUFFICIENT_STOCK


class DuplicateResourceError(BaseServiceError):
    default_code = ErrorCode.DUPLICATE_RESOURCE


class InvalidOrderStatusError(BaseServiceError):
    """Raised when the order status does not allow update or cancellation."""
    default_code = ErrorCode.INVALID_ORDER_STATUS


class InvalidStateTransitionError(BaseServiceError):
    default_code = ErrorCode.INVALID_STATE_TRANSITION


class ValidationError(BaseServiceError):
    """Raised when data validation fails."""
    default_code = ErrorCode.VALIDATION_FAILED
