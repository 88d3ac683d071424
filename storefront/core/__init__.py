"""
Core module exports.
"""
from .enums import (
    ProductStatus,
    OrderStatus,
    NotificationType,
    UserRole,
)

from .exceptions import (
    ErrorCode,
    BaseServiceError,
    ResourceNotFoundError,
    ForbiddenError,
    InsufficientStockError,
    DuplicateResourceError,
    InvalidOrderStatusError,
    InvalidStateTransitionError,
    ValidationError,
)

from .utils import (
    model_to_schema,
    models_to_schemas,
    to_money,
)
