"""
Utility functions for the application.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Type, TypeVar, List, Any, Union

from pydantic import BaseModel

T = TypeVar('T', bound=BaseModel)

MONEY_QUANTUM = Decimal("0.01")


async def model_to_schema(db_model: Any, schema_class: Type[T]) -> T:
    """
    Convert a SQLAlchemy model instance to a Pydantic schema instance.

    Args:
        db_model: SQLAlchemy model instance
        schema_class: Pydantic schema class

    Returns:
        Instance of the Pydantic schema
    """
    return schema_class.model_validate(db_model, from_attributes=True)


async def models_to_schemas(db_models: List[Any], schema_class: Type[T]) -> List[T]:
    """Convert a list of SQLAlchemy model instances to Pydantic schema instances."""
    return [await model_to_schema(model, schema_class) for model in db_models]


def to_money(value: Union[Decimal, int, str, None]) -> Decimal:
    """Quantize a monetary value to two fractional digits.

    Floats are rejected: prices and totals must never pass through binary
    floating point.
    """
    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        raise TypeError("Monetary values must be Decimal, int or str, not float")
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the TIMESTAMP(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
