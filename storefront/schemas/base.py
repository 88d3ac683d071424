"""
Base schemas with common functionality.
"""
from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema for all request and response bodies; reads straight from ORM rows"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True
    )
