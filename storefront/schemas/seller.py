from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from storefront.schemas.base import BaseSchema


class SellerCreate(BaseSchema):
    business_name: str = Field(..., min_length=1, max_length=255)
    business_number: str = Field(..., min_length=1, max_length=20)
    min_stock_threshold: Optional[int] = Field(None, ge=0)


class SellerRead(BaseSchema):
    id: int
    user_id: int
    business_name: str
    business_number: str
    min_stock_threshold: int
    created_at: Optional[datetime] = None


class RankingEntry(BaseSchema):
    product_id: int
    units_sold: int
    revenue: Decimal


class SellerRanking(BaseSchema):
    seller_id: int
    entries: List[RankingEntry] = []


class SellerUpdate(BaseSchema):
    """Partial profile update; omitted fields keep their value."""
    business_name: Optional[str] = Field(None, min_length=1, max_length=255)
    business_number: Optional[str] = Field(None, min_length=1, max_length=20)
    min_stock_threshold: Optional[int] = Field(None, ge=0)
