from datetime import datetime
from typing import Optional

from storefront.schemas.base import BaseSchema


class RestockSubscriptionCreate(BaseSchema):
    product_id: int


class RestockSubscriptionRead(BaseSchema):
    id: int
    product_id: int
    user_id: int
    notified: bool
    created_at: Optional[datetime] = None
