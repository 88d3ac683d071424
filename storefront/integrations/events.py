"""
Purpose: Defines the data structure for stock change facts.
Contents:
ProductRestockedEvent (Pydantic Model): emitted for every committed stock
mutation with the stock level before and after. The restock pipeline only acts
on zero-crossings (0 before, positive after) and ignores everything else.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from storefront.core.utils import utc_now
from storefront.models.product import StockChange


class ProductRestockedEvent(BaseModel):
    product_id: int
    previous_stock: int
    current_stock: int
    timestamp: datetime = Field(default_factory=utc_now)

    @property
    def is_restock(self) -> bool:
        return not (self.previous_stock > 0 or self.current_stock <= 0)

    @classmethod
    def from_change(cls, change: StockChange) -> "ProductRestockedEvent":
        return cls(
            product_id=change.product_id,
            previous_stock=change.previous_stock,
            current_stock=change.current_stock,
        )
