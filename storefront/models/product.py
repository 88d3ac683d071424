"""
Product model and the single stock mutation path.

Every operation that changes Product.stock (order placement, order
cancellation, seller stock updates) goes through apply_stock_change so that
each mutation yields a StockChange fact for the restock pipeline.
"""

from dataclasses import dataclass

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint, text, TIMESTAMP
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import relationship

from storefront.core.enums import ProductStatus
from storefront.database import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("sales_count >= 0", name="ck_products_sales_count_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    seller_id = Column(Integer, ForeignKey("sellers.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(String, nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    sales_count = Column(Integer, nullable=False, default=0)
    status = Column(ENUM(ProductStatus, name='productstatus', create_type=True), default=ProductStatus.ACTIVE, nullable=False, index=True)

    created_at = Column(
        TIMESTAMP(timezone=False),
        server_default=text("timezone('utc', now())"),
        nullable=False
    )
    updated_at = Column(
        TIMESTAMP(timezone=False),
        server_default=text("timezone('utc', now())"),
        onupdate=text("timezone('utc', now())"),
        nullable=False
    )

    seller = relationship("Seller", back_populates="products")

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name} stock={self.stock}>"


@dataclass(frozen=True)
class StockChange:
    product_id: int
    previous_stock: int
    current_stock: int

    @property
    def is_restock(self) -> bool:
        """True for a zero-crossing: 0 before, positive after."""
        return self.previous_stock <= 0 < self.current_stock


def apply_stock_change(product: Product, delta: int, sales_delta: int = 0) -> StockChange:
    """
    Adjust stock (and optionally the sales counter) of a locked product row.

    Raises ValueError if the result would go negative; callers validate
    availability first and surface a domain error.
    """
    previous = product.stock or 0
    current = previous + delta
    if current < 0:
        raise ValueError(f"Stock for product {product.id} cannot go negative ({previous} {delta:+d})")

    sales = (product.sales_count or 0) + sales_delta
    if sales < 0:
        raise ValueError(f"Sales count for product {product.id} cannot go negative")

    product.stock = current
    product.sales_count = sales
    return StockChange(product_id=product.id, previous_stock=previous, current_stock=current)
