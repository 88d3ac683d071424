# storefront/models/order.py
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Index, text, TIMESTAMP
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import relationship

from storefront.core.enums import OrderStatus
from storefront.database import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_number = Column(String(50), unique=True, nullable=False)
    status = Column(ENUM(OrderStatus, name='orderstatus', create_type=True), nullable=False, default=OrderStatus.PENDING, index=True)

    total_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    final_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    # Shipping
    recipient_name = Column(String(100), nullable=False)
    recipient_phone = Column(String(20), nullable=False)
    address = Column(String(500), nullable=False)

    created_at = Column(
        TIMESTAMP(timezone=False),
        server_default=text("timezone('utc', now())"),
        nullable=False,
        index=True
    )
    updated_at = Column(
        TIMESTAMP(timezone=False),
        server_default=text("timezone('utc', now())"),
        onupdate=text("timezone('utc', now())"),
        nullable=False
    )

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number} status={self.status}>"


class OrderItem(Base):
    """A priced line of an order. Name and price are snapshots taken at purchase time."""
    __tablename__ = "order_items"
    __table_args__ = (
        # Bounded range scans for the stock analysis jobs
        Index("ix_order_items_seller_created", "seller_id", "created_at"),
        Index("ix_order_items_product_created", "product_id", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    seller_id = Column(Integer, ForeignKey("sellers.id"), nullable=False)

    product_name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)

    created_at = Column(
        TIMESTAMP(timezone=False),
        server_default=text("timezone('utc', now())"),
        nullable=False
    )

    order = relationship("Order", back_populates="items")

    def __repr__(self) -> str:
        return f"<OrderItem id={self.id} product={self.product_id} qty={self.quantity}>"
