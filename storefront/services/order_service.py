"""
Purpose: Order placement and cancellation against product stock.

Every order is one transaction: product rows are locked FOR UPDATE (in id
order, so concurrent orders cannot deadlock each other), all lines are
validated before any row is touched, and the stock decrement, order insert
and purchase-total update commit together or not at all. Cancellation is the
exact inverse.

Stock changes are published to the restock pipeline only after commit, so a
slow or failing consumer can never block or roll back an order.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import get_settings
from storefront.core.enums import OrderStatus, UserRole
from storefront.core.exceptions import (
    ErrorCode,
    InsufficientStockError,
    InvalidOrderStatusError,
    InvalidStateTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from storefront.core.security import ensure_owner
from storefront.core.utils import to_money, utc_now
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product, StockChange, apply_stock_change
from storefront.schemas.order import OrderCreate, OrderItemRequest, OrderUpdate
from storefront.services.user_service import get_user_by_email, require_role

logger = logging.getLogger(__name__)


class StockChangePublisher(Protocol):
    def publish_changes(self, changes: Iterable[StockChange]) -> int: ...


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ORD-<yyyyMMddHHmmss>-<8 hex chars>. Uniqueness is enforced by the orders table."""
    now = now or utc_now()
    return f"ORD-{now:%Y%m%d%H%M%S}-{uuid.uuid4().hex[:8].upper()}"


def check_availability(items: Sequence[OrderItemRequest], products: Dict[int, Product]) -> None:
    """
    Validate every requested line, in request order, before anything is mutated.

    Repeated product ids are checked against the stock left after the earlier
    lines.
    """
    remaining: Dict[int, int] = {}
    for line in items:
        product = products.get(line.product_id)
        if product is None:
            raise ResourceNotFoundError(
                f"Product {line.product_id} not found",
                error_code=ErrorCode.PRODUCT_NOT_FOUND,
                details={"product_id": line.product_id},
            )

        available = remaining.get(product.id, product.stock or 0)
        if available < line.quantity:
            raise InsufficientStockError(
                f"Insufficient stock for product '{product.name}' "
                f"(requested: {line.quantity}, available: {available})",
                details={
                    "product_id": product.id,
                    "product_name": product.name,
                    "requested": line.quantity,
                    "available": available,
                },
            )
        remaining[product.id] = available - line.quantity


def _is_order_number_conflict(error: IntegrityError) -> bool:
    return "order_number" in str(error.orig)


class OrderService:
    def __init__(self, db: AsyncSession, publisher: Optional[StockChangePublisher] = None):
        self.db = db
        self.publisher = publisher

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def _lock_products(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        result = await self.db.execute(
            select(Product)
            .where(Product.id.in_(ids))
            .order_by(Product.id)
            .with_for_update()
        )
        return {product.id: product for product in result.scalars().all()}

    async def _get_order(self, order_id: int, for_update: bool = False) -> Order:
        query = select(Order).where(Order.id == order_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        order = result.scalar_one_or_none()

        if order is None:
            raise ResourceNotFoundError(
                f"Order {order_id} not found",
                error_code=ErrorCode.ORDER_NOT_FOUND,
                details={"order_id": order_id},
            )
        return order

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    async def create_order(self, email: str, order_data: OrderCreate) -> Order:
        """
        Place an order for the user identified by ``email``.

        Raises:
            ValidationError: no items
            ResourceNotFoundError: user or any product missing
            InsufficientStockError: any line exceeds available stock
        """
        logger.info(f"Creating order: email={email}, items={len(order_data.items)}")
        if not order_data.items:
            raise ValidationError("An order needs at least one item")

        if order_data.coupon_id is not None:
            logger.info(f"Coupon {order_data.coupon_id} supplied; discounts are not applied yet")

        try:
            user = await get_user_by_email(self.db, email, for_update=True)
            products = await self._lock_products(line.product_id for line in order_data.items)
            check_availability(order_data.items, products)

            order = Order(
                user_id=user.id,
                status=OrderStatus.PENDING,
                recipient_name=order_data.recipient_name,
                recipient_phone=order_data.recipient_phone,
                address=order_data.address,
            )

            total_amount = Decimal("0.00")
            changes: List[StockChange] = []
            for line in order_data.items:
                product = products[line.product_id]
                changes.append(apply_stock_change(product, -line.quantity, sales_delta=line.quantity))

                price = to_money(product.price)
                subtotal = to_money(price * line.quantity)
                total_amount += subtotal

                order.items.append(OrderItem(
                    product_id=product.id,
                    seller_id=product.seller_id,
                    product_name=product.name,
                    price=price,
                    quantity=line.quantity,
                    subtotal=subtotal,
                ))

            order.total_amount = total_amount
            order.final_amount = total_amount
            user.total_purchase_amount = to_money(user.total_purchase_amount) + total_amount

            await self._insert_order(order)
            await self.db.commit()

        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(order)
        logger.info(
            f"Order created: orderId={order.id}, orderNumber={order.order_number}, "
            f"totalAmount={order.total_amount}"
        )
        self._publish(changes)
        return order

    async def _insert_order(self, order: Order) -> None:
        """Insert inside a savepoint, regenerating the order number on a unique-key clash."""
        max_attempts = get_settings().ORDER_NUMBER_MAX_ATTEMPTS
        for attempt in range(1, max_attempts + 1):
            order.order_number = generate_order_number()
            try:
                async with self.db.begin_nested():
                    self.db.add(order)
                    await self.db.flush()
                return
            except IntegrityError as e:
                if not _is_order_number_conflict(e) or attempt == max_attempts:
                    raise
                logger.warning(f"Order number collision on {order.order_number}, retrying ({attempt}/{max_attempts})")

    async def get_order(self, email: str, order_id: int) -> Order:
        user = await get_user_by_email(self.db, email)
        order = await self._get_order(order_id)
        ensure_owner(order.user_id, user.id, "view")
        return order

    async def list_my_orders(self, email: str, limit: int = 20, offset: int = 0) -> List[Order]:
        user = await get_user_by_email(self.db, email)
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == user.id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def update_order(self, email: str, order_id: int, update_data: OrderUpdate) -> Order:
        """Change shipping details while the order has not shipped."""
        logger.info(f"Updating order: email={email}, orderId={order_id}")
        user = await get_user_by_email(self.db, email)
        order = await self._get_order(order_id, for_update=True)
        ensure_owner(order.user_id, user.id, "update")

        if not order.status.is_modifiable:
            raise InvalidOrderStatusError(
                "Order details can only be changed before shipping",
                details={"status": order.status.value},
            )

        for field, value in update_data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(order, field, value)

        await self.db.commit()
        await self.db.refresh(order)
        return order

    async def cancel_order(self, email: str, order_id: int) -> Order:
        """
        Cancel an order and restore the stock, sales counters and purchase
        total it consumed. Lines whose product has since been deleted are
        skipped.

        Raises:
            ForbiddenError: the order belongs to someone else
            InvalidOrderStatusError: the order has shipped or is already cancelled
        """
        logger.info(f"Cancelling order: email={email}, orderId={order_id}")

        try:
            user = await get_user_by_email(self.db, email, for_update=True)
            order = await self._get_order(order_id, for_update=True)
            ensure_owner(order.user_id, user.id, "cancel")

            if not order.status.can_transition_to(OrderStatus.CANCELLED):
                raise InvalidOrderStatusError(
                    "Order status does not allow cancellation",
                    details={"status": order.status.value},
                )

            products = await self._lock_products(
                item.product_id for item in order.items if item.product_id is not None
            )

            changes: List[StockChange] = []
            for item in order.items:
                product = products.get(item.product_id) if item.product_id is not None else None
                if product is None:
                    logger.warning(f"Product for order item {item.id} no longer exists; stock not restored")
                    continue
                changes.append(apply_stock_change(product, item.quantity, sales_delta=-item.quantity))

            order.status = OrderStatus.CANCELLED
            user.total_purchase_amount = to_money(user.total_purchase_amount) - to_money(order.total_amount)

            await self.db.commit()

        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(order)
        logger.info(f"Order cancelled: orderId={order_id}")
        self._publish(changes)
        return order

    async def advance_status(self, email: str, order_id: int, new_status: OrderStatus) -> Order:
        """Fulfilment transitions (PENDING->PAID->SHIPPED->DELIVERED), admin only."""
        actor = await get_user_by_email(self.db, email)
        require_role(actor, UserRole.ADMIN)

        order = await self._get_order(order_id, for_update=True)
        if new_status == OrderStatus.CANCELLED or not order.status.can_transition_to(new_status):
            raise InvalidStateTransitionError(
                f"Cannot move order from {order.status.value} to {new_status.value}",
                details={"from": order.status.value, "to": new_status.value},
            )

        order.status = new_status
        await self.db.commit()
        await self.db.refresh(order)
        logger.info(f"Order {order_id} moved to {new_status.value} by {email}")
        return order

    def _publish(self, changes: Iterable[StockChange]) -> None:
        if self.publisher is None:
            return
        try:
            self.publisher.publish_changes(changes)
        except Exception as e:
            # The order is already committed
            logger.error(f"Failed to publish stock changes: {e}", exc_info=True)
