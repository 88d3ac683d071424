"""
Restock notification pipeline.

Producers (order placement, cancellation and seller stock updates) push stock
facts onto an in-process asyncio.Queue after their transaction commits. A
single background consumer turns zero-crossings into RESTOCK notifications for
every pending subscriber.

Delivery is at-most-once: a full queue drops the event, and a failure while
handling it is logged and never retried. A subscriber whose notify step failed
keeps notified=False and becomes eligible again on the next restock of the
same product.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import get_settings
from storefront.core.enums import NotificationType
from storefront.integrations.events import ProductRestockedEvent
from storefront.models.notification import Notification
from storefront.models.product import Product, StockChange
from storefront.models.restock import RestockSubscription

logger = logging.getLogger(__name__)

RESTOCK_TITLE = "Restock alert"


def restock_message(product_name: str) -> str:
    return f"'{product_name}' is back in stock!"


@dataclass
class RestockResult:
    product_id: int
    ignored: bool = False
    notified: int = 0
    failed: int = 0


class RestockEventPipeline:
    def __init__(self, session_factory: Callable[[], AsyncSession], maxsize: Optional[int] = None):
        self.session_factory = session_factory
        self.queue: asyncio.Queue = asyncio.Queue(
            maxsize=maxsize if maxsize is not None else get_settings().RESTOCK_QUEUE_MAXSIZE
        )
        self.dropped = 0
        self._worker: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------
    def publish(self, event: ProductRestockedEvent) -> bool:
        """Enqueue without blocking. Returns False if the event was dropped."""
        try:
            self.queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                f"Restock queue full; dropping event for product {event.product_id} "
                f"({event.previous_stock} -> {event.current_stock})"
            )
            return False

    def publish_changes(self, changes: Iterable[StockChange]) -> int:
        published = 0
        for change in changes:
            if self.publish(ProductRestockedEvent.from_change(change)):
                published += 1
        return published

    # ------------------------------------------------------------------
    # Consumer lifecycle
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._consume(), name="restock-pipeline")
        logger.info("Restock pipeline consumer started")

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Restock pipeline consumer stopped")

    async def _consume(self) -> None:
        """Monitor and process the queue until cancelled"""
        while True:
            try:
                event = await self.queue.get()
            except asyncio.CancelledError:
                break

            try:
                await self.handle_event(event)
            except asyncio.CancelledError:
                self.queue.task_done()
                break
            except Exception as e:
                # Log error but keep consuming
                logger.error(f"Error processing restock event for product {event.product_id}: {e}", exc_info=True)
            self.queue.task_done()

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------
    async def handle_event(self, event: ProductRestockedEvent) -> RestockResult:
        result = RestockResult(product_id=event.product_id)

        if not event.is_restock:
            logger.debug(
                f"Ignoring stock change for product {event.product_id}: "
                f"{event.previous_stock} -> {event.current_stock} is not a restock"
            )
            result.ignored = True
            return result

        logger.info(
            f"Restock event received: productId={event.product_id}, "
            f"previousStock={event.previous_stock}, currentStock={event.current_stock}"
        )

        async with self.session_factory() as session:
            product = await self._get_product(session, event.product_id)
            if product is None:
                logger.error(f"Product {event.product_id} not found; dropping restock event")
                return result

            product_name = product.name
            targets = await self._pending_subscriptions(session, product.id)
            if not targets:
                logger.info(f"No pending restock subscriptions for '{product_name}'")
                return result

            logger.info(f"Sending restock notifications: product='{product_name}', subscribers={len(targets)}")

            for subscription_id, user_id in targets:
                try:
                    if not await self._claim_subscription(session, subscription_id):
                        # Already handled by a concurrent event
                        continue
                    session.add(Notification(
                        user_id=user_id,
                        type=NotificationType.RESTOCK,
                        title=RESTOCK_TITLE,
                        content=restock_message(product_name),
                        is_read=False,
                    ))
                    await session.commit()
                    result.notified += 1
                    logger.debug(f"Restock notification sent: userId={user_id}, product='{product_name}'")
                except Exception as e:
                    await session.rollback()
                    result.failed += 1
                    logger.error(f"Restock notification failed: userId={user_id}, subscriptionId={subscription_id}, error={e}")

        logger.info(
            f"Restock notifications complete: product='{product_name}', "
            f"sent={result.notified}, failed={result.failed}"
        )
        return result

    async def _get_product(self, session: AsyncSession, product_id: int) -> Optional[Product]:
        return await session.get(Product, product_id)

    async def _pending_subscriptions(self, session: AsyncSession, product_id: int) -> List[Tuple[int, int]]:
        """(subscription id, user id) pairs still waiting for this product."""
        result = await session.execute(
            select(RestockSubscription.id, RestockSubscription.user_id)
            .where(
                RestockSubscription.product_id == product_id,
                RestockSubscription.notified.is_(False),
            )
            .order_by(RestockSubscription.id)
        )
        return [(row.id, row.user_id) for row in result.all()]

    async def _claim_subscription(self, session: AsyncSession, subscription_id: int) -> bool:
        """Flip notified=False -> True. False means someone else got there first."""
        result = await session.execute(
            update(RestockSubscription)
            .where(
                RestockSubscription.id == subscription_id,
                RestockSubscription.notified.is_(False),
            )
            .values(notified=True)
        )
        return result.rowcount == 1
