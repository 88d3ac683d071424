"""
Scheduled stock analysis.

SalesRankingCacheJob
    Hourly. For every seller, aggregates the last 7 days of order lines per
    product (units and revenue) and caches the ranking blob under
    ``seller:ranking:{sellerId}`` for one hour.

StockReorderJob
    Daily. For every ACTIVE product with stock left, projects days until
    stockout from the 7-day sales average and alerts the seller when it is
    within the critical window. A 24 h cache flag per product suppresses
    repeat alerts.

Both jobs isolate failures per seller/product, count them and keep going.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.config import get_settings
from storefront.core.enums import NotificationType, ProductStatus
from storefront.core.utils import to_money, utc_now
from storefront.models.notification import Notification
from storefront.models.order import OrderItem
from storefront.models.product import Product
from storefront.models.user import Seller
from storefront.services.cache_service import CacheService, ranking_key, reorder_alert_key

logger = logging.getLogger(__name__)

STOCK_ALERT_TITLE = "Low stock alert"


@dataclass
class JobSummary:
    job: str
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    def as_dict(self) -> Dict[str, object]:
        return {
            "job": self.job,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
        }


def encode_ranking(rows) -> str:
    """``productId:units:revenue`` entries joined with ``|``."""
    return "|".join(f"{product_id}:{int(units)}:{to_money(revenue)}" for product_id, units, revenue in rows)


def decode_ranking(blob: Optional[str]) -> List[Dict[str, object]]:
    if not blob:
        return []
    entries = []
    for part in blob.split("|"):
        product_id, units, revenue = part.split(":")
        entries.append({
            "product_id": int(product_id),
            "units_sold": int(units),
            "revenue": Decimal(revenue),
        })
    return entries


def stock_alert_message(product_name: str, stock: int, daily_average: float, days_left: float,
                        threshold: Optional[int] = None) -> str:
    message = (
        f"Stock for '{product_name}' is running low. "
        f"Current stock: {stock}, daily average sales: {daily_average:.1f}, "
        f"expected to sell out in {days_left:.1f} days"
    )
    if threshold is not None and stock <= threshold:
        message += f". Stock is at or below your reorder threshold of {threshold}"
    return message


class SalesRankingCacheJob:
    name = "sales_ranking_cache"

    def __init__(self, session_factory: Callable[[], AsyncSession], cache: CacheService):
        self.session_factory = session_factory
        self.cache = cache
        settings = get_settings()
        self.window_days = settings.RANKING_WINDOW_DAYS
        self.ttl_seconds = settings.RANKING_CACHE_TTL_SECONDS

    async def _seller_ids(self, db: AsyncSession) -> List[int]:
        result = await db.execute(select(Seller.id).order_by(Seller.id))
        return list(result.scalars().all())

    async def _ranking_rows(self, db: AsyncSession, seller_id: int, since: datetime):
        units = func.sum(OrderItem.quantity)
        result = await db.execute(
            select(OrderItem.product_id, units.label("units"), func.sum(OrderItem.subtotal).label("revenue"))
            .where(
                OrderItem.seller_id == seller_id,
                OrderItem.created_at >= since,
                OrderItem.product_id.is_not(None),
            )
            .group_by(OrderItem.product_id)
            .order_by(units.desc(), OrderItem.product_id)
        )
        return result.all()

    async def run(self, now: Optional[datetime] = None) -> JobSummary:
        now = now or utc_now()
        since = now - timedelta(days=self.window_days)
        summary = JobSummary(job=self.name)

        logger.info("=== SALES RANKING CACHE STARTING ===")
        async with self.session_factory() as db:
            seller_ids = await self._seller_ids(db)
            logger.info(f"Sellers to rank: {len(seller_ids)}")

            for seller_id in seller_ids:
                try:
                    rows = await self._ranking_rows(db, seller_id, since)
                    if not rows:
                        summary.skipped += 1
                        continue

                    if await self.cache.set(ranking_key(seller_id), encode_ranking(rows), self.ttl_seconds):
                        summary.succeeded += 1
                        logger.debug(f"Ranking cached for seller {seller_id}: {len(rows)} products")
                    else:
                        summary.failed += 1
                except Exception as e:
                    await db.rollback()
                    summary.failed += 1
                    logger.error(f"Ranking failed for seller {seller_id}: {e}", exc_info=True)

        logger.info(
            f"=== SALES RANKING CACHE DONE: success={summary.succeeded}, "
            f"failed={summary.failed}, skipped={summary.skipped} ==="
        )
        return summary


class StockReorderJob:
    name = "stock_reorder_alerts"

    def __init__(self, session_factory: Callable[[], AsyncSession], cache: CacheService):
        self.session_factory = session_factory
        self.cache = cache
        settings = get_settings()
        self.window_days = settings.REORDER_WINDOW_DAYS
        self.critical_days = settings.REORDER_CRITICAL_DAYS
        self.alert_ttl_seconds = settings.REORDER_ALERT_TTL_SECONDS

    async def _candidate_products(self, db: AsyncSession) -> List[Product]:
        result = await db.execute(
            select(Product)
            .options(selectinload(Product.seller))
            .where(Product.status == ProductStatus.ACTIVE, Product.stock > 0)
            .order_by(Product.id)
        )
        return list(result.scalars().all())

    async def _units_sold(self, db: AsyncSession, product_ids: List[int], since: datetime) -> Dict[int, int]:
        if not product_ids:
            return {}
        result = await db.execute(
            select(OrderItem.product_id, func.sum(OrderItem.quantity))
            .where(OrderItem.product_id.in_(product_ids), OrderItem.created_at >= since)
            .group_by(OrderItem.product_id)
        )
        return {product_id: int(units or 0) for product_id, units in result.all()}

    async def run(self, now: Optional[datetime] = None) -> JobSummary:
        now = now or utc_now()
        since = now - timedelta(days=self.window_days)
        summary = JobSummary(job=self.name)

        logger.info("=== STOCK REORDER CHECK STARTING ===")
        async with self.session_factory() as db:
            products = await self._candidate_products(db)
            # Plain values up front; a rollback expires the ORM rows
            candidates = [
                (
                    p.id, p.name, p.stock,
                    p.seller.user_id if p.seller else None,
                    p.seller.min_stock_threshold if p.seller else None,
                )
                for p in products
            ]
            logger.info(f"Active products to check: {len(candidates)}")
            sold = await self._units_sold(db, [c[0] for c in candidates], since)

            for product_id, product_name, stock, seller_user_id, threshold in candidates:
                try:
                    total = sold.get(product_id, 0)
                    if total <= 0:
                        summary.skipped += 1
                        continue

                    daily_average = total / self.window_days
                    if daily_average <= 0:
                        summary.skipped += 1
                        continue

                    days_left = stock / daily_average
                    if days_left > self.critical_days:
                        continue

                    flag = reorder_alert_key(product_id)
                    if await self.cache.has_key(flag):
                        logger.debug(f"Reorder alert for product {product_id} already sent in the last 24h")
                        summary.skipped += 1
                        continue

                    if seller_user_id is None:
                        raise ValueError(f"Product {product_id} has no seller user")

                    db.add(Notification(
                        user_id=seller_user_id,
                        type=NotificationType.STOCK_ALERT,
                        title=STOCK_ALERT_TITLE,
                        content=stock_alert_message(product_name, stock, daily_average, days_left, threshold),
                        is_read=False,
                    ))
                    await db.commit()
                    await self.cache.set(flag, "1", self.alert_ttl_seconds)

                    summary.succeeded += 1
                    logger.info(
                        f"Low stock alert: product '{product_name}', stock {stock}, "
                        f"sells out in {days_left:.1f} days"
                    )
                except Exception as e:
                    await db.rollback()
                    summary.failed += 1
                    logger.error(f"Reorder check failed for product {product_id}: {e}", exc_info=True)

        logger.info(
            f"=== STOCK REORDER CHECK DONE: alerts={summary.succeeded}, "
            f"skipped={summary.skipped}, failed={summary.failed} ==="
        )
        return summary
