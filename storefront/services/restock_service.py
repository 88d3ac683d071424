"""
Restock subscriptions: the user-facing side of the restock pipeline.

A pending (notified=False) subscription is unique per (product, user).
Notified records are history; they never block a fresh subscription for the
next restock cycle and are never notified again.
"""

import logging
from typing import List

from sqlalchemy import select, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import (
    DuplicateResourceError,
    ErrorCode,
    InvalidStateTransitionError,
    ResourceNotFoundError,
)
from storefront.core.security import ensure_owner
from storefront.models.product import Product
from storefront.models.restock import RestockSubscription
from storefront.services.user_service import get_user_by_email, get_seller_for_user

logger = logging.getLogger(__name__)


class RestockService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_product(self, product_id: int) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise ResourceNotFoundError(
                f"Product with ID {product_id} not found",
                error_code=ErrorCode.PRODUCT_NOT_FOUND,
                details={"product_id": product_id},
            )
        return product

    async def _has_pending(self, product_id: int, user_id: int) -> bool:
        query = select(exists().where(
            RestockSubscription.product_id == product_id,
            RestockSubscription.user_id == user_id,
            RestockSubscription.notified.is_(False),
        ))
        return bool(await self.db.scalar(query))

    async def subscribe(self, email: str, product_id: int) -> RestockSubscription:
        user = await get_user_by_email(self.db, email)
        product = await self._get_product(product_id)

        if (product.stock or 0) > 0:
            raise InvalidStateTransitionError(
                f"Product '{product.name}' is in stock; restock alerts are for sold-out products",
                error_code=ErrorCode.PRODUCT_IN_STOCK,
                details={"product_id": product.id, "stock": product.stock},
            )

        if await self._has_pending(product.id, user.id):
            raise DuplicateResourceError(
                error_code=ErrorCode.DUPLICATE_RESTOCK_SUBSCRIPTION,
                details={"product_id": product.id},
            )

        subscription = RestockSubscription(product_id=product.id, user_id=user.id, notified=False)
        self.db.add(subscription)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent subscribe; the partial unique index decided
            await self.db.rollback()
            raise DuplicateResourceError(
                error_code=ErrorCode.DUPLICATE_RESTOCK_SUBSCRIPTION,
                details={"product_id": product.id},
            )

        await self.db.refresh(subscription)
        logger.info(f"Restock subscription created: userId={user.id}, productId={product.id}")
        return subscription

    async def unsubscribe(self, email: str, subscription_id: int) -> None:
        user = await get_user_by_email(self.db, email)
        subscription = await self.db.get(RestockSubscription, subscription_id)
        if subscription is None:
            raise ResourceNotFoundError(
                error_code=ErrorCode.SUBSCRIPTION_NOT_FOUND,
                details={"subscription_id": subscription_id},
            )
        ensure_owner(subscription.user_id, user.id, "cancel")

        await self.db.delete(subscription)
        await self.db.commit()
        logger.info(f"Restock subscription removed: id={subscription_id}")

    async def list_mine(self, email: str, limit: int = 20, offset: int = 0) -> List[RestockSubscription]:
        user = await get_user_by_email(self.db, email)
        result = await self.db.execute(
            select(RestockSubscription)
            .where(RestockSubscription.user_id == user.id)
            .order_by(RestockSubscription.created_at.desc(), RestockSubscription.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def list_for_product(self, email: str, product_id: int, limit: int = 20, offset: int = 0) -> List[RestockSubscription]:
        """Subscribers of one of the calling seller's products."""
        user = await get_user_by_email(self.db, email)
        seller = await get_seller_for_user(self.db, user)
        product = await self._get_product(product_id)
        ensure_owner(product.seller_id, seller.id, "view subscriptions of")

        result = await self.db.execute(
            select(RestockSubscription)
            .where(RestockSubscription.product_id == product.id)
            .order_by(RestockSubscription.created_at.desc(), RestockSubscription.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
