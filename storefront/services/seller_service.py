"""
Seller registration.

Registering a seller profile promotes the user USER -> SELLER; removing it
demotes SELLER -> USER. Both run in one transaction with the profile change.
A seller with products or order lines cannot be removed.
"""

import logging

from sqlalchemy import select, exists
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import DuplicateResourceError, ErrorCode, InvalidStateTransitionError
from storefront.models.order import OrderItem
from storefront.models.product import Product
from storefront.models.user import Seller
from storefront.schemas.seller import SellerCreate, SellerRanking, RankingEntry, SellerUpdate
from storefront.services.cache_service import CacheService, ranking_key
from storefront.services.stock_analysis import decode_ranking
from storefront.services.user_service import find_seller_by_user_id, get_seller_for_user, get_user_by_email

logger = logging.getLogger(__name__)


class SellerService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_seller(self, email: str, data: SellerCreate) -> Seller:
        logger.info(f"Seller registration: email={email}, businessNumber={data.business_number}")
        user = await get_user_by_email(self.db, email, for_update=True)

        if await find_seller_by_user_id(self.db, user.id) is not None:
            raise DuplicateResourceError("User is already registered as a seller")

        number_taken = await self.db.scalar(
            select(exists().where(Seller.business_number == data.business_number))
        )
        if number_taken:
            raise DuplicateResourceError(error_code=ErrorCode.DUPLICATE_BUSINESS_NUMBER)

        try:
            seller = Seller(
                user_id=user.id,
                business_name=data.business_name,
                business_number=data.business_number,
                min_stock_threshold=data.min_stock_threshold if data.min_stock_threshold is not None else 10,
            )
            self.db.add(seller)
            user.promote_to_seller()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(seller)
        logger.info(f"Seller registered: sellerId={seller.id}, userId={user.id}")
        return seller

    async def get_my_seller(self, email: str) -> Seller:
        user = await get_user_by_email(self.db, email)
        return await get_seller_for_user(self.db, user)

    async def update_my_seller(self, email: str, data: SellerUpdate) -> Seller:
        logger.info(f"Seller profile update: email={email}")
        user = await get_user_by_email(self.db, email)
        seller = await get_seller_for_user(self.db, user)

        if data.business_number is not None and data.business_number != seller.business_number:
            number_taken = await self.db.scalar(
                select(exists().where(Seller.business_number == data.business_number))
            )
            if number_taken:
                raise DuplicateResourceError(error_code=ErrorCode.DUPLICATE_BUSINESS_NUMBER)
            seller.business_number = data.business_number

        if data.business_name is not None:
            seller.business_name = data.business_name
        if data.min_stock_threshold is not None:
            seller.min_stock_threshold = data.min_stock_threshold

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(seller)
        logger.info(f"Seller profile updated: sellerId={seller.id}")
        return seller

    async def _has_sales_history(self, seller_id: int) -> bool:
        """Products and order lines both keep a non-null seller_id."""
        owns_products = await self.db.scalar(select(exists().where(Product.seller_id == seller_id)))
        if owns_products:
            return True
        return bool(await self.db.scalar(select(exists().where(OrderItem.seller_id == seller_id))))

    async def unregister_seller(self, email: str) -> None:
        logger.info(f"Seller unregistration: email={email}")
        user = await get_user_by_email(self.db, email, for_update=True)
        seller = await get_seller_for_user(self.db, user)

        if await self._has_sales_history(seller.id):
            raise InvalidStateTransitionError(
                "Seller still owns products or order lines; delete the products first",
                details={"seller_id": seller.id},
            )

        try:
            await self.db.delete(seller)
            user.demote_to_user()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Seller unregistered: sellerId={seller.id}, userId={user.id}")

    async def get_ranking(self, email: str, cache: CacheService) -> SellerRanking:
        """Last cached 7-day ranking for the calling seller; empty when not cached."""
        user = await get_user_by_email(self.db, email)
        seller = await get_seller_for_user(self.db, user)
        blob = await cache.get(ranking_key(seller.id))
        entries = [RankingEntry(**row) for row in decode_ranking(blob)]
        return SellerRanking(seller_id=seller.id, entries=entries)
