"""
Purpose: Product catalogue management for sellers and stock updates.

update_stock is the seller-facing entry to the shared stock mutation path
(apply_stock_change); like order placement and cancellation it locks the row,
commits, and only then publishes the resulting stock fact to the restock
pipeline.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import ErrorCode, ResourceNotFoundError
from storefront.core.security import ensure_owner
from storefront.models.product import Product, apply_stock_change
from storefront.schemas.product import ProductCreate, ProductUpdate
from storefront.services.order_service import StockChangePublisher
from storefront.services.user_service import get_user_by_email, get_seller_for_user

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, db: AsyncSession, publisher: Optional[StockChangePublisher] = None):
        self.db = db
        self.publisher = publisher

    async def get_product(self, product_id: int, for_update: bool = False) -> Product:
        """
        Retrieves a product by ID.

        Raises:
            ResourceNotFoundError: If product not found
        """
        query = select(Product).where(Product.id == product_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        product = result.scalar_one_or_none()

        if not product:
            raise ResourceNotFoundError(
                f"Product with ID {product_id} not found",
                error_code=ErrorCode.PRODUCT_NOT_FOUND,
                details={"product_id": product_id},
            )
        return product

    async def update_stock(self, email: str, product_id: int, new_stock: int) -> Product:
        """
        Set the absolute stock level of a product owned by the calling seller.

        A change from 0 to a positive level triggers restock notifications
        once the update has committed.
        """
        logger.info(f"Stock update: email={email}, productId={product_id}, stock={new_stock}")

        try:
            user = await get_user_by_email(self.db, email)
            seller = await get_seller_for_user(self.db, user)
            product = await self.get_product(product_id, for_update=True)
            ensure_owner(product.seller_id, seller.id, "update stock of")

            change = apply_stock_change(product, new_stock - (product.stock or 0))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(product)
        logger.info(
            f"Stock updated: productId={product_id}, "
            f"{change.previous_stock} -> {change.current_stock}"
        )

        if self.publisher is not None:
            try:
                self.publisher.publish_changes([change])
            except Exception as e:
                logger.error(f"Failed to publish stock change for product {product_id}: {e}", exc_info=True)
        return product

    async def create_product(self, email: str, product_data: ProductCreate) -> Product:
        """
        Creates a product owned by the calling seller.

        Initial stock is set directly; a product nobody could subscribe to yet
        produces no stock fact.
        """
        user = await get_user_by_email(self.db, email)
        seller = await get_seller_for_user(self.db, user)

        try:
            product = Product(seller_id=seller.id, sales_count=0, **product_data.model_dump())
            self.db.add(product)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(product)
        logger.info(f"Product created: productId={product.id}, sellerId={seller.id}, name='{product.name}'")
        return product

    async def list_my_products(self, email: str, limit: int = 20, offset: int = 0) -> List[Product]:
        user = await get_user_by_email(self.db, email)
        seller = await get_seller_for_user(self.db, user)
        result = await self.db.execute(
            select(Product)
            .where(Product.seller_id == seller.id)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def update_product(self, email: str, product_id: int, product_data: ProductUpdate) -> Product:
        """
        Update the details of a product owned by the calling seller.

        Raises:
            ResourceNotFoundError: If product not found
            ForbiddenError: If the product belongs to another seller
        """
        user = await get_user_by_email(self.db, email)
        seller = await get_seller_for_user(self.db, user)
        product = await self.get_product(product_id)
        ensure_owner(product.seller_id, seller.id, "update")

        update_data = product_data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if value is not None:
                setattr(product, key, value)

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(product)
        logger.info(f"Product updated: productId={product_id}, fields={sorted(update_data)}")
        return product

    async def delete_product(self, email: str, product_id: int) -> None:
        """
        Delete a product owned by the calling seller.

        Order lines keep their name and price snapshot and lose the product
        reference (ON DELETE SET NULL); pending restock subscriptions go with
        the product.
        """
        user = await get_user_by_email(self.db, email)
        seller = await get_seller_for_user(self.db, user)
        product = await self.get_product(product_id, for_update=True)
        ensure_owner(product.seller_id, seller.id, "delete")

        try:
            await self.db.delete(product)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Product deleted: productId={product_id}, sellerId={seller.id}")
