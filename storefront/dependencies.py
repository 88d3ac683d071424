from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import async_session
from storefront.integrations.restock_pipeline import RestockEventPipeline
from storefront.services.cache_service import CacheService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; anything left uncommitted is rolled back on close."""
    async with async_session() as session:
        yield session


def get_restock_pipeline(request: Request) -> RestockEventPipeline:
    """The pipeline is created once in the application lifespan."""
    return request.app.state.restock_pipeline


def get_cache(request: Request) -> CacheService:
    return request.app.state.cache
