# storefront/database.py
"""
Async engine and session factory.

Services take an AsyncSession from ``get_db`` (request scope) or open one from
``async_session`` (restock consumer, scheduled jobs).
"""

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base

from storefront.core.config import get_settings


def async_database_url(url: str) -> str:
    """Plain postgres URLs are pointed at the asyncpg driver."""
    if not url:
        raise ValueError("DATABASE_URL is not set in environment variables")
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


settings = get_settings()

engine = create_async_engine(
    async_database_url(settings.DATABASE_URL),
    echo=settings.DB_ECHO,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_timeout=30,
    pool_recycle=1800,
    pool_pre_ping=True,
)

# Committed rows stay readable: services refresh what they return and the
# consumer and jobs copy plain values out before rolling back.
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

Base = declarative_base()
