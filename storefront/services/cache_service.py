"""
Best-effort key-value cache backed by Redis.

Holds the per-seller sales ranking blobs and the reorder alert suppression
flags. Every failure is logged and degrades to a miss or a no-op: losing a
cache write is never a correctness failure for the callers.
"""

import logging
from typing import Optional

import redis.asyncio as redis

from storefront.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

RANKING_KEY_PREFIX = "seller:ranking:"
REORDER_ALERT_KEY_PREFIX = "reorder:alert:"


def ranking_key(seller_id: int) -> str:
    return f"{RANKING_KEY_PREFIX}{seller_id}"


def reorder_alert_key(product_id: int) -> str:
    return f"{REORDER_ALERT_KEY_PREFIX}{product_id}"


class CacheService:
    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CacheService":
        settings = settings or get_settings()
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
        return cls(client)

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
            logger.debug("Cache set: key=%s, ttl=%ss", key, ttl_seconds)
            return True
        except Exception as e:
            logger.error("Cache set error: key=%s: %s", key, e)
            return False

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except Exception as e:
            logger.error("Cache get error: key=%s: %s", key, e)
            return None

    async def has_key(self, key: str) -> bool:
        try:
            return bool(await self._client.exists(key))
        except Exception as e:
            logger.error("Cache hasKey error: key=%s: %s", key, e)
            return False

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self._client.delete(key))
        except Exception as e:
            logger.error("Cache delete error: key=%s: %s", key, e)
            return False

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.warning("Cache ping failed: %s", e)
            return False

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except Exception as e:
            logger.warning("Error closing cache client: %s", e)
