"""Redis cache for the reference data every quote reads: active taxes and
active currencies.

Values are stored as JSON. Any Redis failure is logged and treated as a miss,
so pricing always falls back to the database.
"""

import json
import logging
import time
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from ratebook.config import settings

logger = logging.getLogger(__name__)

KEY_ACTIVE_TAXES = "ratebook:taxes:active"
KEY_ACTIVE_CURRENCIES = "ratebook:currencies:active"

# Seconds to wait before trying to reconnect after Redis was unreachable
RECONNECT_AFTER = 30


class CacheService:
    def __init__(self):
        self._client: redis.Redis | None = None
        self._down_since: float | None = None

    async def _connection(self) -> redis.Redis | None:
        if not settings.cache_enabled:
            return None
        if self._client is not None:
            return self._client
        if self._down_since is not None and time.monotonic() - self._down_since < RECONNECT_AFTER:
            return None

        client = redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        try:
            await client.ping()
        except RedisError as e:
            logger.warning(f"Redis unavailable at {settings.redis_url}, serving uncached: {e}")
            self._down_since = time.monotonic()
            await client.aclose()
            return None
        self._client = client
        self._down_since = None
        return client

    async def read(self, key: str) -> Any | None:
        client = await self._connection()
        if client is None:
            return None
        try:
            raw = await client.get(key)
        except RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None
        return None if raw is None else json.loads(raw)

    async def write(self, key: str, value: Any, ttl: int) -> bool:
        client = await self._connection()
        if client is None:
            return False
        try:
            await client.set(key, json.dumps(value, default=str), ex=ttl)
        except RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False
        return True

    async def invalidate(self, *keys: str) -> None:
        client = await self._connection()
        if client is None:
            return
        try:
            await client.delete(*keys)
        except RedisError as e:
            logger.warning(f"Cache invalidation failed for {', '.join(keys)}: {e}")

    # Reference data

    async def get_active_taxes(self) -> list[dict] | None:
        return await self.read(KEY_ACTIVE_TAXES)

    async def set_active_taxes(self, rows: list[dict]) -> None:
        await self.write(KEY_ACTIVE_TAXES, rows, settings.tax_cache_ttl)

    async def invalidate_taxes(self) -> None:
        await self.invalidate(KEY_ACTIVE_TAXES)

    async def get_active_currencies(self) -> list[dict] | None:
        return await self.read(KEY_ACTIVE_CURRENCIES)

    async def set_active_currencies(self, rows: list[dict]) -> None:
        await self.write(KEY_ACTIVE_CURRENCIES, rows, settings.currency_cache_ttl)

    async def invalidate_currencies(self) -> None:
        await self.invalidate(KEY_ACTIVE_CURRENCIES)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


cache_service = CacheService()
