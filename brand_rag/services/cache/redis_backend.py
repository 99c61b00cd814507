"""Redis cache backend implementation."""

import json
from typing import Optional, Any
from datetime import timedelta

import redis.asyncio as redis

from brand_rag.services.cache.base import ICacheBackend, CacheStats
from brand_rag.core.logging import get_logger

logger = get_logger(__name__)


class RedisBackend(ICacheBackend):
    """Redis-based cache backend.

    Provides:
    - Automatic JSON serialization/deserialization
    - Atomic fixed-window counters (MULTI: SET NX EX + INCRBY)
    - Statistics tracking
    - Graceful error handling for cache reads and writes
    """

    def __init__(self, redis_url: Optional[str] = None):
        self._redis_url = redis_url
        self._client: Optional[redis.Redis] = None
        self._enabled = bool(self._redis_url)
        self._stats = CacheStats()

    @property
    def enabled(self) -> bool:
        """Check if Redis is enabled and connected."""
        return self._enabled and self._client is not None

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def client(self) -> Optional[redis.Redis]:
        """Get the Redis client (for advanced operations)."""
        return self._client

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self._redis_url:
            logger.info("Redis URL not configured, cache disabled")
            self._enabled = False
            return

        try:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True
            )
            # Test connection
            await self._client.ping()
            self._enabled = True
            logger.info("Connected to Redis cache")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self._enabled = False
            self._client = None

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from Redis cache")

    async def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None

        try:
            value = await self._client.get(key)
            if value is not None:
                self._stats.record_hit()
                return json.loads(value)
            else:
                self._stats.record_miss()
                return None
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            self._stats.record_error()
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.enabled:
            return False

        try:
            serialized = json.dumps(value)
            if ttl:
                await self._client.setex(key, timedelta(seconds=ttl), serialized)
            else:
                await self._client.set(key, serialized)
            return True
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            self._stats.record_error()
            return False

    async def delete(self, key: str) -> bool:
        if not self.enabled:
            return False

        try:
            result = await self._client.delete(key)
            return result > 0
        except Exception as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            self._stats.record_error()
            return False

    async def increment(self, key: str, amount: int = 1, ttl: Optional[int] = None) -> int:
        """Atomically increment a counter.

        Unlike the cache operations this raises on failure; callers decide
        how to degrade.
        """
        if not self.enabled:
            raise RuntimeError("Redis backend is not connected")

        async with self._client.pipeline(transaction=True) as pipe:
            if ttl:
                pipe.set(key, 0, ex=ttl, nx=True)
            pipe.incrby(key, amount)
            results = await pipe.execute()
        return int(results[-1])
