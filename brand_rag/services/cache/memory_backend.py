"""In-memory cache backend for testing and single-process deployments."""

import time
from typing import Optional, Any, Dict, List
from dataclasses import dataclass

from brand_rag.services.cache.base import ICacheBackend, CacheStats


@dataclass
class CacheEntry:
    """A cache entry with optional expiration."""

    value: Any
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        if self.expires_at is None:
            return False
        return now > self.expires_at


class MemoryBackend(ICacheBackend):
    """In-memory cache backend that mimics Redis behavior.

    Counter increments run without an await in between, so they are atomic
    with respect to other coroutines on the same event loop.
    """

    def __init__(self, clock=time.time):
        """Initialize memory backend.

        Args:
            clock: Time source in seconds, injectable for tests.
        """
        self._storage: Dict[str, CacheEntry] = {}
        self._enabled = False
        self._stats = CacheStats()
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def stats(self) -> CacheStats:
        return self._stats

    async def connect(self) -> None:
        self._enabled = True

    async def disconnect(self) -> None:
        """Disable the cache backend and clear storage."""
        self._enabled = False
        self._storage.clear()

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._storage.get(key)
        if entry is not None and entry.is_expired(self._clock()):
            del self._storage[key]
            self._stats.evictions += 1
            return None
        return entry

    def _expiry(self, ttl: Optional[int]) -> Optional[float]:
        return self._clock() + ttl if ttl is not None else None

    async def get(self, key: str) -> Optional[Any]:
        if not self._enabled:
            return None

        entry = self._live_entry(key)
        if entry is None:
            self._stats.record_miss()
            return None

        self._stats.record_hit()
        return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self._enabled:
            return False

        self._storage[key] = CacheEntry(value=value, expires_at=self._expiry(ttl))
        return True

    async def delete(self, key: str) -> bool:
        if not self._enabled:
            return False
        return self._storage.pop(key, None) is not None

    async def increment(self, key: str, amount: int = 1, ttl: Optional[int] = None) -> int:
        if not self._enabled:
            raise RuntimeError("Memory backend is not connected")

        entry = self._live_entry(key)
        if entry is None:
            entry = CacheEntry(value=0, expires_at=self._expiry(ttl))
            self._storage[key] = entry
        entry.value = int(entry.value) + amount
        return entry.value

    # Testing utilities

    def get_all_keys(self) -> List[str]:
        now = self._clock()
        return [key for key, entry in self._storage.items() if not entry.is_expired(now)]

    def get_raw_entry(self, key: str) -> Optional[CacheEntry]:
        return self._storage.get(key)
