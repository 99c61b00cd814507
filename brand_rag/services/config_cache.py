"""Time-limited cache of the SystemConfig record."""

import time
from typing import Callable, Optional

from pydantic import ValidationError

from brand_rag.core.errors import ConfigUnavailable
from brand_rag.core.interfaces import IDocumentStore
from brand_rag.core.logging import get_logger
from brand_rag.models.system_config import SYSTEM_CONFIG_PATH, SystemConfig

logger = get_logger(__name__)

CONFIG_CACHE_TTL_SECONDS = 300  # 5 minutes


class ConfigCache:
    """Holds the last SystemConfig read from the store and when it was read.

    One instance is owned by the engine and shared by reference with the
    components that need configuration. There is no lock: concurrent
    refreshes read the same record, so the last writer wins harmlessly.

    Usage:
        cache = ConfigCache(store)
        config = await cache.load()
    """

    def __init__(
        self,
        store: IDocumentStore,
        ttl_seconds: float = CONFIG_CACHE_TTL_SECONDS,
        path: str = SYSTEM_CONFIG_PATH,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self._ttl_seconds = ttl_seconds
        self._path = path
        self._clock = clock
        self.value: Optional[SystemConfig] = None
        self.loaded_at: Optional[float] = None

    def is_fresh(self) -> bool:
        if self.value is None or self.loaded_at is None:
            return False
        return (self._clock() - self.loaded_at) < self._ttl_seconds

    async def ensure_fresh(self) -> SystemConfig:
        """Return the cached config, re-reading the store once it is stale.

        Never raises. A failed read returns SystemConfig.degraded() and leaves
        the timestamp untouched, so the next call tries the store again.
        """
        if self.is_fresh():
            return self.value

        try:
            record = await self._store.get(self._path)
            config = SystemConfig.from_record(record)
        except ValidationError as e:
            error = ConfigUnavailable(f"Malformed system configuration at {self._path}: {e}")
            logger.error(f"[RAG Engine] {error.message}; using degraded defaults")
            return SystemConfig.degraded()
        except Exception as e:
            error = ConfigUnavailable(f"Error loading system config: {e}")
            logger.error(f"[RAG Engine] {error.message}; using degraded defaults")
            return SystemConfig.degraded()

        if record is None:
            logger.info("[RAG Engine] No system configuration record, using defaults")
        else:
            logger.info("[RAG Engine] System configuration loaded")

        self.value = config
        self.loaded_at = self._clock()
        return config

    async def load(self) -> SystemConfig:
        return await self.ensure_fresh()

    def invalidate(self) -> None:
        """Force the next load() to read the store."""
        self.loaded_at = None

    async def save(self, config: SystemConfig) -> SystemConfig:
        """Write the record and adopt it as the cached value.

        Store errors propagate; this is an explicit admin action.
        """
        await self._store.set(self._path, config.to_record())
        self.value = config
        self.loaded_at = self._clock()
        logger.info("[RAG Engine] System configuration saved")
        return config
