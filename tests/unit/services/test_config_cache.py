"""Tests for the SystemConfig cache."""

import pytest
from unittest.mock import AsyncMock

from brand_rag.models.system_config import SYSTEM_CONFIG_PATH, SystemConfig
from brand_rag.services.config_cache import CONFIG_CACHE_TTL_SECONDS, ConfigCache


class FakeMonotonic:
    def __init__(self):
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value


class TestLoad:
    """Tests for reading the record."""

    @pytest.mark.asyncio
    async def test_absent_record_yields_defaults(self, document_store):
        """No record is not an error: the defaults are synthesized."""
        cache = ConfigCache(document_store)

        config = await cache.load()

        assert config.rate_limiting.enabled is False
        assert config.vector_cleanup.enabled is True
        assert config.vector_cleanup.retention_days == 90
        assert config.embedding.model == "text-embedding-3-small"
        assert config.embedding.dimensions == 1536
        assert cache.loaded_at is not None

    @pytest.mark.asyncio
    async def test_partial_record_is_filled_with_defaults(self, document_store, seed_config):
        await seed_config(rateLimiting={"enabled": True, "userMaxPerHour": 5})
        cache = ConfigCache(document_store)

        config = await cache.load()

        assert config.rate_limiting.enabled is True
        assert config.rate_limiting.user_max_per_hour == 5
        assert config.rate_limiting.user_max_per_day == 500
        assert config.vector_cleanup.min_performance_threshold == 0.3
        assert config.performance.cache_ttl_seconds == 3600

    @pytest.mark.asyncio
    async def test_legacy_cache_ttl_key(self, document_store, seed_config):
        await seed_config(performance={"cacheTTL": 120})
        config = await ConfigCache(document_store).load()
        assert config.performance.cache_ttl_seconds == 120

    @pytest.mark.asyncio
    async def test_cached_until_ttl_expires(self, document_store, seed_config):
        """Record changes are picked up only once the cache is stale."""
        clock = FakeMonotonic()
        cache = ConfigCache(document_store, clock=clock)
        await seed_config(embedding={"model": "model-a"})
        assert (await cache.load()).embedding.model == "model-a"

        await seed_config(embedding={"model": "model-b"})
        clock.value += CONFIG_CACHE_TTL_SECONDS - 1
        assert (await cache.load()).embedding.model == "model-a"

        clock.value += 2
        assert (await cache.load()).embedding.model == "model-b"

    @pytest.mark.asyncio
    async def test_store_failure_returns_degraded_without_pinning(self):
        """A failed read degrades but leaves the timestamp alone, so the next call retries."""
        store = AsyncMock()
        store.get = AsyncMock(side_effect=[RuntimeError("store down"), None])
        cache = ConfigCache(store)

        degraded = await cache.load()
        assert degraded.rate_limiting.enabled is False
        assert degraded.vector_cleanup.enabled is False
        assert degraded.embedding.dimensions == 1536
        assert cache.loaded_at is None
        assert cache.value is None

        recovered = await cache.load()
        assert recovered.vector_cleanup.enabled is True
        assert store.get.await_count == 2

    @pytest.mark.asyncio
    async def test_malformed_record_returns_degraded(self, document_store, seed_config):
        await seed_config(embedding={"dimensions": "not-a-number"})
        cache = ConfigCache(document_store)

        config = await cache.load()

        assert config == SystemConfig.degraded()
        assert cache.loaded_at is None


class TestSaveAndInvalidate:
    """Tests for the admin write path."""

    @pytest.mark.asyncio
    async def test_save_writes_camel_case_record(self, document_store):
        cache = ConfigCache(document_store)
        config = SystemConfig.defaults()
        config.rate_limiting.enabled = True

        await cache.save(config)

        record = await document_store.get(SYSTEM_CONFIG_PATH)
        assert record["rateLimiting"]["enabled"] is True
        assert record["performance"]["cacheTTLSeconds"] == 3600
        assert (await cache.load()).rate_limiting.enabled is True

    @pytest.mark.asyncio
    async def test_invalidate_forces_reload(self, document_store, seed_config):
        cache = ConfigCache(document_store)
        await cache.load()
        await seed_config(vectorCleanup={"retentionDays": 30})

        cache.invalidate()

        assert (await cache.load()).vector_cleanup.retention_days == 30
