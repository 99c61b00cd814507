"""Tests for the service container."""

import pytest

from brand_rag.core.config import Settings
from brand_rag.core.container import (
    ServiceContainer,
    ServiceNotInitializedError,
    create_container,
    get_container,
    set_container,
)
from brand_rag.services.cache.memory_backend import MemoryBackend
from brand_rag.services.rag_engine import RAGEngine


def _settings(**overrides):
    values = {
        "document_store_backend": "memory",
        "cache_backend": "memory",
        "redis_url": None,
        "admin_api_token": None,
    }
    values.update(overrides)
    return Settings(**values)


class TestServiceContainer:
    """Lifecycle of the container."""

    def test_uninitialized_services_raise(self):
        container = create_container()

        assert container.is_initialized is False
        with pytest.raises(ServiceNotInitializedError):
            container.rag_engine
        with pytest.raises(ServiceNotInitializedError):
            container.document_store
        assert container.cache_backend is None

    @pytest.mark.asyncio
    async def test_initialize_with_memory_backends(self, embedding_client):
        container = ServiceContainer()

        await container.initialize(_settings(), embedding_client=embedding_client)

        assert container.is_initialized is True
        assert isinstance(container.rag_engine, RAGEngine)
        assert isinstance(container.cache_backend, MemoryBackend)
        assert container.rag_engine.embedder._embedding_cache is not None
        assert container.rag_engine.rate_limiter._counter is None

        await container.shutdown()
        assert container.is_initialized is False

    @pytest.mark.asyncio
    async def test_counter_enabled_with_cache(self, embedding_client):
        container = ServiceContainer()

        await container.initialize(
            _settings(rate_limit_counter_enabled=True), embedding_client=embedding_client
        )

        assert container.rag_engine.rate_limiter._counter is not None
        await container.shutdown()

    @pytest.mark.asyncio
    async def test_no_cache(self, embedding_client):
        container = ServiceContainer()

        await container.initialize(
            _settings(cache_backend="none", rate_limit_counter_enabled=True),
            embedding_client=embedding_client,
        )

        assert container.cache_backend is None
        assert container.rag_engine.embedder._embedding_cache is None
        assert container.rag_engine.rate_limiter._counter is None
        await container.shutdown()

    @pytest.mark.asyncio
    async def test_preset_document_store_is_used(self, document_store, embedding_client):
        container = ServiceContainer()
        container.set_document_store(document_store)

        await container.initialize(_settings(cache_backend="none"), embedding_client=embedding_client)

        assert container.rag_engine.store is document_store
        await container.shutdown()

    @pytest.mark.asyncio
    async def test_unknown_backend_fails(self, embedding_client):
        container = ServiceContainer()

        with pytest.raises(ValueError):
            await container.initialize(
                _settings(document_store_backend="firestore"), embedding_client=embedding_client
            )
        assert container.is_initialized is False

    def test_global_container(self):
        container = create_container()
        set_container(container)
        try:
            assert get_container() is container
        finally:
            set_container(None)

        with pytest.raises(RuntimeError):
            get_container()
