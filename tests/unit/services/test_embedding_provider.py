"""Tests for the embedding provider adapter."""

import logging

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from brand_rag.services.cache.embedding_cache import EmbeddingCacheService
from brand_rag.services.config_cache import ConfigCache
from brand_rag.services.embedding_provider import EmbeddingProvider, OpenAIEmbeddingClient


class TestEmbed:
    """Tests for EmbeddingProvider.embed."""

    @pytest.mark.asyncio
    async def test_uses_configured_model(self, document_store, seed_config, make_embedding_client):
        await seed_config(embedding={"model": "text-embedding-3-large", "dimensions": 8})
        client = make_embedding_client(dimensions=8)
        provider = EmbeddingProvider(client, ConfigCache(document_store))

        vector = await provider.embed("hello")

        assert len(vector) == 8
        assert client.calls == [("hello", "text-embedding-3-large", 8)]

    @pytest.mark.asyncio
    async def test_defaults_without_config_cache(self, embedding_client):
        provider = EmbeddingProvider(embedding_client)

        vector = await provider.embed("hello")

        assert len(vector) == 1536
        assert embedding_client.calls[0][1] == "text-embedding-3-small"

    @pytest.mark.asyncio
    async def test_provider_failure_returns_zero_vector(self, document_store, failing_embedding_client):
        """embed never raises: a failing provider yields zeros of the configured length."""
        provider = EmbeddingProvider(failing_embedding_client, ConfigCache(document_store))

        vector = await provider.embed("x")

        assert len(vector) == 1536
        assert all(v == 0.0 for v in vector)

    @pytest.mark.asyncio
    async def test_zero_vector_uses_configured_dimensions(
        self, document_store, seed_config, failing_embedding_client
    ):
        await seed_config(embedding={"dimensions": 256})
        provider = EmbeddingProvider(failing_embedding_client, ConfigCache(document_store))

        vector = await provider.embed("x")

        assert vector == [0.0] * 256

    @pytest.mark.asyncio
    async def test_unreachable_config_falls_back_to_1536(self, failing_embedding_client):
        config_cache = MagicMock()
        config_cache.load = AsyncMock(side_effect=RuntimeError("config gone"))
        provider = EmbeddingProvider(failing_embedding_client, config_cache)

        vector = await provider.embed("x")

        assert vector == [0.0] * 1536

    @pytest.mark.asyncio
    async def test_dimension_mismatch_is_logged_not_fatal(
        self, document_store, make_embedding_client, caplog
    ):
        provider = EmbeddingProvider(make_embedding_client(dimensions=3), ConfigCache(document_store))

        with caplog.at_level(logging.WARNING):
            vector = await provider.embed("hello")

        assert vector == [0.1, 0.1, 0.1]
        assert "dimension mismatch" in caplog.text


class TestEmbeddingCache:
    """Tests for the optional embedding cache."""

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(
        self, document_store, connected_memory_backend, embedding_client
    ):
        cache = EmbeddingCacheService(connected_memory_backend)
        provider = EmbeddingProvider(embedding_client, ConfigCache(document_store), cache)

        first = await provider.embed("same text")
        second = await provider.embed("same text")

        assert first == second
        assert len(embedding_client.calls) == 1
        assert cache.get_stats()["cache_hits"] == 1

    @pytest.mark.asyncio
    async def test_cache_disabled_in_config(
        self, document_store, seed_config, connected_memory_backend, embedding_client
    ):
        await seed_config(performance={"cacheEnabled": False})
        cache = EmbeddingCacheService(connected_memory_backend)
        provider = EmbeddingProvider(embedding_client, ConfigCache(document_store), cache)

        await provider.embed("same text")
        await provider.embed("same text")

        assert len(embedding_client.calls) == 2
        assert connected_memory_backend.get_all_keys() == []

    @pytest.mark.asyncio
    async def test_cache_entry_uses_configured_ttl(
        self, document_store, seed_config, embedding_client
    ):
        from brand_rag.services.cache.memory_backend import MemoryBackend

        now = [0.0]
        backend = MemoryBackend(clock=lambda: now[0])
        await backend.connect()
        await seed_config(performance={"cacheTTLSeconds": 60})
        provider = EmbeddingProvider(
            embedding_client, ConfigCache(document_store), EmbeddingCacheService(backend)
        )

        await provider.embed("text")
        key = backend.get_all_keys()[0]

        assert backend.get_raw_entry(key).expires_at == 60.0

    @pytest.mark.asyncio
    async def test_fallback_vectors_are_not_cached(
        self, document_store, connected_memory_backend, failing_embedding_client
    ):
        cache = EmbeddingCacheService(connected_memory_backend)
        provider = EmbeddingProvider(failing_embedding_client, ConfigCache(document_store), cache)

        await provider.embed("text")

        assert connected_memory_backend.get_all_keys() == []


class TestOpenAIEmbeddingClient:
    """Tests for the LangChain-backed client."""

    @pytest.mark.asyncio
    async def test_one_client_per_model(self):
        with patch("brand_rag.services.embedding_provider.OpenAIEmbeddings") as embeddings_cls:
            instance = MagicMock()
            instance.aembed_query = AsyncMock(return_value=[0.5, 0.5])
            embeddings_cls.return_value = instance

            client = OpenAIEmbeddingClient(api_key="sk-test")
            await client.embed("a", "model-a")
            await client.embed("b", "model-a")
            await client.embed("c", "model-b")

        assert embeddings_cls.call_count == 2
        embeddings_cls.assert_any_call(model="model-a", api_key="sk-test")
        instance.aembed_query.assert_any_await("b")

    @pytest.mark.asyncio
    async def test_dimensions_are_passed_to_openai(self):
        with patch("brand_rag.services.embedding_provider.OpenAIEmbeddings") as embeddings_cls:
            instance = MagicMock()
            instance.aembed_query = AsyncMock(return_value=[0.5] * 256)
            embeddings_cls.return_value = instance

            client = OpenAIEmbeddingClient(api_key="sk-test")
            await client.embed("a", "text-embedding-3-small", 256)
            await client.embed("b", "text-embedding-3-small", 1536)

        assert embeddings_cls.call_count == 2
        embeddings_cls.assert_any_call(model="text-embedding-3-small", api_key="sk-test", dimensions=256)
        embeddings_cls.assert_any_call(model="text-embedding-3-small", api_key="sk-test", dimensions=1536)

    @pytest.mark.asyncio
    async def test_provider_requests_configured_dimensions(
        self, document_store, seed_config, make_embedding_client
    ):
        await seed_config(embedding={"model": "text-embedding-3-small", "dimensions": 256})
        client = make_embedding_client(dimensions=256)
        provider = EmbeddingProvider(client, ConfigCache(document_store))

        await provider.embed("hello")

        assert client.calls == [("hello", "text-embedding-3-small", 256)]
