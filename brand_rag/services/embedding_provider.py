"""Embedding provider adapter.

Wraps the hosted embedding call so that it never raises: the model and
dimension come from the runtime config, a dimension mismatch is only
logged, and any provider failure yields a zero vector of the configured
length. A zero vector never matches in similarity search, which is the
accepted degraded behavior.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings

from brand_rag.core.errors import ProviderDegraded
from brand_rag.core.interfaces import IEmbeddingClient
from brand_rag.core.logging import get_logger
from brand_rag.models.system_config import (
    DEFAULT_EMBEDDING_DIMENSIONS,
    DEFAULT_EMBEDDING_MODEL,
    PerformanceConfig,
)
from brand_rag.services.cache.embedding_cache import EmbeddingCacheService
from brand_rag.services.config_cache import ConfigCache

logger = get_logger(__name__)


class OpenAIEmbeddingClient:
    """Embedding capability backed by the OpenAI embeddings API.

    The model and dimensions are chosen per call from the runtime config, so
    one LangChain embeddings object is kept per (model, dimensions) pair.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self._api_key = api_key
        self._base_url = base_url
        self._clients: Dict[Tuple[str, Optional[int]], Embeddings] = {}

    def _client_for(self, model: str, dimensions: Optional[int] = None) -> Embeddings:
        client = self._clients.get((model, dimensions))
        if client is None:
            logger.info(f"Creating OpenAI embeddings: {model} with {dimensions or 'native'} dimensions")
            kwargs = {"model": model, "api_key": self._api_key}
            if dimensions:
                kwargs["dimensions"] = dimensions
            if self._base_url:
                kwargs["base_url"] = self._base_url
            client = OpenAIEmbeddings(**kwargs)
            self._clients[(model, dimensions)] = client
        return client

    async def embed(self, text: str, model: str, dimensions: Optional[int] = None) -> List[float]:
        return await self._client_for(model, dimensions).aembed_query(text)


class EmbeddingProvider:
    """Config-aware, failure-tolerant embedding generator."""

    def __init__(
        self,
        client: IEmbeddingClient,
        config_cache: Optional[ConfigCache] = None,
        embedding_cache: Optional[EmbeddingCacheService] = None,
    ):
        """
        Args:
            client: The external embedding capability.
            config_cache: The engine's config cache. Without one the built-in
                model and dimension defaults are used.
            embedding_cache: Optional cache consulted when the runtime config
                has caching enabled.
        """
        self._client = client
        self._config_cache = config_cache
        self._embedding_cache = embedding_cache

    async def _resolve(self) -> Tuple[str, int, Optional[PerformanceConfig]]:
        if self._config_cache is None:
            return DEFAULT_EMBEDDING_MODEL, DEFAULT_EMBEDDING_DIMENSIONS, None
        config = await self._config_cache.load()
        return config.embedding.model, config.embedding.dimensions, config.performance

    async def _fallback_dimensions(self) -> int:
        try:
            _, dimensions, _ = await self._resolve()
            return dimensions
        except Exception:
            return DEFAULT_EMBEDDING_DIMENSIONS

    async def embed(self, text: str) -> List[float]:
        """Embed text. Never raises."""
        model = DEFAULT_EMBEDDING_MODEL
        try:
            model, dimensions, performance = await self._resolve()
            use_cache = (
                self._embedding_cache is not None
                and performance is not None
                and performance.cache_enabled
            )

            embedding = None
            if use_cache:
                embedding = await self._embedding_cache.get_embedding(text, model)

            from_cache = embedding is not None
            if embedding is None:
                embedding = [float(v) for v in await self._client.embed(text, model, dimensions)]

            if len(embedding) != dimensions:
                logger.warning(
                    f"[RAG] Embedding dimension mismatch: expected {dimensions}, got {len(embedding)}"
                )

            if use_cache and not from_cache:
                await self._embedding_cache.set_embedding(
                    text, model, embedding, ttl=performance.cache_ttl_seconds
                )

            return embedding

        except Exception as e:
            degraded = ProviderDegraded(f"Error generating embedding: {e}", model=model)
            logger.error(f"[RAG] {degraded.message}; returning zero vector")
            return [0.0] * await self._fallback_dimensions()
