"""Cache backends shared by the embedding cache and the quota counters.

Usage:
    backend = build_cache_backend("redis", redis_url="redis://localhost:6379")
    await backend.connect()

    embeddings = EmbeddingCacheService(backend)
    await embeddings.set_embedding("text", "text-embedding-3-small", vector, ttl=3600)
"""

from typing import Optional

from brand_rag.services.cache.base import CacheStats, ICacheBackend
from brand_rag.services.cache.embedding_cache import EmbeddingCacheService
from brand_rag.services.cache.memory_backend import MemoryBackend

__all__ = [
    "CacheStats",
    "EmbeddingCacheService",
    "ICacheBackend",
    "MemoryBackend",
    "build_cache_backend",
]


def build_cache_backend(backend: str, redis_url: Optional[str] = None) -> Optional[ICacheBackend]:
    """Create the configured cache backend, or None when caching is off."""
    if backend == "none":
        return None
    if backend == "memory":
        return MemoryBackend()
    if backend == "redis":
        from brand_rag.services.cache.redis_backend import RedisBackend

        return RedisBackend(redis_url)
    raise ValueError(f"Unknown cache backend: {backend!r}. Supported: 'redis', 'memory', 'none'")
