"""Embedding cache service for repeated texts."""

import hashlib
from typing import List, Dict, Optional

from brand_rag.core.logging import get_logger
from brand_rag.services.cache.base import ICacheBackend

logger = get_logger(__name__)


class EmbeddingCacheService:
    """Cache service specifically for embeddings.

    Keys combine the model and the text, so switching the configured model
    never serves vectors produced by the previous one.
    """

    def __init__(self, backend: ICacheBackend, prefix: str = "embedding"):
        """Initialize embedding cache.

        Args:
            backend: Cache backend instance (Redis or memory)
            prefix: Key namespace
        """
        self.backend = backend
        self.prefix = prefix
        self.cache_hits = 0
        self.cache_misses = 0

    def _generate_embedding_key(self, text: str, model: str) -> str:
        hash_obj = hashlib.sha256(f"{text}:{model}".encode("utf-8"))
        return f"{self.prefix}:{model}:{hash_obj.hexdigest()}"

    async def get_embedding(self, text: str, model: str) -> Optional[List[float]]:
        """Get cached embedding if available.

        Returns:
            Embedding vector if cached, None otherwise
        """
        try:
            key = self._generate_embedding_key(text, model)
            cached = await self.backend.get(key)

            if cached:
                self.cache_hits += 1
                logger.debug(f"Embedding cache hit for text hash: {key}")
                return [float(v) for v in cached]

            self.cache_misses += 1
            return None

        except Exception as e:
            logger.warning(f"Failed to get cached embedding: {e}")
            return None

    async def set_embedding(
        self,
        text: str,
        model: str,
        embedding: List[float],
        ttl: Optional[int] = None
    ) -> bool:
        """Cache an embedding.

        Returns:
            True if successfully cached
        """
        try:
            key = self._generate_embedding_key(text, model)
            success = await self.backend.set(key, list(embedding), ttl=ttl)
            if success:
                logger.debug(f"Cached embedding for text hash: {key}")
            return success

        except Exception as e:
            logger.warning(f"Failed to cache embedding: {e}")
            return False

    def get_stats(self) -> Dict[str, float]:
        """Get cache statistics."""
        total = self.cache_hits + self.cache_misses
        hit_rate = self.cache_hits / total if total > 0 else 0

        return {
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "total_requests": total,
            "hit_rate": round(hit_rate, 3)
        }

    def reset_stats(self):
        """Reset cache statistics."""
        self.cache_hits = 0
        self.cache_misses = 0
        logger.info("Embedding cache statistics reset")
