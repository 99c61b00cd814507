"""RAG engine facade.

Coordinates the config cache, embedding provider, rate limiter and vector
store behind the operations the content flow and the operator tools call.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from brand_rag.core.errors import PersistenceFailure
from brand_rag.core.interfaces import IDocumentStore, IEmbeddingClient
from brand_rag.core.logging import get_logger
from brand_rag.models.system_config import SystemConfig
from brand_rag.models.vectors import ContentType, RateLimitDecision
from brand_rag.services.cache.embedding_cache import EmbeddingCacheService
from brand_rag.services.config_cache import CONFIG_CACHE_TTL_SECONDS, ConfigCache
from brand_rag.services.embedding_provider import EmbeddingProvider
from brand_rag.services.rate_limiter import RateLimiter, utcnow
from brand_rag.services.usage_counter import UsageWindowCounter
from brand_rag.services.vector_store import VectorStore

logger = get_logger(__name__)

USERS_COLLECTION = "users"


class RAGEngine:
    """Facade over the vector subsystem.

    The engine owns one ConfigCache and hands it by reference to the
    embedding provider, rate limiter and vector store.

    Usage:
        engine = RAGEngine(store, OpenAIEmbeddingClient(api_key))
        await engine.store_content_vector(user_id, "blog_post", post_id, text)
    """

    def __init__(
        self,
        store: IDocumentStore,
        embedding_client: IEmbeddingClient,
        embedding_cache: Optional[EmbeddingCacheService] = None,
        usage_counter: Optional[UsageWindowCounter] = None,
        config_ttl_seconds: float = CONFIG_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.config_cache = ConfigCache(store, ttl_seconds=config_ttl_seconds)
        self.embedder = EmbeddingProvider(embedding_client, self.config_cache, embedding_cache)
        self.rate_limiter = RateLimiter(store, self.config_cache, usage_counter, clock=clock)
        self.vectors = VectorStore(
            store, self.config_cache, self.rate_limiter, self.embedder, clock=clock
        )

    async def load_system_config(self) -> SystemConfig:
        """Current runtime config. Never raises."""
        return await self.config_cache.load()

    async def save_system_config(self, config: SystemConfig) -> SystemConfig:
        return await self.config_cache.save(config)

    async def check_rate_limit(self, user_id: str) -> RateLimitDecision:
        return await self.rate_limiter.check_rate_limit(user_id)

    async def store_content_vector(
        self,
        user_id: str,
        content_type: Union[ContentType, str],
        content_id: str,
        text_content: str,
        metadata: Optional[Dict[str, Any]] = None,
        source_collection: str = "",
        source_doc_id: str = "",
    ) -> Optional[str]:
        """Embed and store content. Raises only RateLimitExceeded."""
        return await self.vectors.create(
            user_id,
            content_type,
            content_id,
            text_content,
            metadata=metadata,
            source_collection=source_collection,
            source_doc_id=source_doc_id,
        )

    async def update_content_vector(
        self,
        user_id: str,
        content_id: str,
        text_content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Re-embed existing content. Never raises."""
        return await self.vectors.update(user_id, content_id, text_content, metadata)

    async def cleanup_old_vectors(self, user_id: str, keep_days: Optional[int] = None) -> int:
        """Retire old, low-performing vectors. Raises PersistenceFailure."""
        return await self.vectors.cleanup(user_id, keep_days)

    async def cleanup_all_users_vectors(self, keep_days: Optional[int] = None) -> Dict[str, Any]:
        """Run the per-user cleanup for every user.

        A failure for one user is logged and does not stop the sweep.

        Returns:
            {"total_cleaned": int, "users_processed": int, "failed_users": [user ids]}
        """
        result: Dict[str, Any] = {"total_cleaned": 0, "users_processed": 0, "failed_users": []}

        config = await self.config_cache.load()
        if not config.vector_cleanup.enabled:
            logger.info("[RAG Engine] Vector cleanup disabled")
            return result

        try:
            user_ids = await self.store.list_ids(USERS_COLLECTION)
        except Exception as e:
            raise PersistenceFailure(
                f"Error listing users for cleanup: {e}", operation="list", path=USERS_COLLECTION
            ) from e

        for user_id in user_ids:
            try:
                result["total_cleaned"] += await self.vectors.cleanup(user_id, keep_days)
                result["users_processed"] += 1
            except PersistenceFailure as e:
                logger.error(f"[RAG Engine] {e.message}")
                result["failed_users"].append(user_id)

        logger.info(
            f"[RAG Engine] Cleanup complete: {result['total_cleaned']} vectors from "
            f"{result['users_processed']} users"
        )
        return result

    async def get_user_vector_count(self, user_id: str) -> int:
        """Number of vectors stored for a user (0 if the store is unreadable)."""
        try:
            return await self.vectors.count(user_id)
        except Exception as e:
            logger.error(f"[RAG Engine] Error counting vectors for user {user_id}: {e}")
            return 0
