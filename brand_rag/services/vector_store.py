"""Lifecycle of per-user content vectors: create, update in place, retire."""

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Union

from brand_rag.core.errors import PersistenceFailure, RateLimitExceeded
from brand_rag.core.interfaces import IDocumentStore
from brand_rag.core.logging import get_logger
from brand_rag.models.vectors import (
    ContentType,
    ContentVector,
    VectorMetadata,
    caller_metadata,
    user_vectors_path,
)
from brand_rag.services.config_cache import ConfigCache
from brand_rag.services.document_store.base import DocumentRef, matches
from brand_rag.services.embedding_provider import EmbeddingProvider
from brand_rag.services.rate_limiter import RateLimiter, utcnow

logger = get_logger(__name__)


class VectorStore:
    """Owns the ContentVector records under users/{userId}/ragVectors.

    create() and update() are best-effort: apart from quota rejection on
    create, their failures are logged and swallowed. cleanup() is an
    operator action and raises PersistenceFailure.
    """

    def __init__(
        self,
        store: IDocumentStore,
        config_cache: ConfigCache,
        rate_limiter: RateLimiter,
        embedder: EmbeddingProvider,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._config_cache = config_cache
        self._rate_limiter = rate_limiter
        self._embedder = embedder
        self._clock = clock

    async def create(
        self,
        user_id: str,
        content_type: Union[ContentType, str],
        content_id: str,
        text_content: str,
        metadata: Optional[Dict[str, Any]] = None,
        source_collection: str = "",
        source_doc_id: str = "",
    ) -> Optional[str]:
        """Embed and store a new vector.

        Returns:
            The new document id, or None if storing failed.

        Raises:
            RateLimitExceeded: The user is over quota.
        """
        reservation = await self._rate_limiter.acquire(user_id)
        if not reservation.allowed:
            raise RateLimitExceeded(reservation.reason or "Rate limit exceeded", user_id=user_id)

        path = user_vectors_path(user_id)
        try:
            embedding = await self._embedder.embed(text_content)
            now = self._clock()
            vector = ContentVector(
                user_id=user_id,
                content_type=ContentType(content_type),
                content_id=content_id,
                embedding=embedding,
                text_content=text_content,
                source_collection=source_collection,
                source_doc_id=source_doc_id,
                metadata=VectorMetadata(
                    **caller_metadata(metadata),
                    created_at=now,
                    updated_at=now,
                    version=1,
                ),
            )
            ref = await self._store.add(path, vector.to_record())
        except Exception as e:
            failure = PersistenceFailure(
                f"Error storing content vector {content_id}: {e}", operation="create", path=path
            )
            logger.error(f"[RAG Engine] {failure.message} (user {user_id})")
            await reservation.release()
            return None

        logger.info(f"[RAG Engine] Stored vector for {vector.content_type.value} {content_id} (user {user_id})")
        return ref.id

    async def update(
        self,
        user_id: str,
        content_id: str,
        text_content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Re-embed an existing vector in place.

        Updates never create: an unknown content id is a logged no-op.

        Returns:
            True if a vector was updated.
        """
        path = user_vectors_path(user_id)
        try:
            docs = await self._store.query(path, "contentId", "==", content_id, limit=1)
            if not docs:
                logger.info(f"[RAG Engine] No existing vector for content {content_id} (user {user_id})")
                return False

            snapshot = docs[0]
            existing = ContentVector.from_record(snapshot.id, snapshot.data)
            embedding = await self._embedder.embed(text_content)

            merged = existing.metadata.model_dump(by_alias=True)
            merged.update(caller_metadata(metadata))
            merged["version"] = existing.metadata.version + 1
            merged["updatedAt"] = self._clock()
            new_metadata = VectorMetadata.model_validate(merged)

            await self._store.update(
                snapshot.ref,
                {
                    "embedding": embedding,
                    "textContent": text_content,
                    "metadata": new_metadata.to_record(),
                },
            )
        except Exception as e:
            failure = PersistenceFailure(
                f"Error updating content vector {content_id}: {e}", operation="update", path=path
            )
            logger.error(f"[RAG Engine] {failure.message} (user {user_id})")
            return False

        logger.info(
            f"[RAG Engine] Updated vector for {content_id} to version {new_metadata.version} (user {user_id})"
        )
        return True

    async def cleanup(self, user_id: str, keep_days: Optional[int] = None) -> int:
        """Delete vectors that are both older than the retention window and
        scored below the performance threshold.

        Returns:
            Number of vectors deleted.

        Raises:
            PersistenceFailure: The query or a delete batch failed.
        """
        config = await self._config_cache.load()
        if not config.vector_cleanup.enabled:
            logger.info("[RAG Engine] Vector cleanup disabled")
            return 0

        retention_days = keep_days if keep_days is not None else config.vector_cleanup.retention_days
        threshold = config.vector_cleanup.min_performance_threshold
        cutoff = self._clock() - timedelta(days=retention_days)
        path = user_vectors_path(user_id)

        try:
            old = await self._store.query(path, "metadata.createdAt", "<", cutoff)
            doomed: List[DocumentRef] = [
                doc.ref for doc in old
                if matches(doc.data, "metadata.performance", "<", threshold)
            ]
            if not doomed:
                logger.info(f"[RAG Engine] No vectors to clean up for user {user_id}")
                return 0

            batch_size = self._store.max_batch_size
            for start in range(0, len(doomed), batch_size):
                await self._store.batch_delete(doomed[start:start + batch_size])
        except Exception as e:
            raise PersistenceFailure(
                f"Error cleaning up vectors for user {user_id}: {e}", operation="cleanup", path=path
            ) from e

        logger.info(f"[RAG Engine] Cleaned up {len(doomed)} old vectors for user {user_id}")
        return len(doomed)

    async def get_by_content_id(self, user_id: str, content_id: str) -> Optional[ContentVector]:
        docs = await self._store.query(
            user_vectors_path(user_id), "contentId", "==", content_id, limit=1
        )
        if not docs:
            return None
        return ContentVector.from_record(docs[0].id, docs[0].data)

    async def count(self, user_id: str) -> int:
        return len(await self._store.list_ids(user_vectors_path(user_id)))
