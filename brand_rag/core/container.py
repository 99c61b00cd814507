"""Dependency injection container for service management.

Owns the document store, the optional cache backend and the RAG engine
built on top of them, and manages their lifecycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from brand_rag.core.logging import get_logger

if TYPE_CHECKING:
    from brand_rag.core.config import Settings
    from brand_rag.core.interfaces import IDocumentStore, IEmbeddingClient
    from brand_rag.services.auto_vectorizer import AutoVectorizer
    from brand_rag.services.cache.base import ICacheBackend
    from brand_rag.services.rag_engine import RAGEngine

logger = get_logger(__name__)


class ServiceNotInitializedError(Exception):
    """Raised when accessing a service that hasn't been initialized."""

    def __init__(self, service_name: str):
        super().__init__(f"Service '{service_name}' has not been initialized. "
                         f"Call container.initialize() first.")
        self.service_name = service_name


@dataclass
class ServiceContainer:
    """Centralized container for dependency injection.

    Usage:
        container = ServiceContainer()
        await container.initialize(settings)

        engine = container.rag_engine

        await container.shutdown()
    """

    _document_store: Optional[IDocumentStore] = field(default=None, repr=False)
    _cache_backend: Optional[ICacheBackend] = field(default=None, repr=False)
    _rag_engine: Optional[RAGEngine] = field(default=None, repr=False)
    _auto_vectorizer: Optional[AutoVectorizer] = field(default=None, repr=False)
    _initialized: bool = field(default=False, repr=True)
    _settings: Optional[Settings] = field(default=None, repr=False)

    async def initialize(
        self,
        settings: Settings,
        embedding_client: Optional[IEmbeddingClient] = None,
    ) -> None:
        """Initialize all services.

        Args:
            settings: Application settings.
            embedding_client: Embedding capability; defaults to the OpenAI
                client built from settings.

        Raises:
            Exception: If any service fails to initialize.
        """
        if self._initialized:
            logger.warning("Container already initialized, skipping")
            return

        self._settings = settings
        logger.info("Initializing service container...")

        try:
            # Import here to avoid circular imports
            from brand_rag.services.auto_vectorizer import AutoVectorizer
            from brand_rag.services.cache import EmbeddingCacheService, build_cache_backend
            from brand_rag.services.document_store import build_document_store
            from brand_rag.services.embedding_provider import OpenAIEmbeddingClient
            from brand_rag.services.rag_engine import RAGEngine
            from brand_rag.services.usage_counter import UsageWindowCounter

            if self._document_store is None:
                self._document_store = build_document_store(
                    settings.document_store_backend,
                    db_path=settings.sqlite_path,
                    max_batch_size=settings.store_batch_limit,
                )
            await self._document_store.initialize()
            logger.info(f"Document store initialized ({settings.document_store_backend})")

            if self._cache_backend is None:
                self._cache_backend = build_cache_backend(settings.cache_backend, settings.redis_url)
            if self._cache_backend is not None:
                await self._cache_backend.connect()
                logger.info(f"Cache backend connected ({settings.cache_backend})")

            cache_ready = self._cache_backend is not None and self._cache_backend.enabled
            embedding_cache = (
                EmbeddingCacheService(self._cache_backend, prefix=settings.embedding_cache_prefix)
                if cache_ready else None
            )
            counter = (
                UsageWindowCounter(self._cache_backend)
                if cache_ready and settings.rate_limit_counter_enabled else None
            )

            if embedding_client is None:
                embedding_client = OpenAIEmbeddingClient(
                    api_key=settings.openai_api_key,
                    base_url=settings.openai_base_url,
                )

            self._rag_engine = RAGEngine(
                self._document_store,
                embedding_client,
                embedding_cache=embedding_cache,
                usage_counter=counter,
                config_ttl_seconds=settings.config_cache_ttl_seconds,
            )
            self._auto_vectorizer = AutoVectorizer(self._rag_engine)
            logger.info("RAG engine initialized")

            self._initialized = True
            logger.info("Service container initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize service container: {e}")
            await self.shutdown()
            raise

    async def shutdown(self) -> None:
        """Shutdown all services and cleanup resources."""
        logger.info("Shutting down service container...")

        if self._cache_backend:
            try:
                await self._cache_backend.disconnect()
                logger.info("Cache backend disconnected")
            except Exception as e:
                logger.error(f"Error disconnecting cache: {e}")

        if self._document_store:
            try:
                await self._document_store.close()
                logger.info("Document store closed")
            except Exception as e:
                logger.error(f"Error closing document store: {e}")

        self._initialized = False
        logger.info("Service container shut down")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            raise ServiceNotInitializedError("settings")
        return self._settings

    @property
    def document_store(self) -> IDocumentStore:
        if self._document_store is None:
            raise ServiceNotInitializedError("document_store")
        return self._document_store

    @property
    def cache_backend(self) -> Optional[ICacheBackend]:
        """The cache backend, or None when caching is off."""
        return self._cache_backend

    @property
    def rag_engine(self) -> RAGEngine:
        if self._rag_engine is None:
            raise ServiceNotInitializedError("rag_engine")
        return self._rag_engine

    @property
    def auto_vectorizer(self) -> AutoVectorizer:
        if self._auto_vectorizer is None:
            raise ServiceNotInitializedError("auto_vectorizer")
        return self._auto_vectorizer

    def set_document_store(self, store: IDocumentStore) -> None:
        """Set the document store (for testing)."""
        self._document_store = store

    def set_cache_backend(self, backend: ICacheBackend) -> None:
        """Set the cache backend (for testing)."""
        self._cache_backend = backend

    def set_rag_engine(self, engine: RAGEngine) -> None:
        """Set the RAG engine (for testing)."""
        self._rag_engine = engine

    def set_auto_vectorizer(self, auto_vectorizer: AutoVectorizer) -> None:
        """Set the auto-vectorizer (for testing)."""
        self._auto_vectorizer = auto_vectorizer


# Module-level container instance
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """Get the global service container instance.

    Raises:
        RuntimeError: If the container hasn't been created yet.
    """
    if _container is None:
        raise RuntimeError(
            "Service container not created. Call set_container() first "
            "or use the FastAPI app.state.container."
        )
    return _container


def set_container(container: Optional[ServiceContainer]) -> None:
    """Set the global service container instance."""
    global _container
    _container = container


def create_container() -> ServiceContainer:
    """Create a new service container instance (isolated, for tests)."""
    return ServiceContainer()
