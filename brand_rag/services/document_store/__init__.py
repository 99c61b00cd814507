"""Document store backends.

The production deployment keeps brand data in a hosted document database;
these backends implement the same narrow capability (get, query, add,
update, batch delete) for local runs and tests.
"""

from brand_rag.services.document_store.base import (
    BaseDocumentStore,
    DocumentRef,
    DocumentSnapshot,
)
from brand_rag.services.document_store.memory_store import MemoryDocumentStore
from brand_rag.services.document_store.sqlite_store import SQLiteDocumentStore

__all__ = [
    "BaseDocumentStore",
    "DocumentRef",
    "DocumentSnapshot",
    "MemoryDocumentStore",
    "SQLiteDocumentStore",
    "build_document_store",
]


def build_document_store(backend: str = "sqlite", **kwargs) -> BaseDocumentStore:
    """
    Factory: create a document store of the requested type.

    Args:
        backend: "sqlite" or "memory"
        **kwargs: Backend-specific configuration

    Raises:
        ValueError: Unknown backend
    """
    if backend == "sqlite":
        return SQLiteDocumentStore(**kwargs)
    if backend == "memory":
        kwargs.pop("db_path", None)
        return MemoryDocumentStore(**kwargs)
    raise ValueError(
        f"Unknown document store backend: {backend!r}. Supported: 'sqlite', 'memory'"
    )
