"""Protocol definitions for the external capabilities the subsystem consumes.

The vector services only ever talk to these interfaces, so a test can hand
in an in-memory store or a stub embedding client.
"""

from typing import Protocol, Optional, List, Dict, Any, Sequence, runtime_checkable

from brand_rag.services.document_store.base import DocumentRef, DocumentSnapshot


@runtime_checkable
class IDocumentStore(Protocol):
    """Interface for the persistent document store."""

    max_batch_size: int

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        """Read a single document, or None if it does not exist."""
        ...

    async def set(self, path: str, record: Dict[str, Any]) -> DocumentRef:
        """Create or replace a document at an explicit path."""
        ...

    async def query(
        self,
        collection_path: str,
        field: str,
        op: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        """Return documents of a collection whose (dotted) field matches.

        Documents missing the field never match.
        """
        ...

    async def add(self, collection_path: str, record: Dict[str, Any]) -> DocumentRef:
        """Add a document with a generated id."""
        ...

    async def update(self, ref: DocumentRef, partial: Dict[str, Any]) -> None:
        """Replace the given top-level fields of an existing document."""
        ...

    async def batch_delete(self, refs: Sequence[DocumentRef]) -> None:
        """Delete all refs atomically. At most max_batch_size refs per call."""
        ...

    async def list_ids(self, collection_path: str) -> List[str]:
        """Ids of the direct children of a collection (including ones that
        only hold subcollections)."""
        ...


@runtime_checkable
class IEmbeddingClient(Protocol):
    """Interface for the hosted embedding provider."""

    async def embed(self, text: str, model: str, dimensions: Optional[int] = None) -> List[float]:
        """Embed a text with the given model, shortened to `dimensions` when
        the model supports it. Raises on provider failure."""
        ...
