"""In-memory document store for tests and local development."""

import copy
import uuid
from typing import Any, Dict, List, Optional, Sequence

from brand_rag.services.document_store.base import (
    BaseDocumentStore,
    DocumentRef,
    DocumentSnapshot,
    matches,
    validate_collection_path,
    validate_document_path,
    validate_operator,
)


class MemoryDocumentStore(BaseDocumentStore):
    """Dictionary-backed store that mimics the production query semantics.

    Features:
    - Dotted field filters; missing fields never match
    - Atomic batch deletes with the same per-batch limit
    - Records are deep-copied in and out, so callers cannot mutate state
    """

    def __init__(self, max_batch_size: Optional[int] = None):
        self._documents: Dict[str, Dict[str, Any]] = {}
        if max_batch_size is not None:
            self.max_batch_size = max_batch_size

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        path = validate_document_path(path)
        record = self._documents.get(path)
        return copy.deepcopy(record) if record is not None else None

    async def set(self, path: str, record: Dict[str, Any]) -> DocumentRef:
        path = validate_document_path(path)
        self._documents[path] = copy.deepcopy(record)
        return DocumentRef(path)

    async def query(
        self,
        collection_path: str,
        field: str,
        op: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        collection_path = validate_collection_path(collection_path)
        validate_operator(op)

        results = []
        for path, record in self._documents.items():
            ref = DocumentRef(path)
            if ref.collection != collection_path:
                continue
            if matches(record, field, op, value):
                results.append(DocumentSnapshot(ref=ref, data=copy.deepcopy(record)))
                if limit is not None and len(results) >= limit:
                    break
        return results

    async def add(self, collection_path: str, record: Dict[str, Any]) -> DocumentRef:
        collection_path = validate_collection_path(collection_path)
        ref = DocumentRef(f"{collection_path}/{uuid.uuid4().hex}")
        self._documents[ref.path] = copy.deepcopy(record)
        return ref

    async def update(self, ref: DocumentRef, partial: Dict[str, Any]) -> None:
        if ref.path not in self._documents:
            raise KeyError(f"No document to update at {ref.path}")
        self._documents[ref.path].update(copy.deepcopy(partial))

    async def batch_delete(self, refs: Sequence[DocumentRef]) -> None:
        self._check_batch(refs)
        for ref in refs:
            self._documents.pop(ref.path, None)

    async def list_ids(self, collection_path: str) -> List[str]:
        collection_path = validate_collection_path(collection_path)
        prefix = collection_path + "/"
        seen: Dict[str, None] = {}
        for path in self._documents:
            if path.startswith(prefix):
                seen[path[len(prefix):].split("/", 1)[0]] = None
        return list(seen)

    # Testing utilities

    def get_document_count(self, collection_path: Optional[str] = None) -> int:
        """Number of stored documents, optionally within one collection."""
        if collection_path is None:
            return len(self._documents)
        return sum(
            1 for path in self._documents
            if DocumentRef(path).collection == collection_path
        )
