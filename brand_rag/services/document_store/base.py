"""Shared types and helpers for document store backends.

Paths follow the collection/document convention: an odd number of segments
names a collection (``users/u1/ragVectors``), an even number names a
document (``users/u1/ragVectors/abc123``).
"""

import operator
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

DEFAULT_MAX_BATCH_SIZE = 500

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_MISSING = object()


@dataclass(frozen=True)
class DocumentRef:
    """Reference to a stored document."""

    path: str

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def collection(self) -> str:
        return self.path.rsplit("/", 1)[0]


@dataclass
class DocumentSnapshot:
    """A document read from the store."""

    ref: DocumentRef
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.ref.id


def validate_operator(op: str) -> str:
    if op not in _OPERATORS:
        raise ValueError(f"Unsupported query operator: {op!r}. Supported: {sorted(_OPERATORS)}")
    return op


def validate_collection_path(path: str) -> str:
    segments = [s for s in path.split("/") if s]
    if not segments or len(segments) % 2 == 0:
        raise ValueError(f"Not a collection path: {path!r}")
    return "/".join(segments)


def validate_document_path(path: str) -> str:
    segments = [s for s in path.split("/") if s]
    if not segments or len(segments) % 2 == 1:
        raise ValueError(f"Not a document path: {path!r}")
    return "/".join(segments)


def get_field(record: Dict[str, Any], dotted: str) -> Any:
    """Resolve ``metadata.createdAt`` style paths; returns _MISSING if absent."""
    current: Any = record
    for part in dotted.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def matches(record: Dict[str, Any], field_path: str, op: str, value: Any) -> bool:
    """Evaluate one field filter the way the store does.

    Missing or null fields never match, and neither do values that cannot be
    compared with the filter value.
    """
    actual = get_field(record, field_path)
    if actual is _MISSING or actual is None:
        return False
    try:
        return bool(_OPERATORS[op](actual, value))
    except TypeError:
        return False


class BaseDocumentStore(ABC):
    """Abstract base for document store backends."""

    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE

    async def initialize(self) -> None:
        """Prepare the backend. Override if needed."""

    async def close(self) -> None:
        """Release resources. Override if needed."""

    @abstractmethod
    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def set(self, path: str, record: Dict[str, Any]) -> DocumentRef:
        ...

    @abstractmethod
    async def query(
        self,
        collection_path: str,
        field: str,
        op: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        ...

    @abstractmethod
    async def add(self, collection_path: str, record: Dict[str, Any]) -> DocumentRef:
        ...

    @abstractmethod
    async def update(self, ref: DocumentRef, partial: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def batch_delete(self, refs: Sequence[DocumentRef]) -> None:
        ...

    @abstractmethod
    async def list_ids(self, collection_path: str) -> List[str]:
        ...

    def _check_batch(self, refs: Sequence[DocumentRef]) -> None:
        if len(refs) > self.max_batch_size:
            raise ValueError(
                f"Batch of {len(refs)} exceeds the limit of {self.max_batch_size} operations"
            )
