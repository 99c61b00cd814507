"""SQLite-backed document store."""

from __future__ import annotations

import json
import os
import re
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import aiosqlite

from brand_rag.core.logging import get_logger
from brand_rag.services.document_store.base import (
    BaseDocumentStore,
    DocumentRef,
    DocumentSnapshot,
    validate_collection_path,
    validate_document_path,
    validate_operator,
)

logger = get_logger(__name__)

_FIELD_PATTERN = re.compile(r"^[A-Za-z0-9_]+(\.[A-Za-z0-9_]+)*$")
_SQL_OPERATORS = {"==": "=", "!=": "!=", "<": "<", "<=": "<=", ">": ">", ">=": ">="}


def _encode_value(value: Any) -> Any:
    """Datetimes become fixed-width UTC ISO strings so they sort lexically."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode_value(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value


def _dumps(record: Dict[str, Any]) -> str:
    return json.dumps(_encode_value(record))


class SQLiteDocumentStore(BaseDocumentStore):
    """Stores every document as a JSON blob keyed by its full path.

    Field filters run through ``json_extract``; a missing field yields NULL,
    which never satisfies a comparison.
    """

    def __init__(self, db_path: str, max_batch_size: Optional[int] = None) -> None:
        self.db_path = db_path
        if max_batch_size is not None:
            self.max_batch_size = max_batch_size
        self._initialized = False

    async def initialize(self) -> None:
        """Ensure the underlying SQLite database and table exist."""
        if self._initialized:
            return

        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    path TEXT PRIMARY KEY,
                    collection TEXT NOT NULL,
                    data TEXT NOT NULL
                )
                """
            )
            await db.execute(
                "CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection)"
            )
            await db.commit()

        self._initialized = True
        logger.info("Document store initialized at %s", self.db_path)

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        path = validate_document_path(path)
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute("SELECT data FROM documents WHERE path = ?", (path,)) as cursor:
                row = await cursor.fetchone()
        return json.loads(row[0]) if row else None

    async def set(self, path: str, record: Dict[str, Any]) -> DocumentRef:
        path = validate_document_path(path)
        ref = DocumentRef(path)
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO documents (path, collection, data) VALUES (?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET data=excluded.data
                """,
                (path, ref.collection, _dumps(record)),
            )
            await db.commit()
        return ref

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
        if not _FIELD_PATTERN.match(field):
            raise ValueError(f"Invalid field path: {field!r}")

        sql = (
            "SELECT path, data FROM documents "
            f"WHERE collection = ? AND json_extract(data, ?) {_SQL_OPERATORS[op]} ?"
        )
        params: List[Any] = [collection_path, f"$.{field}", _encode_value(value)]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(sql, params) as cursor:
                rows = await cursor.fetchall()

        return [DocumentSnapshot(ref=DocumentRef(path), data=json.loads(data)) for path, data in rows]

    async def add(self, collection_path: str, record: Dict[str, Any]) -> DocumentRef:
        collection_path = validate_collection_path(collection_path)
        ref = DocumentRef(f"{collection_path}/{uuid.uuid4().hex}")
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT INTO documents (path, collection, data) VALUES (?, ?, ?)",
                (ref.path, collection_path, _dumps(record)),
            )
            await db.commit()
        return ref

    async def update(self, ref: DocumentRef, partial: Dict[str, Any]) -> None:
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute("SELECT data FROM documents WHERE path = ?", (ref.path,)) as cursor:
                row = await cursor.fetchone()
            if row is None:
                raise KeyError(f"No document to update at {ref.path}")

            record = json.loads(row[0])
            record.update(_encode_value(partial))
            await db.execute(
                "UPDATE documents SET data = ? WHERE path = ?",
                (json.dumps(record), ref.path),
            )
            await db.commit()

    async def batch_delete(self, refs: Sequence[DocumentRef]) -> None:
        self._check_batch(refs)
        if not refs:
            return

        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            # Single transaction: nothing is committed unless every delete ran
            await db.executemany(
                "DELETE FROM documents WHERE path = ?",
                [(ref.path,) for ref in refs],
            )
            await db.commit()

    async def list_ids(self, collection_path: str) -> List[str]:
        collection_path = validate_collection_path(collection_path)
        prefix = collection_path + "/"

        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT path FROM documents WHERE substr(path, 1, ?) = ? ORDER BY path",
                (len(prefix), prefix),
            ) as cursor:
                rows = await cursor.fetchall()

        seen: Dict[str, None] = {}
        for (path,) in rows:
            seen[path[len(prefix):].split("/", 1)[0]] = None
        return list(seen)
