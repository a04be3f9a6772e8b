"""SQLite-backed document store.

Documents live in a single ``documents`` table keyed by (collection, id)
with the payload serialized as JSON. Blocking sqlite3 calls run in a worker
thread so the event loop keeps serving other requests.

Storage location: configured by ``DND_COMPANION_STORE_DATABASE_PATH``.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import Generator, Mapping, Sequence
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from dnd_companion.core.exceptions import DocumentStoreError, NotFoundError
from dnd_companion.core.logging import get_logger
from dnd_companion.storage.base import (
    Filter,
    IndexRegistry,
    apply_changes,
    filter_documents,
    sort_documents,
    strip_transforms,
)


logger = get_logger(__name__)


class SQLiteDocumentStore:
    """DocumentStore persisted to a SQLite file.

    Filtering and sorting happen in Python after loading the collection,
    which is adequate for per-user collections of a few hundred documents.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path, indexes: IndexRegistry | None = None) -> None:
        """Initialize the store.

        Args:
            db_path: Path to the database file. Parent directories are created.
            indexes: Composite index registry enforced on queries.
        """
        self.db_path = Path(db_path)
        self.indexes = indexes or IndexRegistry()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()
        logger.info(f"Document store initialized at {self.db_path}")

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with proper cleanup."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise DocumentStoreError(f"Cannot open database: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data_json TEXT NOT NULL,
                    written_at TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
            """)
            cursor.execute("""
                INSERT OR REPLACE INTO schema_version (version) VALUES (?)
            """, (self.SCHEMA_VERSION,))

    # =========================================================================
    # Synchronous primitives (run in a worker thread)
    # =========================================================================

    @staticmethod
    def _decode(document_id: str, data_json: str) -> dict[str, Any]:
        document = json.loads(data_json)
        document["id"] = document_id
        return document

    def _get_sync(self, collection: str, document_id: str) -> dict[str, Any] | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT id, data_json FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            ).fetchone()
        if row is None:
            return None
        return self._decode(row["id"], row["data_json"])

    def _all_sync(self, collection: str) -> list[dict[str, Any]]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT id, data_json FROM documents WHERE collection = ?",
                (collection,),
            ).fetchall()
        return [self._decode(row["id"], row["data_json"]) for row in rows]

    def _write_sync(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO documents (collection, id, data_json, written_at)
                VALUES (?, ?, ?, ?)
                """,
                (collection, document_id, json.dumps(data, default=str), datetime.now().isoformat()),
            )

    def _update_sync(self, collection: str, document_id: str, changes: Mapping[str, Any]) -> None:
        # Read and write share one connection so the transform is atomic.
        with self._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT data_json FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            ).fetchone()
            if row is None:
                raise NotFoundError(
                    "Cannot update a missing document",
                    collection=collection,
                    document_id=document_id,
                )
            updated = apply_changes(json.loads(row["data_json"]), changes)
            conn.execute(
                "UPDATE documents SET data_json = ?, written_at = ? WHERE collection = ? AND id = ?",
                (json.dumps(updated, default=str), datetime.now().isoformat(), collection, document_id),
            )

    def _delete_sync(self, collection: str, document_id: str) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            )

    async def _run(self, func: Any, *args: Any, collection: str, document_id: str | None = None) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as exc:
            raise DocumentStoreError(
                f"SQLite operation failed: {exc}",
                collection=collection,
                document_id=document_id,
            ) from exc

    # =========================================================================
    # DocumentStore API
    # =========================================================================

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        return await self._run(self._get_sync, collection, document_id, collection=collection, document_id=document_id)

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        self.indexes.check(collection, filters, order_by)
        documents = await self._run(self._all_sync, collection, collection=collection)
        return sort_documents(
            filter_documents(documents, filters),
            order_by,
            descending=descending,
        )

    async def create(self, collection: str, data: Mapping[str, Any]) -> str:
        document_id = uuid4().hex
        await self._run(
            self._write_sync, collection, document_id, strip_transforms(data),
            collection=collection, document_id=document_id,
        )
        logger.debug("Document created", collection=collection, document_id=document_id)
        return document_id

    async def set(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        await self._run(
            self._write_sync, collection, document_id, strip_transforms(data),
            collection=collection, document_id=document_id,
        )

    async def update(self, collection: str, document_id: str, changes: Mapping[str, Any]) -> None:
        await self._run(
            self._update_sync, collection, document_id, changes,
            collection=collection, document_id=document_id,
        )

    async def delete(self, collection: str, document_id: str) -> None:
        await self._run(
            self._delete_sync, collection, document_id,
            collection=collection, document_id=document_id,
        )

    def count(self, collection: str) -> int:
        """Number of documents in a collection."""
        with self._get_connection() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM documents WHERE collection = ?",
                (collection,),
            ).fetchone()[0]


__all__ = ["SQLiteDocumentStore"]
