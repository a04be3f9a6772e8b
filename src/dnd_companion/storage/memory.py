"""In-process document store.

Used for tests and for local runs without a database file. Every read and
write deep-copies documents so callers can never mutate stored state.
Operations never await while touching the dicts, so each one is atomic on
the event loop.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any
from uuid import uuid4

from dnd_companion.core.exceptions import NotFoundError
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


class MemoryDocumentStore:
    """Dict-backed DocumentStore.

    Attributes:
        indexes: Composite index registry enforced on queries.
    """

    def __init__(self, indexes: IndexRegistry | None = None) -> None:
        self.indexes = indexes or IndexRegistry()
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    @staticmethod
    def _with_id(document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        document = copy.deepcopy(data)
        document["id"] = document_id
        return document

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        data = self._collection(collection).get(document_id)
        if data is None:
            return None
        return self._with_id(document_id, data)

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        self.indexes.check(collection, filters, order_by)
        documents = [
            self._with_id(document_id, data)
            for document_id, data in self._collection(collection).items()
        ]
        return sort_documents(
            filter_documents(documents, filters),
            order_by,
            descending=descending,
        )

    async def create(self, collection: str, data: Mapping[str, Any]) -> str:
        document_id = uuid4().hex
        self._collection(collection)[document_id] = copy.deepcopy(strip_transforms(data))
        logger.debug("Document created", collection=collection, document_id=document_id)
        return document_id

    async def set(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        self._collection(collection)[document_id] = copy.deepcopy(strip_transforms(data))

    async def update(self, collection: str, document_id: str, changes: Mapping[str, Any]) -> None:
        current = self._collection(collection).get(document_id)
        if current is None:
            raise NotFoundError(
                "Cannot update a missing document",
                collection=collection,
                document_id=document_id,
            )
        updated = apply_changes(copy.deepcopy(current), changes)
        self._collection(collection)[document_id] = copy.deepcopy(updated)

    async def delete(self, collection: str, document_id: str) -> None:
        self._collection(collection).pop(document_id, None)

    def count(self, collection: str) -> int:
        """Number of documents in a collection."""
        return len(self._collection(collection))


__all__ = ["MemoryDocumentStore"]
