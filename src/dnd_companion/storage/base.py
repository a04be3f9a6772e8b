"""Document store contract shared by every backend.

Documents are plain JSON-compatible dicts stored under a collection and an
id. Reads return a copy with the id injected under ``"id"``; writes never
store the id inside the payload.

Queries support equality (``"=="``) and ``"array-contains"`` filters. A query
that filters and also sorts on a field it does not filter on needs a
declared composite index, mirroring hosted document databases. Without one
the query fails with IndexRequiredError so the problem surfaces in
development rather than in production.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

from dnd_companion.core.exceptions import DocumentStoreError, IndexRequiredError


FilterOp = Literal["==", "array-contains"]


@dataclass(frozen=True)
class Filter:
    """A single query predicate.

    Attributes:
        field: Document field name (camelCase, as stored).
        op: ``"=="`` or ``"array-contains"``.
        value: Value to compare against.
    """

    field: str
    op: FilterOp
    value: Any

    def matches(self, document: Mapping[str, Any]) -> bool:
        """Check whether the document satisfies this predicate."""
        current = document.get(self.field)
        if self.op == "==":
            return current == self.value
        if self.op == "array-contains":
            return isinstance(current, list) and self.value in current
        raise DocumentStoreError(f"Unsupported filter operator: {self.op!r}")


@dataclass(frozen=True)
class ArrayUnion:
    """Field transform that appends values not already present."""

    values: tuple[Any, ...]

    def __init__(self, *values: Any) -> None:
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class ArrayRemove:
    """Field transform that removes every element equal to one of the values."""

    values: tuple[Any, ...]

    def __init__(self, *values: Any) -> None:
        object.__setattr__(self, "values", tuple(values))


@runtime_checkable
class DocumentStore(Protocol):
    """Async document store used by the relationship manager."""

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Fetch a document, or None if it does not exist."""
        ...

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Return every matching document, optionally sorted."""
        ...

    async def create(self, collection: str, data: Mapping[str, Any]) -> str:
        """Store a new document and return its generated id."""
        ...

    async def set(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        """Create or fully replace a document."""
        ...

    async def update(self, collection: str, document_id: str, changes: Mapping[str, Any]) -> None:
        """Apply field changes (including array transforms) atomically.

        Raises:
            NotFoundError: If the document does not exist.
        """
        ...

    async def delete(self, collection: str, document_id: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""
        ...


# =============================================================================
# Shared helpers
# =============================================================================


def apply_changes(document: dict[str, Any], changes: Mapping[str, Any]) -> dict[str, Any]:
    """Apply a change set to a document in place and return it.

    Plain values replace the field. ArrayUnion and ArrayRemove operate on the
    existing list, treating a missing field as an empty list.
    """
    for field, change in changes.items():
        if field == "id":
            continue
        if isinstance(change, ArrayUnion):
            current = list(document.get(field) or [])
            for value in change.values:
                if value not in current:
                    current.append(value)
            document[field] = current
        elif isinstance(change, ArrayRemove):
            document[field] = [
                value for value in (document.get(field) or []) if value not in change.values
            ]
        else:
            document[field] = change
    return document


def strip_transforms(data: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve transforms against an empty document, as used by create and set."""
    return apply_changes({}, {k: v for k, v in data.items() if k != "id"})


def filter_documents(
    documents: Iterable[dict[str, Any]],
    filters: Sequence[Filter],
) -> list[dict[str, Any]]:
    """Keep documents matching every filter."""
    return [doc for doc in documents if all(f.matches(doc) for f in filters)]


def sort_documents(
    documents: list[dict[str, Any]],
    order_by: str | None,
    *,
    descending: bool = False,
) -> list[dict[str, Any]]:
    """Sort documents by one field. Documents missing the field sort first."""
    if order_by is None:
        return documents
    return sorted(
        documents,
        key=lambda doc: (doc.get(order_by) is not None, str(doc.get(order_by) or "")),
        reverse=descending,
    )


class IndexRegistry:
    """Declared composite indexes and the rule for when one is needed.

    Example:
        >>> registry = IndexRegistry({("characters", ("userId", "updatedAt"))})
        >>> registry.check("characters", [Filter("userId", "==", "u1")], "updatedAt")
    """

    def __init__(
        self,
        indexes: Iterable[tuple[str, Sequence[str]]] = (),
        *,
        console_url: str | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            indexes: (collection, ordered field names) pairs.
            console_url: Remediation link template with ``{collection}`` and
                ``{fields}`` placeholders.
        """
        self._indexes = {(collection, tuple(fields)) for collection, fields in indexes}
        self._console_url = console_url

    def required_index(
        self,
        collection: str,
        filters: Sequence[Filter],
        order_by: str | None,
    ) -> tuple[str, ...] | None:
        """Return the field list a query needs an index for, or None."""
        if order_by is None or not filters:
            return None
        filter_fields = tuple(dict.fromkeys(f.field for f in filters))
        if order_by in filter_fields:
            return None
        return (*filter_fields, order_by)

    def check(
        self,
        collection: str,
        filters: Sequence[Filter],
        order_by: str | None,
    ) -> None:
        """Validate that a query can run.

        Raises:
            IndexRequiredError: If the query needs an undeclared index.
        """
        fields = self.required_index(collection, filters, order_by)
        if fields is None or (collection, fields) in self._indexes:
            return
        remediation_url = None
        if self._console_url:
            remediation_url = self._console_url.format(
                collection=collection,
                fields=",".join(fields),
            )
        raise IndexRequiredError(
            f"Query on '{collection}' needs a composite index on ({', '.join(fields)})",
            collection=collection,
            fields=list(fields),
            remediation_url=remediation_url,
        )


__all__ = [
    "ArrayRemove",
    "ArrayUnion",
    "DocumentStore",
    "Filter",
    "FilterOp",
    "IndexRegistry",
    "apply_changes",
    "filter_documents",
    "sort_documents",
    "strip_transforms",
]
