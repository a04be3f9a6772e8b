"""Tests for the SQLite document store."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from dnd_companion.core.config import Settings, StoreSettings
from dnd_companion.core.exceptions import IndexRequiredError, NotFoundError
from dnd_companion.storage import (
    ArrayRemove,
    ArrayUnion,
    Filter,
    IndexRegistry,
    MemoryDocumentStore,
    SQLiteDocumentStore,
    create_document_store,
)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "store.db"


@pytest.fixture
def store(db_path: Path) -> SQLiteDocumentStore:
    return SQLiteDocumentStore(db_path, IndexRegistry({("campaigns", ("userId", "updatedAt"))}))


class TestSQLiteDocumentStore:
    """Tests for SQLiteDocumentStore."""

    def test_creates_parent_directories(self, store: SQLiteDocumentStore, db_path: Path) -> None:
        assert db_path.exists()

    def test_round_trip(self, store: SQLiteDocumentStore, run: Callable[..., Any]) -> None:
        """Test documents survive serialization with the id injected."""
        document_id = run(store.create("campaigns", {"userId": "dm", "players": [{"userId": "p"}]}))

        assert run(store.get("campaigns", document_id)) == {
            "userId": "dm",
            "players": [{"userId": "p"}],
            "id": document_id,
        }

    def test_persists_across_instances(self, store: SQLiteDocumentStore, db_path: Path, run: Callable[..., Any]) -> None:
        """Test data is read back by a fresh store on the same file."""
        run(store.set("characters", "ch1", {"characterName": "Thorin"}))

        reopened = SQLiteDocumentStore(db_path)

        assert run(reopened.get("characters", "ch1"))["characterName"] == "Thorin"
        assert reopened.count("characters") == 1

    def test_update_transforms(self, store: SQLiteDocumentStore, run: Callable[..., Any]) -> None:
        run(store.set("characters", "ch1", {"campaignIds": ["a"], "level": 1}))

        run(store.update("characters", "ch1", {"campaignIds": ArrayUnion("b"), "level": 2}))
        run(store.update("characters", "ch1", {"campaignIds": ArrayRemove("a")}))

        document = run(store.get("characters", "ch1"))
        assert document["campaignIds"] == ["b"]
        assert document["level"] == 2

    def test_update_missing_raises(self, store: SQLiteDocumentStore, run: Callable[..., Any]) -> None:
        with pytest.raises(NotFoundError):
            run(store.update("characters", "missing", {"level": 2}))

    def test_delete(self, store: SQLiteDocumentStore, run: Callable[..., Any]) -> None:
        run(store.set("characters", "ch1", {}))

        run(store.delete("characters", "ch1"))
        run(store.delete("characters", "ch1"))

        assert run(store.get("characters", "ch1")) is None

    def test_query(self, store: SQLiteDocumentStore, run: Callable[..., Any]) -> None:
        """Test filtering and ordering through a declared index."""
        run(store.set("campaigns", "a", {"userId": "dm", "updatedAt": "2024-01-01"}))
        run(store.set("campaigns", "b", {"userId": "dm", "updatedAt": "2024-05-01"}))
        run(store.set("campaigns", "c", {"userId": "other", "updatedAt": "2024-03-01"}))

        results = run(
            store.query("campaigns", [Filter("userId", "==", "dm")], order_by="updatedAt", descending=True)
        )

        assert [doc["id"] for doc in results] == ["b", "a"]

    def test_query_needs_index(self, store: SQLiteDocumentStore, run: Callable[..., Any]) -> None:
        with pytest.raises(IndexRequiredError):
            run(store.query("characters", [Filter("userId", "==", "u")], order_by="updatedAt"))


class TestCreateDocumentStore:
    """Tests for backend selection."""

    def test_memory_backend(self) -> None:
        settings = Settings(store=StoreSettings(backend="memory"))

        assert isinstance(create_document_store(settings), MemoryDocumentStore)

    def test_sqlite_backend(self, tmp_path: Path) -> None:
        settings = Settings(store=StoreSettings(backend="sqlite", database_path=tmp_path / "app.db"))

        store = create_document_store(settings)

        assert isinstance(store, SQLiteDocumentStore)
        assert store.db_path == tmp_path / "app.db"
