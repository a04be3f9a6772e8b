"""Storage module for D&D Companion persistence.

Provides:
- The async DocumentStore contract with in-memory and SQLite backends
- Array field transforms and composite index enforcement
- Portrait asset storage
"""

from dnd_companion.storage.assets import AssetStore, LocalAssetStore, asset_path_from_url
from dnd_companion.storage.base import (
    ArrayRemove,
    ArrayUnion,
    DocumentStore,
    Filter,
    IndexRegistry,
)
from dnd_companion.storage.factory import (
    create_asset_store,
    create_document_store,
    create_index_registry,
)
from dnd_companion.storage.memory import MemoryDocumentStore
from dnd_companion.storage.sqlite import SQLiteDocumentStore

__all__ = [
    "ArrayRemove",
    "ArrayUnion",
    "AssetStore",
    "DocumentStore",
    "Filter",
    "IndexRegistry",
    "LocalAssetStore",
    "MemoryDocumentStore",
    "SQLiteDocumentStore",
    "asset_path_from_url",
    "create_asset_store",
    "create_document_store",
    "create_index_registry",
]
