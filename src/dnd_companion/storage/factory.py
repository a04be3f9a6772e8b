"""Backend selection from configuration."""

from __future__ import annotations

from dnd_companion.core.config import Settings, get_settings
from dnd_companion.core.logging import get_logger
from dnd_companion.storage.assets import LocalAssetStore
from dnd_companion.storage.base import DocumentStore, IndexRegistry
from dnd_companion.storage.memory import MemoryDocumentStore
from dnd_companion.storage.sqlite import SQLiteDocumentStore


logger = get_logger(__name__)


def create_index_registry(settings: Settings | None = None) -> IndexRegistry:
    """Build the composite index registry declared in settings."""
    settings = settings or get_settings()
    return IndexRegistry(
        settings.store.parsed_indexes(),
        console_url=settings.store.index_console_url,
    )


def create_document_store(settings: Settings | None = None) -> DocumentStore:
    """Create the configured DocumentStore backend.

    Args:
        settings: Application settings; the cached singleton when omitted.

    Returns:
        A MemoryDocumentStore or SQLiteDocumentStore.
    """
    settings = settings or get_settings()
    indexes = create_index_registry(settings)
    if settings.store.backend == "sqlite":
        return SQLiteDocumentStore(settings.store.database_path, indexes)
    logger.info("Using in-memory document store")
    return MemoryDocumentStore(indexes)


def create_asset_store(settings: Settings | None = None) -> LocalAssetStore:
    """Create the asset store rooted at the configured asset path."""
    settings = settings or get_settings()
    return LocalAssetStore(settings.storage.asset_path)


__all__ = [
    "create_asset_store",
    "create_document_store",
    "create_index_registry",
]
