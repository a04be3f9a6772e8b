"""Binary asset storage for character portraits.

Portraits are referenced from character documents by ``imageUrl``. Hosted
storage hands out download URLs of the form
``https://host/v0/b/<bucket>/o/<url-encoded object path>?alt=media&token=...``;
asset_path_from_url recovers the object path so the asset can be deleted.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol, runtime_checkable
from urllib.parse import unquote, urlsplit

from dnd_companion.core.exceptions import AssetStorageError
from dnd_companion.core.logging import get_logger


logger = get_logger(__name__)


def asset_path_from_url(url: str) -> str:
    """Recover the storage object path from a portrait URL.

    Args:
        url: Hosted download URL or a plain relative asset path.

    Returns:
        The decoded object path, without query string or leading slash.

    Raises:
        AssetStorageError: If no path can be recovered.

    Example:
        >>> asset_path_from_url("https://h/v0/b/app/o/characters%2Fu1%2Fa.png?alt=media")
        'characters/u1/a.png'
    """
    if not url or not url.strip():
        raise AssetStorageError("Empty asset URL")

    parts = urlsplit(url.strip())
    segments = parts.path.split("/")
    if parts.scheme in ("http", "https") and "o" in segments:
        encoded = "/".join(segments[segments.index("o") + 1:])
    else:
        encoded = parts.path

    path = unquote(encoded).lstrip("/")
    if not path:
        raise AssetStorageError("Cannot determine asset path from URL", asset_path=url)
    return path


@runtime_checkable
class AssetStore(Protocol):
    """Async binary asset storage."""

    async def save(self, path: str, content: bytes) -> str:
        """Store content at path and return the URL to reference it by."""
        ...

    async def delete(self, path: str) -> None:
        """Delete the asset at path.

        Raises:
            AssetStorageError: If the asset is missing or cannot be removed.
        """
        ...

    async def exists(self, path: str) -> bool:
        """Check whether an asset exists."""
        ...


class LocalAssetStore:
    """AssetStore writing files below a root directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        root = self.root.resolve()
        target = (root / path.lstrip("/")).resolve()
        if root != target and root not in target.parents:
            raise AssetStorageError("Asset path escapes the storage root", asset_path=path)
        return target

    async def save(self, path: str, content: bytes) -> str:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(target.write_bytes, content)
        except OSError as exc:
            raise AssetStorageError(f"Failed to write asset: {exc}", asset_path=path) from exc
        logger.debug("Asset saved", asset_path=path, size=len(content))
        return path

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink)
        except FileNotFoundError as exc:
            raise AssetStorageError("Asset does not exist", asset_path=path) from exc
        except OSError as exc:
            raise AssetStorageError(f"Failed to delete asset: {exc}", asset_path=path) from exc
        logger.debug("Asset deleted", asset_path=path)

    async def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()


__all__ = [
    "AssetStore",
    "LocalAssetStore",
    "asset_path_from_url",
]
