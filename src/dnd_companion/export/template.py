"""PDF template loading, introspection and filling with PyMuPDF.

The template is looked up at several locations because the app may be
served from the site root or from a sub-path. Local locations are resolved
against the configured static root; http(s) locations are fetched with
requests in a worker thread.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path

import fitz  # PyMuPDF
import requests

from dnd_companion.core.config import ExportSettings, get_settings
from dnd_companion.core.exceptions import ExportError, TemplateUnavailableError
from dnd_companion.core.logging import get_logger
from dnd_companion.export.fields import FieldKind, FieldValue


logger = get_logger(__name__)

_WIDGET_KINDS: dict[int, FieldKind] = {
    fitz.PDF_WIDGET_TYPE_TEXT: FieldKind.TEXT,
    fitz.PDF_WIDGET_TYPE_CHECKBOX: FieldKind.CHECKBOX,
}


def _open_pdf(content: bytes) -> fitz.Document:
    try:
        return fitz.open(stream=content, filetype="pdf")
    except Exception as exc:
        raise ExportError(
            f"Template is not a readable PDF: {exc}",
            details={"size": len(content)},
        ) from exc


def introspect_template(content: bytes) -> dict[str, FieldKind]:
    """Read the form schema of a PDF template.

    Args:
        content: Raw PDF bytes.

    Returns:
        Field name mapped to its kind. Widgets other than text fields and
        checkboxes are left out.

    Raises:
        ExportError: If the bytes are not a readable PDF.
    """
    schema: dict[str, FieldKind] = {}
    with _open_pdf(content) as doc:
        for page in doc:
            for widget in page.widgets() or ():
                kind = _WIDGET_KINDS.get(widget.field_type)
                if kind is not None and widget.field_name:
                    schema.setdefault(widget.field_name, kind)
    logger.debug("Template introspected", fields=len(schema))
    return schema


def fill_template(content: bytes, values: Mapping[str, FieldValue]) -> tuple[bytes, tuple[str, ...]]:
    """Write values into a template's form fields.

    A field that cannot be written is skipped and logged at debug level.

    Args:
        content: Raw PDF bytes of the template.
        values: Field name mapped to text (or bool for checkboxes).

    Returns:
        The filled PDF bytes and the names of the fields that were written.

    Raises:
        ExportError: If the bytes are not a readable PDF.
    """
    written: list[str] = []
    with _open_pdf(content) as doc:
        for page in doc:
            for widget in page.widgets() or ():
                name = widget.field_name
                if name not in values:
                    continue
                value = values[name]
                try:
                    if widget.field_type == fitz.PDF_WIDGET_TYPE_CHECKBOX:
                        widget.field_value = widget.on_state() if value else "Off"
                    else:
                        widget.field_value = str(value)
                    widget.update()
                except Exception as exc:
                    logger.debug("Field write failed", field=name, error=str(exc))
                    continue
                if name not in written:
                    written.append(name)
        filled = doc.tobytes()
    return filled, tuple(written)


class TemplateLoader:
    """Finds and loads the fillable character sheet template.

    Example:
        >>> loader = TemplateLoader()
        >>> loader.candidate_locations()
        ['TWC-DnD-5E-Character-Sheet-v1.6.pdf', '/TWC-DnD-5E-Character-Sheet-v1.6.pdf', './TWC-...']
    """

    def __init__(self, settings: ExportSettings | None = None, *, cache: bool = True) -> None:
        """Initialize the loader.

        Args:
            settings: Export settings; taken from application settings if omitted.
            cache: Keep the template in memory after the first successful load.
        """
        self.settings = settings or get_settings().export
        self._cache_enabled = cache
        self._cached: bytes | None = None

    def candidate_locations(self) -> list[str]:
        """Locations to try, in order, without duplicates."""
        filename = self.settings.template_filename
        base_url = self.settings.base_url
        return list(dict.fromkeys([
            filename,
            f"/{filename}",
            f"{base_url}{filename}",
            f"{base_url.rstrip('/')}/{filename}",
        ]))

    def _read_local(self, location: str) -> bytes:
        return (Path(self.settings.static_root) / location.lstrip("/")).read_bytes()

    def _fetch_remote(self, url: str) -> bytes:
        response = requests.get(url, timeout=self.settings.fetch_timeout_seconds)
        response.raise_for_status()
        return response.content

    async def _fetch(self, location: str) -> bytes:
        if location.startswith(("http://", "https://")):
            return await asyncio.to_thread(self._fetch_remote, location)
        return await asyncio.to_thread(self._read_local, location)

    async def load(self) -> bytes:
        """Load the template from the first location that works.

        Raises:
            TemplateUnavailableError: If every location failed.
        """
        if self._cached is not None:
            return self._cached

        attempted: list[str] = []
        last_error: Exception | None = None
        for location in self.candidate_locations():
            attempted.append(location)
            try:
                content = await self._fetch(location)
            except (OSError, requests.RequestException) as exc:
                logger.debug("Template location failed", location=location, error=str(exc))
                last_error = exc
                continue
            logger.info("PDF template loaded", location=location, size=len(content))
            if self._cache_enabled:
                self._cached = content
            return content

        raise TemplateUnavailableError(
            f"Failed to load PDF template. Tried paths: {', '.join(attempted)}."
            + (f" {last_error}" if last_error else ""),
            attempted_paths=attempted,
        )


__all__ = [
    "TemplateLoader",
    "fill_template",
    "introspect_template",
]
