"""Character sheet export.

Loads the fillable template, resolves the field table against the
template's own form schema, and fills whatever matched. Missing fields never
fail an export; only a template that cannot be loaded does.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable
from dataclasses import dataclass

from dnd_companion.core.config import ExportSettings, get_settings
from dnd_companion.core.logging import get_logger
from dnd_companion.export.fields import FIELD_TABLE, FieldMapping, map_character
from dnd_companion.export.template import TemplateLoader, fill_template, introspect_template
from dnd_companion.models.character import Character


logger = get_logger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')


@dataclass(frozen=True)
class ExportedSheet:
    """A filled character sheet ready for download.

    Attributes:
        filename: Suggested download name, ``{name}_Sheet.pdf``.
        content: PDF bytes.
        filled_fields: Template fields that received a value.
        unmatched_attributes: Attributes the template had no field for.
    """

    filename: str
    content: bytes
    filled_fields: tuple[str, ...] = ()
    unmatched_attributes: tuple[str, ...] = ()

    media_type: str = "application/pdf"


def export_filename(character: Character, default_stem: str = "Character") -> str:
    """Download name for a character's sheet."""
    stem = _UNSAFE_FILENAME_CHARS.sub("_", character.character_name.strip()) or default_stem
    return f"{stem}_Sheet.pdf"


class CharacterSheetExporter:
    """Fills the 5E character sheet template for a character."""

    def __init__(
        self,
        loader: TemplateLoader | None = None,
        *,
        settings: ExportSettings | None = None,
        field_table: Iterable[FieldMapping] = FIELD_TABLE,
    ) -> None:
        self.settings = settings or get_settings().export
        self.loader = loader or TemplateLoader(self.settings)
        self.field_table = tuple(field_table)

    def render(self, character: Character, template: bytes) -> ExportedSheet:
        """Fill an already loaded template.

        Raises:
            ExportError: If the template bytes are not a readable PDF.
        """
        schema = introspect_template(template)
        mapping = map_character(character, schema, self.field_table)
        content, written = fill_template(template, mapping.values)
        sheet = ExportedSheet(
            filename=export_filename(character, self.settings.default_filename_stem),
            content=content,
            filled_fields=written,
            unmatched_attributes=mapping.unmatched,
        )
        logger.info(
            "Character sheet exported",
            character_id=character.id,
            filename=sheet.filename,
            filled=len(written),
            unmatched=len(mapping.unmatched),
        )
        return sheet

    async def export(self, character: Character) -> ExportedSheet:
        """Load the template and fill it for a character.

        Raises:
            TemplateUnavailableError: If the template cannot be loaded.
            ExportError: If the template is not a readable PDF.
        """
        template = await self.loader.load()
        return await asyncio.to_thread(self.render, character, template)


async def export_character_sheet(
    character: Character,
    *,
    settings: ExportSettings | None = None,
) -> ExportedSheet:
    """Export a character sheet with a one-off exporter."""
    return await CharacterSheetExporter(settings=settings).export(character)


__all__ = [
    "CharacterSheetExporter",
    "ExportedSheet",
    "export_character_sheet",
    "export_filename",
]
