"""Character sheet export to the fillable 5E PDF.

Submodules:
    derived: Ability and skill modifier math
    fields: Attribute → candidate field name table
    template: Template loading, introspection and filling (PyMuPDF)
    exporter: CharacterSheetExporter and ExportedSheet

Example:
    >>> from dnd_companion.export import export_character_sheet
    >>> sheet = await export_character_sheet(character)
    >>> sheet.filename
    'Thorin_Sheet.pdf'
"""

from __future__ import annotations

from dnd_companion.export.derived import (
    calculate_modifier,
    calculate_skill_modifier,
    format_modifier,
)
from dnd_companion.export.exporter import (
    CharacterSheetExporter,
    ExportedSheet,
    export_character_sheet,
    export_filename,
)
from dnd_companion.export.fields import (
    FIELD_TABLE,
    FieldKind,
    FieldMapping,
    MappingResult,
    map_character,
)
from dnd_companion.export.template import TemplateLoader, fill_template, introspect_template


__all__ = [
    # Derived values
    "calculate_modifier",
    "calculate_skill_modifier",
    "format_modifier",
    # Field mapping
    "FIELD_TABLE",
    "FieldKind",
    "FieldMapping",
    "MappingResult",
    "map_character",
    # Template
    "TemplateLoader",
    "fill_template",
    "introspect_template",
    # Export
    "CharacterSheetExporter",
    "ExportedSheet",
    "export_character_sheet",
    "export_filename",
]
