"""Integration tests for exporting a stored character to the PDF sheet."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from dnd_companion.auth.session import AuthUser
from dnd_companion.core.config import ExportSettings
from dnd_companion.core.exceptions import TemplateUnavailableError
from dnd_companion.export import CharacterSheetExporter, TemplateLoader
from dnd_companion.linking import RelationshipManager


@pytest.fixture
def static_root(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    root.mkdir()
    return root


@pytest.fixture
def export_settings(static_root: Path) -> ExportSettings:
    return ExportSettings(
        template_filename="TWC-DnD-5E-Character-Sheet-v1.6.pdf",
        static_root=static_root,
        base_url="/companion/",
    )


class TestSheetExport:
    """Export of characters loaded through the relationship manager."""

    def test_export_stored_character(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        player_user: AuthUser,
        character_id: str,
        static_root: Path,
        export_settings: ExportSettings,
        sheet_template: bytes,
        read_fields: Callable[[bytes], dict[str, Any]],
    ) -> None:
        """Test the owner's character exports with derived values filled."""
        (static_root / export_settings.template_filename).write_bytes(sheet_template)
        character = run(manager.get_character_view(character_id, player_user)).character

        sheet = run(CharacterSheetExporter(settings=export_settings).export(character))

        fields = read_fields(sheet.content)
        assert sheet.filename == "Thorin_Sheet.pdf"
        assert fields["CharacterName"] == "Thorin"
        assert fields["DEXmod"] == "+2"
        assert fields["Perception"] == "+4"

    def test_template_served_from_sub_path(
        self,
        run: Callable[..., Any],
        sample_character: Any,
        static_root: Path,
        export_settings: ExportSettings,
        make_template: Callable[..., bytes],
    ) -> None:
        """Test the base-url location is used when the root copy is missing."""
        (static_root / "companion").mkdir()
        (static_root / "companion" / export_settings.template_filename).write_bytes(
            make_template(text_fields=["CharacterName"])
        )

        sheet = run(CharacterSheetExporter(settings=export_settings).export(sample_character))

        assert sheet.filled_fields == ("CharacterName",)

    def test_template_without_dex_modifier(
        self,
        run: Callable[..., Any],
        sample_character: Any,
        static_root: Path,
        export_settings: ExportSettings,
        make_template: Callable[..., bytes],
        read_fields: Callable[[bytes], dict[str, Any]],
    ) -> None:
        """Test a sheet lacking every DEX modifier field still exports."""
        (static_root / export_settings.template_filename).write_bytes(
            make_template(text_fields=["CharacterName", "DEX", "Stealth"])
        )

        sheet = run(CharacterSheetExporter(settings=export_settings).export(sample_character))

        assert "dexterity_modifier" in sheet.unmatched_attributes
        assert read_fields(sheet.content) == {"CharacterName": "Thorin", "DEX": "14", "Stealth": "+2"}

    def test_missing_template_names_every_location(
        self,
        run: Callable[..., Any],
        sample_character: Any,
        export_settings: ExportSettings,
    ) -> None:
        name = export_settings.template_filename
        exporter = CharacterSheetExporter(TemplateLoader(export_settings), settings=export_settings)

        with pytest.raises(TemplateUnavailableError) as exc_info:
            run(exporter.export(sample_character))

        assert exc_info.value.attempted_paths == [name, f"/{name}", f"/companion/{name}"]
