"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest

from dnd_companion.core.config import (
    ExportSettings,
    LinkingSettings,
    Settings,
    StorageSettings,
    StoreSettings,
    clear_settings_cache,
    get_settings,
)
from dnd_companion.core.exceptions import ConfigurationError


class TestStorageSettings:
    """Tests for StorageSettings configuration."""

    def test_default_path_is_created(self, tmp_path: Path) -> None:
        """Test the default asset directory is created relative to the cwd."""
        settings = StorageSettings()

        assert settings.asset_path == Path("data/assets")
        assert (tmp_path / "data" / "assets").is_dir()

    def test_custom_path(self, tmp_path: Path) -> None:
        """Test a custom asset path."""
        custom = tmp_path / "portraits"

        settings = StorageSettings(asset_path=custom)

        assert settings.asset_path == custom
        assert custom.exists()


class TestStoreSettings:
    """Tests for StoreSettings configuration."""

    def test_default_indexes(self) -> None:
        """Test the default composite indexes cover owner listings."""
        settings = StoreSettings()

        assert settings.backend == "memory"
        assert settings.parsed_indexes() == {
            ("characters", ("userId", "updatedAt")),
            ("campaigns", ("userId", "updatedAt")),
        }

    def test_invalid_index_definition(self) -> None:
        """Test that an index without fields is rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            StoreSettings(composite_indexes=["characters"])

        assert exc_info.value.details["config_key"] == "composite_indexes"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test backend selection from the environment."""
        monkeypatch.setenv("DND_COMPANION_STORE_BACKEND", "sqlite")

        assert StoreSettings().backend == "sqlite"


class TestExportSettings:
    """Tests for ExportSettings configuration."""

    def test_defaults(self) -> None:
        """Test the bundled template is the default."""
        settings = ExportSettings()

        assert settings.template_filename == "TWC-DnD-5E-Character-Sheet-v1.6.pdf"
        assert settings.base_url == "./"
        assert settings.default_filename_stem == "Character"


class TestLinkingSettings:
    """Tests for LinkingSettings configuration."""

    def test_backoff_ceiling_validation(self) -> None:
        """Test that the backoff ceiling may not be below the initial backoff."""
        with pytest.raises(ConfigurationError) as exc_info:
            LinkingSettings(cleanup_backoff_seconds=5, cleanup_backoff_max_seconds=1)

        assert "cleanup_backoff_max_seconds" in str(exc_info.value)


class TestSettings:
    """Tests for main Settings configuration."""

    def test_default_settings(self) -> None:
        """Test default settings initialization."""
        settings = Settings()

        assert settings.app_name == "D&D Companion"
        assert settings.debug is False
        assert settings.is_production is True
        assert settings.linking.cleanup_max_attempts == 3

    def test_debug_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test debug mode from the environment."""
        monkeypatch.setenv("DND_COMPANION_DEBUG", "true")
        monkeypatch.setenv("DND_COMPANION_LOG_LEVEL", "DEBUG")

        settings = Settings()

        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.is_production is False

    def test_get_settings_is_cached(self) -> None:
        """Test that get_settings returns a cached singleton."""
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self) -> None:
        """Test that clearing the cache creates a new instance."""
        first = get_settings()
        clear_settings_cache()

        assert get_settings() is not first

    def test_invalid_env_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that invalid values surface as ConfigurationError."""
        monkeypatch.setenv("DND_COMPANION_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError):
            get_settings()
