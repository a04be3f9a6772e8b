"""Configuration management for the D&D Companion.

Centralized configuration using pydantic-settings, supporting environment
variables, .env files and runtime overrides.

Example:
    >>> from dnd_companion.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.export.template_filename)
    'TWC-DnD-5E-Character-Sheet-v1.6.pdf'

Environment Variables:
    DND_COMPANION_STORE_BACKEND: Document store backend (memory, sqlite)
    DND_COMPANION_STORE_DATABASE_PATH: SQLite database file
    DND_COMPANION_STORE_COMPOSITE_INDEXES: JSON list of "collection:field,field"
    DND_COMPANION_EXPORT_STATIC_ROOT: Directory holding the PDF template
    DND_COMPANION_EXPORT_BASE_URL: Base URL the template is also served from
    DND_COMPANION_ASSET_PATH: Directory for character portraits
    DND_COMPANION_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dnd_companion.core.exceptions import ConfigurationError


class StoreSettings(BaseSettings):
    """Configuration for the document store.

    Attributes:
        backend: Which DocumentStore implementation to build.
        database_path: Path to the SQLite database file.
        composite_indexes: Declared composite indexes, "collection:field1,field2".
        index_console_url: Template for the link that creates a missing index.
            ``{collection}`` and ``{fields}`` are substituted.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_COMPANION_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        description="Document store backend",
    )
    database_path: Path = Field(
        default=Path("data/dnd_companion.db"),
        description="Path to SQLite database",
    )
    composite_indexes: list[str] = Field(
        default_factory=lambda: ["characters:userId,updatedAt", "campaigns:userId,updatedAt"],
        description="Declared composite indexes",
    )
    index_console_url: str | None = Field(
        default=None,
        description="Remediation link template for missing indexes",
    )

    @field_validator("composite_indexes", mode="after")
    @classmethod
    def validate_index_definitions(cls, value: list[str]) -> list[str]:
        """Reject index definitions that cannot be parsed.

        Raises:
            ConfigurationError: If an entry is not "collection:field[,field...]".
        """
        for entry in value:
            collection, _, fields = entry.partition(":")
            if not collection.strip() or not fields.strip():
                raise ConfigurationError(
                    f"Invalid composite index definition: {entry!r}",
                    config_key="composite_indexes",
                )
        return value

    def parsed_indexes(self) -> set[tuple[str, tuple[str, ...]]]:
        """Return the declared indexes as (collection, fields) pairs."""
        indexes: set[tuple[str, tuple[str, ...]]] = set()
        for entry in self.composite_indexes:
            collection, _, fields = entry.partition(":")
            indexes.add(
                (collection.strip(), tuple(f.strip() for f in fields.split(",") if f.strip()))
            )
        return indexes


class ExportSettings(BaseSettings):
    """Configuration for character sheet export.

    Attributes:
        template_filename: File name of the fillable PDF character sheet.
        static_root: Directory the template is served from locally.
        base_url: Deployment base URL or path prefix (e.g. "/app/").
        fetch_timeout_seconds: Timeout for each remote template fetch.
        default_filename_stem: Name used for unnamed characters.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_COMPANION_EXPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    template_filename: str = Field(
        default="TWC-DnD-5E-Character-Sheet-v1.6.pdf",
        min_length=1,
        description="PDF template file name",
    )
    static_root: Path = Field(
        default=Path("public"),
        description="Directory holding static assets",
    )
    base_url: str = Field(
        default="./",
        description="Deployment base URL or path prefix",
    )
    fetch_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Remote template fetch timeout",
    )
    default_filename_stem: str = Field(
        default="Character",
        min_length=1,
        description="Export name for unnamed characters",
    )


class LinkingSettings(BaseSettings):
    """Configuration for relationship maintenance.

    Attributes:
        cleanup_max_attempts: Attempts per campaign during cascade delete.
        cleanup_backoff_seconds: Initial backoff between cleanup attempts.
        cleanup_backoff_max_seconds: Upper bound on the backoff.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_COMPANION_LINKING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    cleanup_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Cleanup attempts per campaign",
    )
    cleanup_backoff_seconds: float = Field(
        default=0.5,
        ge=0,
        le=30,
        description="Initial cleanup backoff",
    )
    cleanup_backoff_max_seconds: float = Field(
        default=4.0,
        ge=0,
        le=60,
        description="Maximum cleanup backoff",
    )

    @model_validator(mode="after")
    def validate_backoff_bounds(self) -> "LinkingSettings":
        """Ensure the backoff ceiling is not below the initial backoff.

        Raises:
            ConfigurationError: If cleanup_backoff_max_seconds < cleanup_backoff_seconds.
        """
        if self.cleanup_backoff_max_seconds < self.cleanup_backoff_seconds:
            raise ConfigurationError(
                f"cleanup_backoff_max_seconds ({self.cleanup_backoff_max_seconds}) must be "
                f">= cleanup_backoff_seconds ({self.cleanup_backoff_seconds})",
                config_key="cleanup_backoff_max_seconds",
            )
        return self


class StorageSettings(BaseSettings):
    """Configuration for binary asset storage.

    Attributes:
        asset_path: Directory for character portraits.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_COMPANION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    asset_path: Path = Field(
        default=Path("data/assets"),
        description="Directory for asset files",
    )

    @field_validator("asset_path", mode="after")
    @classmethod
    def ensure_directory_exists(cls, value: Path) -> Path:
        """Ensure the asset directory exists, creating it if necessary."""
        value.mkdir(parents=True, exist_ok=True)
        return value


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        store: Document store settings.
        export: Character sheet export settings.
        linking: Relationship maintenance settings.
        storage: Asset storage settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_COMPANION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="D&D Companion",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    store: StoreSettings = Field(default_factory=StoreSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    linking: LinkingSettings = Field(default_factory=LinkingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "StoreSettings",
    "ExportSettings",
    "LinkingSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
