"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        DndCompanionError: Base exception for all application errors.
        NotFoundError, PermissionDeniedError, IndexRequiredError, ...

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        operation_context: Scope identifiers to the events of one operation.
"""

from __future__ import annotations

from dnd_companion.core.config import (
    ExportSettings,
    LinkingSettings,
    Settings,
    StorageSettings,
    StoreSettings,
    clear_settings_cache,
    get_settings,
)
from dnd_companion.core.exceptions import (
    AssetStorageError,
    ConfigurationError,
    DiceRollError,
    DndCompanionError,
    DocumentStoreError,
    ExportError,
    IndexRequiredError,
    LinkPartiallyFailedError,
    MalformedDocumentError,
    NotFoundError,
    OperationInProgressError,
    PartialWriteError,
    PermissionDeniedError,
    RelationshipError,
    TemplateUnavailableError,
    UnlinkPartiallyFailedError,
    ValidationError,
)
from dnd_companion.core.logging import (
    configure_logging,
    get_logger,
    operation_context,
)


__all__ = [
    # Base exception
    "DndCompanionError",
    # Store exceptions
    "DocumentStoreError",
    "NotFoundError",
    "MalformedDocumentError",
    "IndexRequiredError",
    "AssetStorageError",
    # Relationship exceptions
    "PermissionDeniedError",
    "RelationshipError",
    "OperationInProgressError",
    "PartialWriteError",
    "LinkPartiallyFailedError",
    "UnlinkPartiallyFailedError",
    # Export exceptions
    "ExportError",
    "TemplateUnavailableError",
    "DiceRollError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Configuration
    "Settings",
    "StoreSettings",
    "ExportSettings",
    "LinkingSettings",
    "StorageSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "operation_context",
]
