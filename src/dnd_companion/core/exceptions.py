"""Custom exception hierarchy for the D&D Companion.

Every error raised by the package inherits from DndCompanionError, which
carries a human-readable message plus a ``details`` mapping so the
presentation layer can render an actionable message without parsing strings.

Example:
    >>> from dnd_companion.core.exceptions import NotFoundError
    >>> raise NotFoundError("Campaign not found", collection="campaigns", document_id="abc")
"""

from __future__ import annotations

from typing import Any


class DndCompanionError(Exception):
    """Base exception for all D&D Companion errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Document Store Exceptions
# =============================================================================


class DocumentStoreError(DndCompanionError):
    """Raised when the document store backend fails.

    This covers connection problems, corrupted payloads and any other
    backend failure that is not a missing document.
    """

    def __init__(
        self,
        message: str,
        *,
        collection: str | None = None,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize store error with document context.

        Args:
            message: Human-readable error description.
            collection: Collection involved in the failed operation.
            document_id: Document involved in the failed operation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if collection:
            combined_details["collection"] = collection
        if document_id:
            combined_details["document_id"] = document_id
        super().__init__(message, details=combined_details)


class NotFoundError(DocumentStoreError):
    """Raised when a referenced campaign or character does not exist.

    Not retried; the caller shows the message to the user.
    """


class MalformedDocumentError(DocumentStoreError):
    """Raised when a stored document no longer matches its model.

    Legacy data written by older clients lands here instead of surfacing a
    raw pydantic error. Not retried.
    """


class IndexRequiredError(DocumentStoreError):
    """Raised when a filtered and sorted query needs a composite index.

    This is an operational problem of the store configuration, so the
    error carries the index definition and, when known, a remediation link.
    """

    def __init__(
        self,
        message: str,
        *,
        collection: str | None = None,
        fields: list[str] | None = None,
        remediation_url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize index error with the missing index definition.

        Args:
            message: Human-readable error description.
            collection: Collection that was queried.
            fields: Ordered field list the composite index must cover.
            remediation_url: Link that creates the missing index.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if fields:
            combined_details["fields"] = fields
        if remediation_url:
            combined_details["remediation_url"] = remediation_url
        self.fields = fields or []
        self.remediation_url = remediation_url
        super().__init__(message, collection=collection, details=combined_details)


class AssetStorageError(DndCompanionError):
    """Raised when a binary asset (character portrait) cannot be handled."""

    def __init__(
        self,
        message: str,
        *,
        asset_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if asset_path:
            combined_details["asset_path"] = asset_path
        super().__init__(message, details=combined_details)


# =============================================================================
# Access & Relationship Exceptions
# =============================================================================


class PermissionDeniedError(DndCompanionError):
    """Raised when the access policy rejects the acting user.

    The presentation layer renders this as a blocking page-level error.
    """

    def __init__(
        self,
        message: str,
        *,
        user_id: str | None = None,
        resource: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize permission error with the rejected principal.

        Args:
            message: Human-readable error description.
            user_id: The user that was rejected (None for anonymous).
            resource: Identifier of the protected resource.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if user_id:
            combined_details["user_id"] = user_id
        if resource:
            combined_details["resource"] = resource
        super().__init__(message, details=combined_details)


class RelationshipError(DndCompanionError):
    """Base exception for campaign/character link operations."""

    def __init__(
        self,
        message: str,
        *,
        character_id: str | None = None,
        campaign_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize relationship error with the affected pair.

        Args:
            message: Human-readable error description.
            character_id: Character side of the link.
            campaign_id: Campaign side of the link.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if character_id:
            combined_details["character_id"] = character_id
        if campaign_id:
            combined_details["campaign_id"] = campaign_id
        super().__init__(message, details=combined_details)


class OperationInProgressError(RelationshipError):
    """Raised when a link or unlink is already in flight for the same pair."""


class PartialWriteError(RelationshipError):
    """One of the two symmetric link writes failed after the other succeeded.

    No compensating write is attempted; the documents are left for manual
    or next-read reconciliation.
    """

    def __init__(
        self,
        message: str,
        *,
        character_id: str | None = None,
        campaign_id: str | None = None,
        succeeded: str | None = None,
        failed: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize partial write error.

        Args:
            message: Human-readable error description.
            character_id: Character side of the link.
            campaign_id: Campaign side of the link.
            succeeded: Collection whose write committed.
            failed: Collection whose write failed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if succeeded:
            combined_details["succeeded"] = succeeded
        if failed:
            combined_details["failed"] = failed
        self.succeeded = succeeded
        self.failed = failed
        super().__init__(
            message,
            character_id=character_id,
            campaign_id=campaign_id,
            details=combined_details,
        )


class LinkPartiallyFailedError(PartialWriteError):
    """Raised when only one side of a link write committed."""


class UnlinkPartiallyFailedError(PartialWriteError):
    """Raised when only one side of an unlink write committed."""


# =============================================================================
# Export Exceptions
# =============================================================================


class ExportError(DndCompanionError):
    """Base exception for character sheet export errors."""


class TemplateUnavailableError(ExportError):
    """Raised when the PDF template cannot be loaded from any location."""

    def __init__(
        self,
        message: str,
        *,
        attempted_paths: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize template error with the locations that were tried.

        Args:
            message: Human-readable error description.
            attempted_paths: Every location tried, in order.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if attempted_paths:
            combined_details["attempted_paths"] = attempted_paths
        self.attempted_paths = attempted_paths or []
        super().__init__(message, details=combined_details)


class DiceRollError(DndCompanionError):
    """Raised when dice notation cannot be parsed or rolled."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(DndCompanionError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(DndCompanionError):
    """Raised when user input fails a domain check."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "DndCompanionError",
    # Store exceptions
    "DocumentStoreError",
    "NotFoundError",
    "MalformedDocumentError",
    "IndexRequiredError",
    "AssetStorageError",
    # Access & relationship exceptions
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
]
