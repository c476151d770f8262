"""Domain exceptions.

All catalog-level errors. Validation errors are raised before any write
happens; persistence and upload failures wrap collaborator errors so that
internal detail never reaches the client.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions.

    All catalog errors inherit from this class to allow catching
    them at the API layer and mapping them to HTTP responses.
    """

    error_code = "CATALOG_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(CatalogError):
    """Base class for client input errors."""

    error_code = "VALIDATION_ERROR"


class MissingField(ValidationError):
    """Raised when a required field is absent or empty."""

    error_code = "MISSING_FIELD"

    def __init__(self, field: str) -> None:
        """Initialize missing field error.

        Args:
            field: Name of the missing field.
        """
        super().__init__(
            f"Field '{field}' is required",
            details={"field": field},
        )
        self.field = field


class InvalidCategory(ValidationError):
    """Raised when a category is outside the allowed set."""

    error_code = "INVALID_CATEGORY"

    def __init__(self, value: Any, allowed: list[str]) -> None:
        """Initialize invalid category error.

        Args:
            value: The rejected category.
            allowed: Allowed category values.
        """
        super().__init__(
            f"Category '{value}' is not allowed. Allowed categories: {', '.join(allowed)}",
            details={"category": str(value), "allowed": allowed},
        )


class InvalidPrice(ValidationError):
    """Raised when a price is not a non-negative number."""

    error_code = "INVALID_PRICE"

    def __init__(self, field: str, value: Any) -> None:
        """Initialize invalid price error.

        Args:
            field: Price field name ("price" or "oldPrice").
            value: The rejected raw value.
        """
        super().__init__(
            f"Invalid value for '{field}': {value!r}",
            details={"field": field, "value": str(value)},
        )
        self.field = field


class MissingImage(ValidationError):
    """Raised when a product would end up without any image."""

    error_code = "MISSING_IMAGE"

    def __init__(self) -> None:
        super().__init__("At least one image is required")


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(CatalogError):
    """Raised when the target entity does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: str) -> None:
        """Initialize not found error.

        Args:
            entity: Entity type (e.g., "Product").
            entity_id: Requested identifier.
        """
        super().__init__(
            f"{entity} not found",
            details={"entity": entity, "id": entity_id},
        )


# ============================================================================
# Collaborator Errors
# ============================================================================


class PersistenceFailure(CatalogError):
    """Raised when the persistence layer fails unexpectedly.

    The message is opaque; the underlying exception is
    chained and logged, never returned to the client.
    """

    error_code = "PERSISTENCE_FAILURE"

    def __init__(self, operation: str) -> None:
        """Initialize persistence failure.

        Args:
            operation: Human-readable operation name (e.g., "delete product").
        """
        super().__init__(
            f"Failed to {operation}",
            details={"operation": operation},
        )


class UploadFailure(CatalogError):
    """Raised when the blob storage service cannot store an image."""

    error_code = "UPLOAD_FAILED"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize upload failure.

        Args:
            message: Description of the failure (logged, not returned).
            status_code: HTTP status from blob storage, if any.
        """
        super().__init__(message, details={"status_code": status_code})
        self.status_code = status_code
