"""Domain layer module.

Contains the catalog exception taxonomy shared by the service and API
layers.
"""

from catalog_api.domain.exceptions import (
    CatalogError,
    InvalidCategory,
    InvalidPrice,
    MissingField,
    MissingImage,
    NotFoundError,
    PersistenceFailure,
    UploadFailure,
    ValidationError,
)

__all__ = [
    "CatalogError",
    "InvalidCategory",
    "InvalidPrice",
    "MissingField",
    "MissingImage",
    "NotFoundError",
    "PersistenceFailure",
    "UploadFailure",
    "ValidationError",
]
