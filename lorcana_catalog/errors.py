"""Exception hierarchy for the catalog data layer.

Not-found conditions are deliberately absent here: lookups return ``None``
and collection mutations return a ``NotFound`` marker (see models.py).
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for every error raised by the catalog services."""


class StorageError(CatalogError):
    """A document file could not be read, parsed, or written."""

    def __init__(self, message: str, path: object = None) -> None:
        super().__init__(message)
        self.path = path


class ValidationError(CatalogError):
    """Input was rejected before anything was written."""


class ShapeMismatchError(ValidationError):
    """The payload (or one of its elements) has the wrong JSON shape."""


class MissingFieldError(ValidationError):
    """A required field is absent or empty."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Missing required field: {field_name}")
        self.field_name = field_name


class UnsupportedFormatError(CatalogError):
    """An export or import format other than the supported ones was requested."""

    def __init__(self, fmt: str) -> None:
        super().__init__(f"Unsupported format: {fmt}")
        self.format = fmt


class InvalidBackupFormatError(CatalogError):
    """A restore input is not a backup snapshot."""
