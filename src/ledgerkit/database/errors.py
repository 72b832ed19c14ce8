"""Storage-level failures raised by Database implementations.

These describe what went wrong in the store, not what it means to the
domain; the domain layer translates them (see domain.transaction).
"""

from typing import Optional


class StorageError(Exception):
    """Base class for storage failures."""


class UniqueViolation(StorageError):
    """A unique constraint rejected the write."""

    def __init__(self, message: str, constraint: Optional[str] = None):
        super().__init__(message)
        self.constraint = constraint


class ForeignKeyViolation(StorageError):
    """A write referenced a row that does not exist.

    field_name names the failing column (e.g. "category_id") when the store
    can tell; it is "" otherwise.
    """

    def __init__(self, message: str, field_name: str = ""):
        super().__init__(message)
        self.field_name = field_name


class RecordNotFound(StorageError):
    """An update or delete targeted a row that does not exist."""


class StorageValidationError(StorageError):
    """The store rejected a value as invalid for its column."""
