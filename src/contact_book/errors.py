"""Exception taxonomy shared by the store and the HTTP layer.

The server maps each class to a status code in one place:
ValidationError -> 400, NotFoundError -> 404, anything else -> 500.
"""
from __future__ import annotations


class ContactBookError(Exception):
    """Base class for all contact-book failures."""


class ValidationError(ContactBookError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class NotFoundError(ContactBookError):
    def __init__(self, key: object, what: str = "Contact") -> None:
        super().__init__(f"{what} {key} not found")
        self.key = key
        self.what = what


class StorageError(ContactBookError):
    """Wraps sqlite3 errors (I/O, constraint violations)."""
