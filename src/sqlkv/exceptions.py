"""Custom exceptions for the sqlkv package.

Errors raised by the database itself are SQLAlchemy's own
(:class:`sqlalchemy.exc.IntegrityError`, :class:`sqlalchemy.exc.OperationalError`,
...) and reach the caller unmodified once any retry budget is spent.
"""

from __future__ import annotations


class SQLKVError(Exception):
    """Base exception for all sqlkv errors."""


class ConfigurationError(SQLKVError):
    """Raised when the store is misconfigured (e.g. no database URL)."""


class StoreError(SQLKVError):
    """Raised when a store operation fails."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        msg = f"Store error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class ValueFormatError(StoreError, ValueError):
    """Raised when ``increment`` meets a stored value that is not integer text."""

    def __init__(self, key: str, value: bytes | None = None) -> None:
        self.key = key
        self.value = value
        detail = f"value of key '{key}' is not an integer"
        if value is not None:
            detail += f": {value!r}"
        super().__init__("increment", detail)
