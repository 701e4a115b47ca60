"""
Error taxonomy surfaced by the persistence layer.
"""

from __future__ import annotations

from typing import Any


class PersistenceError(Exception):
    """Base class for errors raised by blogstore sessions."""


class NotFoundError(PersistenceError):
    """Raised when a requested primary key has no matching row."""

    def __init__(self, model: type, pk: Any) -> None:
        self.model = model
        self.pk = pk
        super().__init__(f"{model.__name__} with primary key {pk!r} does not exist.")


class IntegrityError(PersistenceError):
    """Raised when the store rejects a write because of a constraint."""


class MultipleResultsError(PersistenceError):
    """
    Raised when a lookup expected to match at most one row matched several.

    This indicates the data no longer honours a uniqueness assumption and is
    treated as fatal by callers.
    """

    def __init__(self, model: type, filters: dict[str, Any]) -> None:
        self.model = model
        self.filters = dict(filters)
        lookup = ", ".join(f"{key}={value!r}" for key, value in self.filters.items())
        super().__init__(f"Multiple {model.__name__} rows match unique lookup ({lookup}).")


class TransactionError(PersistenceError):
    """Raised when begin/commit/rollback cannot be carried out."""


class EntityStateError(PersistenceError):
    """Raised when an operation is not valid for the entity's lifecycle state."""
