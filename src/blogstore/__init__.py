"""
blogstore public package initialization.

Exposes the model layer, the persistence session and the error taxonomy.
The blog domain lives in :mod:`blogstore.blog`.
"""

from .core.model import Model, ModelConfigurationError  # noqa: F401
from .core.fields import AutoField, DateTimeField, IntegerField, StringField  # noqa: F401
from .errors import (  # noqa: F401
    EntityStateError,
    IntegrityError,
    MultipleResultsError,
    NotFoundError,
    PersistenceError,
    TransactionError,
)
from .persistence import EntityState, Session, SessionFactory  # noqa: F401
from .schema import SchemaBuilder  # noqa: F401

__all__ = [
    "Model",
    "AutoField",
    "DateTimeField",
    "IntegerField",
    "StringField",
    "ModelConfigurationError",
    "EntityState",
    "Session",
    "SessionFactory",
    "SchemaBuilder",
    "PersistenceError",
    "NotFoundError",
    "IntegrityError",
    "MultipleResultsError",
    "TransactionError",
    "EntityStateError",
]
