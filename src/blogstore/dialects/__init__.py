"""
SQL dialects for the supported backends.
"""

from .base import Dialect, DialectCapabilities, StandardDialect
from .postgres import PostgresDialect
from .sqlite import SQLiteDialect

__all__ = ["Dialect", "DialectCapabilities", "StandardDialect", "SQLiteDialect", "PostgresDialect"]
