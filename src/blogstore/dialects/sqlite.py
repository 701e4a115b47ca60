"""
SQLite dialect implementation.
"""

from __future__ import annotations

from .base import DialectCapabilities, StandardDialect


class SQLiteDialect(StandardDialect):
    """
    SQLite dialect using qmark placeholders; keys come back through ``lastrowid``.
    """

    name = "sqlite"
    placeholder = "?"
    capabilities = DialectCapabilities(supports_returning=False, supports_savepoints=True)

    def render_auto_increment_column(self, column: str) -> str:
        # AUTOINCREMENT keeps SQLite from reusing keys of deleted rows.
        return f"{self.quote_identifier(column)} INTEGER PRIMARY KEY AUTOINCREMENT"
