"""
PostgreSQL dialect implementation.
"""

from __future__ import annotations

from .base import DialectCapabilities, StandardDialect


class PostgresDialect(StandardDialect):
    """
    PostgreSQL dialect using psycopg's ``%s`` placeholders and ``RETURNING`` for keys.
    """

    name = "postgresql"
    placeholder = "%s"
    capabilities = DialectCapabilities(supports_returning=True, supports_savepoints=True)

    def render_auto_increment_column(self, column: str) -> str:
        return f"{self.quote_identifier(column)} BIGSERIAL PRIMARY KEY"
