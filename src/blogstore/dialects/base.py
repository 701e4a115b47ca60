"""
Dialect strategy interfaces describing SQL rendering behaviors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class DialectCapabilities:
    """
    Feature flags describing backend capabilities.
    """

    supports_returning: bool = False
    supports_savepoints: bool = True


class Dialect(Protocol):
    """
    Strategy interface consumed by the compiler, schema builder and transaction manager.
    """

    name: str
    placeholder: str
    capabilities: DialectCapabilities

    def quote_identifier(self, identifier: str) -> str: ...

    def format_table(self, table_name: str) -> str: ...

    def limit_clause(self, limit: Optional[int]) -> str: ...

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str: ...

    def render_auto_increment_column(self, column: str) -> str: ...


class StandardDialect:
    """
    ANSI double-quote identifiers and ``LIMIT n``; backends override the rest.
    """

    name = "standard"
    placeholder = "?"
    capabilities = DialectCapabilities()

    def quote_identifier(self, identifier: str) -> str:
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'

    def format_table(self, table_name: str) -> str:
        return ".".join(self.quote_identifier(part) for part in table_name.split("."))

    def limit_clause(self, limit: Optional[int]) -> str:
        if limit is None:
            return ""
        return f"LIMIT {int(limit)}"

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str:
        rendered = f"{self.quote_identifier(column)} {column_type}"
        if not nullable:
            rendered += " NOT NULL"
        return rendered

    def render_auto_increment_column(self, column: str) -> str:
        raise NotImplementedError(f"{type(self).__name__} cannot render auto-increment keys.")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
