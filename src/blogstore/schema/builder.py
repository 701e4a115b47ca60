"""
Schema builder converting model metadata into DDL statements.
"""

from __future__ import annotations

from typing import Any, Iterable, List

from ..core.fields import AutoField, Field
from ..core.model import Model
from ..dialects.base import Dialect
from ..utils import get_logger


class SchemaBuilder:
    """
    Produces dialect-specific CREATE TABLE statements for models.
    """

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self.logger = get_logger("schema.builder")

    def create_table_sql(self, model: type[Model]) -> str:
        table_name = self.dialect.format_table(model._meta.table_name)
        column_list = ", ".join(self._render_columns(model))
        return f"CREATE TABLE IF NOT EXISTS {table_name} ({column_list})"

    def create_all(self, executor: Any, models: Iterable[type[Model]]) -> List[str]:
        """
        Create tables for ``models`` through anything with an ``execute(sql)``
        method (a session or an adapter). Returns the statements issued.
        """

        statements = [self.create_table_sql(model) for model in models]
        for sql in statements:
            executor.execute(sql)
        self.logger.info("Ensured %d table(s)", len(statements))
        return statements

    def _render_columns(self, model: type[Model]) -> List[str]:
        pieces: List[str] = []
        for field in model._meta.get_fields():
            if isinstance(field, AutoField):
                pieces.append(self.dialect.render_auto_increment_column(field.column_name()))
                continue
            if not field.db_type:
                raise ValueError(f"Field '{field.name}' missing db_type for schema generation.")
            column_def = self.dialect.render_column_definition(
                field.column_name(),
                field.db_type,
                nullable=field.nullable and not field.primary_key,
            )
            extras: List[str] = []
            if field.primary_key:
                extras.append("PRIMARY KEY")
            elif field.unique:
                extras.append("UNIQUE")
            default_sql = self._default_clause(field)
            if default_sql:
                extras.append(default_sql)
            if extras:
                column_def = f"{column_def} {' '.join(extras)}"
            pieces.append(column_def)
        return pieces

    @staticmethod
    def _default_clause(field: Field) -> str | None:
        if field.default is None or callable(field.default):
            return None
        value = field.default
        if isinstance(value, str):
            escaped = value.replace("'", "''")
            return f"DEFAULT '{escaped}'"
        return f"DEFAULT {value}"
