"""
SQL compilation for the statements a session issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Sequence, Tuple

from ..dialects.base import Dialect

if TYPE_CHECKING:
    from ..core.model import Model


@dataclass(frozen=True)
class Statement:
    """
    A compiled SQL statement.

    ``masked`` holds the positions of parameters bound to sensitive columns so the
    session can redact them before logging.
    """

    sql: str
    params: Tuple[Any, ...] = ()
    masked: frozenset[int] = field(default_factory=frozenset)
    returning: bool = False


class SQLCompiler:
    """
    Compile model metadata plus runtime values into SELECT/INSERT/UPDATE/DELETE.
    """

    def __init__(self, model: type["Model"], dialect: Dialect) -> None:
        self.model = model
        self.dialect = dialect
        self.table = dialect.format_table(model._meta.table_name)

    # Reads -------------------------------------------------------------
    def select(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        ordering: Sequence[str] = (),
        limit: int | None = None,
    ) -> Statement:
        sql_parts: List[str] = [f"SELECT {self._select_list()}", "FROM", self.table]
        params: List[Any] = []
        masked: List[int] = []

        if filters:
            clauses = []
            for name, value in filters.items():
                field_obj = self.model._meta.get_field(name)
                column = self.dialect.quote_identifier(field_obj.column_name())
                if value is None:
                    clauses.append(f"{column} IS NULL")
                    continue
                if field_obj.sensitive:
                    masked.append(len(params))
                clauses.append(f"{column} = {self.dialect.placeholder}")
                params.append(field_obj.to_db(value))
            sql_parts.append("WHERE")
            sql_parts.append(" AND ".join(clauses))

        if ordering:
            sql_parts.append("ORDER BY")
            sql_parts.append(", ".join(self._compile_ordering(name) for name in ordering))

        limit_clause = self.dialect.limit_clause(limit)
        if limit_clause:
            sql_parts.append(limit_clause)

        return Statement(" ".join(sql_parts), tuple(params), frozenset(masked))

    # Writes ------------------------------------------------------------
    def insert(self, instance: "Model") -> Statement:
        columns: List[str] = []
        params: List[Any] = []
        masked: List[int] = []
        for field_obj in instance._meta.get_fields():
            value = instance._field_values.get(field_obj.require_name())
            if field_obj.primary_key and value is None:
                continue
            if field_obj.sensitive:
                masked.append(len(params))
            columns.append(self.dialect.quote_identifier(field_obj.column_name()))
            params.append(field_obj.to_db(value))

        placeholders = ", ".join(self.dialect.placeholder for _ in columns)
        if columns:
            sql = f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {self.table} DEFAULT VALUES"

        returning = self.dialect.capabilities.supports_returning
        if returning:
            pk_column = self.model._meta.primary_key.column_name()
            sql += f" RETURNING {self.dialect.quote_identifier(pk_column)}"
        return Statement(sql, tuple(params), frozenset(masked), returning)

    def update(self, instance: "Model", field_names: Iterable[str]) -> Statement:
        set_clauses: List[str] = []
        params: List[Any] = []
        masked: List[int] = []
        placeholder = self.dialect.placeholder
        # Declaration order keeps generated SQL stable for identical change sets.
        wanted = set(field_names)
        for field_obj in instance._meta.get_fields():
            name = field_obj.require_name()
            if name not in wanted or field_obj.write_once:
                continue
            if field_obj.sensitive:
                masked.append(len(params))
            set_clauses.append(f"{self.dialect.quote_identifier(field_obj.column_name())} = {placeholder}")
            params.append(field_obj.to_db(instance._field_values.get(name)))
        if not set_clauses:
            raise ValueError("UPDATE requires at least one non-key field.")

        params.append(instance.pk)
        sql = f"UPDATE {self.table} SET {', '.join(set_clauses)} WHERE {self._pk_clause()}"
        return Statement(sql, tuple(params), frozenset(masked))

    def delete(self, pk: Any) -> Statement:
        return Statement(f"DELETE FROM {self.table} WHERE {self._pk_clause()}", (pk,))

    # Helpers -----------------------------------------------------------
    def _select_list(self) -> str:
        return ", ".join(
            self.dialect.quote_identifier(f.column_name()) for f in self.model._meta.get_fields()
        )

    def _pk_clause(self) -> str:
        pk_column = self.model._meta.primary_key.column_name()
        return f"{self.dialect.quote_identifier(pk_column)} = {self.dialect.placeholder}"

    def _compile_ordering(self, field_name: str) -> str:
        descending = field_name.startswith("-")
        name = field_name[1:] if descending else field_name
        field_obj = self.model._meta.get_field(name)
        clause = self.dialect.quote_identifier(field_obj.column_name())
        if descending:
            clause += " DESC"
        return clause
