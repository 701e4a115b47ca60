"""
Query executor running the three read shapes a session needs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..dialects.base import Dialect
from ..errors import MultipleResultsError
from .compiler import SQLCompiler, Statement

if TYPE_CHECKING:
    from ..core.model import Model

StatementRunner = Callable[[Statement], Any]
Materializer = Callable[[type, Dict[str, Any]], Optional["Model"]]


class QueryExecutor:
    """
    Translates typed lookups into SELECT statements and hydrates the rows.

    Hydration is delegated to ``materialize`` (normally the owning session), which
    merges each row with the identity map and may return ``None`` for rows the
    session has already scheduled for deletion.
    """

    def __init__(self, run: StatementRunner, dialect: Dialect, materialize: Materializer) -> None:
        self._run = run
        self.dialect = dialect
        self._materialize = materialize

    def compiler(self, model: type["Model"]) -> SQLCompiler:
        return SQLCompiler(model, self.dialect)

    def fetch_by_pk(self, model: type["Model"], pk: Any) -> Optional["Model"]:
        statement = self.compiler(model).select({model._meta.pk_name: pk}, limit=1)
        rows = self._fetch(statement)
        if not rows:
            return None
        return self._materialize(model, self._to_field_values(model, rows[0]))

    def fetch_unique(self, model: type["Model"], filters: Mapping[str, Any]) -> Optional["Model"]:
        if not filters:
            raise ValueError("A unique lookup needs at least one field filter.")
        # Two rows are enough to prove the uniqueness assumption wrong.
        statement = self.compiler(model).select(filters, limit=2)
        rows = self._fetch(statement)
        if len(rows) > 1:
            raise MultipleResultsError(model, dict(filters))
        if not rows:
            return None
        return self._materialize(model, self._to_field_values(model, rows[0]))

    def fetch_all(
        self,
        model: type["Model"],
        ordering: Sequence[str] | None = None,
        filters: Mapping[str, Any] | None = None,
    ) -> List["Model"]:
        if not ordering:
            ordering = (f"-{model._meta.pk_name}",)
        statement = self.compiler(model).select(filters, ordering=ordering)
        instances: List["Model"] = []
        for row in self._fetch(statement):
            instance = self._materialize(model, self._to_field_values(model, row))
            if instance is not None:
                instances.append(instance)
        return instances

    # Helpers -----------------------------------------------------------
    def _fetch(self, statement: Statement) -> List[Dict[str, Any]]:
        cursor = self._run(statement)
        return [self._row_to_dict(cursor, row) for row in cursor.fetchall()]

    @staticmethod
    def _row_to_dict(cursor, row) -> Dict[str, Any]:
        if hasattr(row, "keys"):
            return {key: row[key] for key in row.keys()}
        if getattr(cursor, "description", None):
            columns = [col[0] for col in cursor.description]
            return {col: row[idx] for idx, col in enumerate(columns)}
        raise ValueError("Unable to map database row to dictionary.")

    @staticmethod
    def _to_field_values(model: type["Model"], row: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            model._meta.field_for_column(column).require_name(): value
            for column, value in row.items()
        }
