"""
Transaction manager handling nested transactions and savepoints.
"""

from __future__ import annotations

import itertools
from typing import List

from ..adapters.base import AdapterError, DatabaseAdapter
from ..dialects.base import Dialect
from ..errors import TransactionError


class TransactionManager:
    """
    Coordinates begin/commit/rollback with savepoints for nested scopes.

    Driver failures are surfaced as :class:`~blogstore.errors.TransactionError`.
    """

    def __init__(self, adapter: DatabaseAdapter, dialect: Dialect) -> None:
        self.adapter = adapter
        self.dialect = dialect
        self._stack: List[str | None] = []
        self._savepoint_counter = itertools.count(1)

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def active(self) -> bool:
        return bool(self._stack)

    def begin(self) -> None:
        if self.depth == 0:
            self._call(self.adapter.begin, "begin")
            self._stack.append(None)
            return

        if not self.dialect.capabilities.supports_savepoints:
            raise TransactionError("Nested transactions not supported by current dialect.")

        name = f"sp_{next(self._savepoint_counter)}"
        self._call(lambda: self.adapter.execute(f"SAVEPOINT {name}"), "savepoint")
        self._stack.append(name)

    def commit(self) -> None:
        if self.depth == 0:
            raise TransactionError("No active transaction to commit.")

        # The scope stays open until the driver confirms, so a failed commit can
        # still be rolled back.
        savepoint_name = self._stack[-1]
        if savepoint_name is None:
            self._call(self.adapter.commit, "commit")
        else:
            self._call(lambda: self.adapter.execute(f"RELEASE SAVEPOINT {savepoint_name}"), "release")
        self._stack.pop()

    def rollback(self) -> None:
        if self.depth == 0:
            raise TransactionError("No active transaction to roll back.")

        savepoint_name = self._stack.pop()
        if savepoint_name is None:
            self._call(self.adapter.rollback, "rollback")
            return

        def rollback_to_savepoint() -> None:
            self.adapter.execute(f"ROLLBACK TO SAVEPOINT {savepoint_name}")
            self.adapter.execute(f"RELEASE SAVEPOINT {savepoint_name}")

        self._call(rollback_to_savepoint, "rollback to savepoint")

    def rollback_all(self) -> None:
        """Abandon every open scope, including the outermost transaction."""
        if self.depth == 0:
            return
        self._stack.clear()
        self._call(self.adapter.rollback, "rollback")

    @staticmethod
    def _call(operation, label: str) -> None:
        try:
            operation()
        except AdapterError as exc:
            raise TransactionError(f"Transaction {label} failed: {exc}") from exc
