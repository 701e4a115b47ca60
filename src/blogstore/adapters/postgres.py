"""
PostgreSQL database adapter implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from ..dialects.postgres import PostgresDialect
from ..errors import IntegrityError
from ..utils import get_logger, time_call
from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    DatabaseAdapter,
    resolve_slow_query_ms,
)


def _load_driver():
    try:
        import psycopg

        return psycopg
    except ImportError:
        return None


@dataclass
class PostgresConnectionState:
    connection: Any
    config: ConnectionConfig
    driver: Any


class PostgresAdapter(DatabaseAdapter):
    """
    Adapter wrapping the psycopg PostgreSQL driver.
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = PostgresDialect()
        self._state: PostgresConnectionState | None = None
        self.logger = get_logger("adapters.postgres")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError(
                "psycopg is required to use PostgresAdapter (pip install blogstore[postgres])."
            )

        options = dict(config.options or {})
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info(
            "Connecting to PostgreSQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )
        try:
            connection = driver.connect(self._conninfo(config), **options)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to PostgreSQL.") from exc
        connection.autocommit = bool(config.autocommit)
        if config.isolation_level:
            connection.isolation_level = self._isolation_level(driver, config.isolation_level)

        self._state = PostgresConnectionState(connection, config, driver)
        return connection

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    def _ensure_state(self) -> PostgresConnectionState:
        if not self._state:
            raise AdapterConnectionError("PostgresAdapter is not connected.")
        return self._state

    def execute(self, sql: str, params: Sequence[Any] | None = None):
        state = self._ensure_state()
        cursor = state.connection.cursor()
        params = tuple(params or ())
        self._validate_params(sql, params)
        integrity_error = getattr(state.driver, "IntegrityError", None)
        with time_call("postgres.execute", self.logger, sql=sql, threshold_ms=self.slow_query_ms):
            try:
                cursor.execute(sql, params)
            except Exception as exc:
                if integrity_error is not None and isinstance(exc, integrity_error):
                    raise IntegrityError(str(exc)) from exc
                raise AdapterExecutionError(f"PostgreSQL rejected statement: {exc}") from exc
        return cursor

    def begin(self) -> None:
        # psycopg opens a transaction implicitly on the first statement.
        self._ensure_state()

    def commit(self) -> None:
        state = self._ensure_state()
        try:
            state.connection.commit()
        except Exception as exc:
            raise AdapterTransactionError("PostgreSQL commit failed.") from exc

    def rollback(self) -> None:
        state = self._ensure_state()
        try:
            state.connection.rollback()
        except Exception as exc:
            raise AdapterTransactionError("PostgreSQL rollback failed.") from exc

    def last_insert_id(self, cursor: Any, table: str, pk_column: str) -> Any:
        row = cursor.fetchone()
        if not row:
            raise AdapterExecutionError(
                f"INSERT into {table} returned no {pk_column}; RETURNING clause missing?"
            )
        return row[0]

    @staticmethod
    def _conninfo(config: ConnectionConfig) -> str:
        # Query parameters were already split into driver options by ConnectionConfig.
        url = config.url.split("?", 1)[0]
        if url.startswith("postgresql+"):
            return "postgresql://" + url.split("://", 1)[1]
        return url

    @staticmethod
    def _isolation_level(driver: Any, name: str) -> Any:
        levels = getattr(driver, "IsolationLevel", None)
        if levels is None:
            return name
        try:
            return levels[name.strip().upper().replace(" ", "_")]
        except KeyError as exc:
            raise AdapterConfigurationError(f"Unknown isolation level {name!r}.") from exc

    @staticmethod
    def _count_placeholders(sql: str) -> int:
        count = 0
        idx = 0
        while idx < len(sql) - 1:
            pair = sql[idx : idx + 2]
            if pair == "%s":
                count += 1
                idx += 2
            elif pair == "%%":
                idx += 2
            else:
                idx += 1
        return count

    def _validate_params(self, sql: str, params: Sequence[Any]) -> None:
        expected = self._count_placeholders(sql)
        if expected != len(params):
            raise AdapterExecutionError(
                f"Parameter count mismatch: expected {expected}, received {len(params)}."
            )
