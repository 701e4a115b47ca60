"""
Adapter selection by DSN scheme.
"""

from __future__ import annotations

from .base import AdapterConfigurationError, ConnectionConfig, DatabaseAdapter
from .postgres import PostgresAdapter
from .sqlite import SQLiteAdapter

_ADAPTERS: dict[str, type] = {
    "sqlite": SQLiteAdapter,
    "postgres": PostgresAdapter,
    "postgresql": PostgresAdapter,
    "postgresql+psycopg": PostgresAdapter,
}


def adapter_for_config(config: ConnectionConfig, *, slow_query_ms: int | None = None) -> DatabaseAdapter:
    """
    Instantiate an unconnected adapter matching the config's DSN scheme.
    """

    adapter_cls = _ADAPTERS.get(config.scheme)
    if adapter_cls is None:
        raise AdapterConfigurationError(
            f"No adapter registered for scheme {config.scheme!r} ({config.redacted_dsn()})."
        )
    return adapter_cls(slow_query_ms=slow_query_ms)
