"""
Adapter protocol definitions and connection configuration for blogstore.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from ..dialects.base import Dialect
from ..security.dsns import DSNConfig, parse_dsn

DEFAULT_DSN_ENV = "BLOGSTORE_DATABASE_URL"
SLOW_QUERY_ENV = "BLOGSTORE_SLOW_QUERY_MS"


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class AdapterExecutionError(AdapterError):
    """Raised when SQL execution or parameter validation fails."""


class AdapterTransactionError(AdapterError):
    """Raised when the driver fails to begin, commit or roll back."""


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str, *, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AdapterConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_number(value: str, *, key: str, kind: type) -> Any:
    try:
        return kind(value)
    except ValueError as exc:
        raise AdapterConfigurationError(
            f"Invalid {kind.__name__} value for '{key}': {value!r}"
        ) from exc


def resolve_slow_query_ms(*, default: int, override: int | None = None) -> int:
    """
    Pick the slow-query threshold: explicit override, then environment, then default.
    """

    if override is not None:
        return override
    raw = os.getenv(SLOW_QUERY_ENV)
    if not raw:
        return default
    return _parse_number(raw, key=SLOW_QUERY_ENV, kind=int)


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for adapters.
    """

    url: str
    autocommit: bool = False
    isolation_level: str | None = None
    timeout: float | None = None
    options: dict[str, Any] | None = None
    dsn: DSNConfig | None = None
    source: str | None = None

    @property
    def scheme(self) -> str:
        if self.dsn:
            return self.dsn.scheme
        return self.url.split(":", 1)[0]

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a connection config by parsing the DSN string.

        ``autocommit``, ``timeout`` and ``isolation_level`` are lifted out of the
        query string; remaining query parameters become driver options. Keyword
        arguments take precedence over values found in the DSN.
        """

        parsed = parse_dsn(dsn)
        query = dict(parsed.query)

        autocommit = None
        if "autocommit" in query:
            autocommit = _parse_bool(query.pop("autocommit"), key="autocommit")
        timeout = None
        if "timeout" in query:
            timeout = _parse_number(query.pop("timeout"), key="timeout", kind=float)
        isolation_level = query.pop("isolation_level", None)

        options: dict[str, Any] = {}
        for key, value in query.items():
            if key == "connect_timeout":
                options[key] = _parse_number(value, key=key, kind=int)
            else:
                options[key] = value
        options.update(kwargs.pop("options", None) or {})

        autocommit = kwargs.pop("autocommit", autocommit)
        return cls(
            url=dsn,
            dsn=parsed,
            autocommit=bool(autocommit),
            isolation_level=kwargs.pop("isolation_level", isolation_level),
            timeout=kwargs.pop("timeout", timeout),
            options=options or None,
            **kwargs,
        )

    @classmethod
    def from_env(cls, env_var: str = DEFAULT_DSN_ENV, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from an environment variable containing a DSN.
        """

        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **kwargs)

    def redacted_dsn(self) -> str:
        """
        Return a DSN safe for logging (credentials removed).
        """

        if self.dsn:
            return self.dsn.redacted()
        return self.url

    def descriptive_label(self) -> str:
        redacted = self.redacted_dsn()
        if self.source:
            return f"{self.source} ({redacted})"
        return redacted


class DatabaseAdapter(Protocol):
    """
    Connection/transaction provider consumed by sessions.

    An adapter owns exactly one connection; it is never shared between sessions.
    """

    dialect: Dialect
    slow_query_ms: int

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Establish a connection handle using the supplied configuration.
        """

    def close(self) -> None:
        """
        Close underlying resources. Implementations should be idempotent.
        """

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        """
        Execute a single SQL statement returning a cursor-like object.

        Constraint violations are raised as :class:`blogstore.errors.IntegrityError`.
        """

    def begin(self) -> None:
        """
        Start a transaction.
        """

    def commit(self) -> None:
        """
        Commit the current transaction.
        """

    def rollback(self) -> None:
        """
        Roll back the current transaction.
        """

    def last_insert_id(self, cursor: Any, table: str, pk_column: str) -> Any:
        """
        Retrieve the primary key value generated by the previous insert.
        """
