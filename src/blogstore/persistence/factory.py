"""
Per-request session construction.
"""

from __future__ import annotations

from typing import Callable, Optional

from ..adapters.base import DEFAULT_DSN_ENV, ConnectionConfig, DatabaseAdapter
from ..adapters.factory import adapter_for_config
from ..utils import get_logger, set_correlation_id
from .session import Session

AdapterFactory = Callable[[ConnectionConfig], DatabaseAdapter]


class SessionFactory:
    """
    Builds a fresh adapter and :class:`Session` for every call.

    Sessions never share connections or cached entities, so a factory is the
    only object that should be held across requests.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        adapter_factory: Optional[AdapterFactory] = None,
    ) -> None:
        self.config = config
        self._adapter_factory = adapter_factory or adapter_for_config
        self.logger = get_logger("persistence.factory")

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs) -> "SessionFactory":
        return cls(ConnectionConfig.from_dsn(dsn), **kwargs)

    @classmethod
    def from_env(cls, env_var: str = DEFAULT_DSN_ENV, **kwargs) -> "SessionFactory":
        return cls(ConnectionConfig.from_env(env_var), **kwargs)

    def __call__(self, correlation_id: Optional[str] = None) -> Session:
        token = set_correlation_id(correlation_id)
        adapter = self._adapter_factory(self.config)
        self.logger.debug("Opening session %s on %s", token, self.config.descriptive_label())
        return Session(adapter, connection_config=self.config)
