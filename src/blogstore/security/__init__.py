"""Credential handling helpers: DSN parsing and log redaction."""

from .dsns import DSNConfig, parse_dsn
from .redaction import REDACTED_VALUE, redact_params, redact_value

__all__ = ["DSNConfig", "parse_dsn", "REDACTED_VALUE", "redact_params", "redact_value"]
