"""Redaction helpers for logged statement parameters."""

from __future__ import annotations

from typing import Any, Iterable

REDACTED_VALUE = "***"

_SENSITIVE_TOKENS = (
    "password",
    "passwd",
    "secret",
    "token",
    "api_key",
    "apikey",
    "private_key",
    "bearer",
)


def is_sensitive(text: str) -> bool:
    normalized = text.lower()
    return any(token in normalized for token in _SENSITIVE_TOKENS)


def redact_value(value: Any, *, key: str | None = None) -> Any:
    if key is not None and is_sensitive(key):
        return REDACTED_VALUE
    if isinstance(value, dict):
        return {k: redact_value(v, key=str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(redact_value(item) for item in value)
    if isinstance(value, str) and is_sensitive(value):
        return REDACTED_VALUE
    return value


def redact_params(params: Iterable[Any], *, masked_positions: Iterable[int] = ()) -> list[Any]:
    """
    Redact statement parameters for logging.

    ``masked_positions`` marks parameters bound to sensitive columns; those are
    masked regardless of their content.
    """
    masked = set(masked_positions)
    return [
        REDACTED_VALUE if index in masked else redact_value(value)
        for index, value in enumerate(params)
    ]
