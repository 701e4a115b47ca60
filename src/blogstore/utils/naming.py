"""
Naming utilities for blogstore.
"""

import re


_WORD_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def camel_to_snake(name: str) -> str:
    """
    Convert ``CamelCase`` class names to ``snake_case`` table names.
    """
    return _WORD_BOUNDARY_RE.sub("_", name).lower()
