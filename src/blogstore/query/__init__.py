"""
Statement compilation and read-query execution.
"""

from .compiler import SQLCompiler, Statement
from .executor import QueryExecutor

__all__ = ["QueryExecutor", "SQLCompiler", "Statement"]
