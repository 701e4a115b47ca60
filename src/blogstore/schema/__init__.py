"""
Schema bootstrap utilities.
"""

from .builder import SchemaBuilder

__all__ = ["SchemaBuilder"]
