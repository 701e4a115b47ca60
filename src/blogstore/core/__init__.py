"""
Core building blocks for blogstore models and metadata handling.
"""

from .fields import AutoField, DateTimeField, Field, IntegerField, StringField
from .model import Model, ModelConfigurationError, ModelMeta, ModelOptions

__all__ = [
    "AutoField",
    "DateTimeField",
    "Field",
    "IntegerField",
    "Model",
    "ModelConfigurationError",
    "ModelMeta",
    "ModelOptions",
    "StringField",
]
