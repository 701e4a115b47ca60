"""
Model base classes and metadata orchestration for blogstore.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Type, TypeVar

from ..security.redaction import REDACTED_VALUE
from ..utils import camel_to_snake
from .fields import AutoField, Field


class ModelConfigurationError(Exception):
    """Raised when a model class is misconfigured."""


@dataclass
class ModelOptions:
    """
    Container for model metadata calculated by :class:`ModelMeta`.
    """

    model: Type["Model"]
    table_name: str = ""
    fields: "OrderedDict[str, Field]" = field(default_factory=OrderedDict)
    primary_key: Optional[Field] = None

    def add_field(self, field_obj: Field) -> None:
        if field_obj.name in self.fields:
            raise ModelConfigurationError(
                f"Duplicate field name '{field_obj.name}' on model '{self.model.__name__}'"
            )
        self.fields[field_obj.name] = field_obj
        if field_obj.primary_key:
            if self.primary_key and self.primary_key is not field_obj:
                raise ModelConfigurationError(
                    f"Multiple primary keys defined on model '{self.model.__name__}'"
                )
            self.primary_key = field_obj

    def get_field(self, name: str) -> Field:
        try:
            return self.fields[name]
        except KeyError as exc:
            raise KeyError(f"Unknown field '{name}' on model '{self.model.__name__}'") from exc

    def get_fields(self) -> Iterable[Field]:
        return self.fields.values()

    def field_for_column(self, column: str) -> Field:
        for candidate in self.fields.values():
            if candidate.column_name() == column:
                return candidate
        raise KeyError(f"Unknown column '{column}' on table '{self.table_name}'")

    @property
    def pk_name(self) -> str:
        if self.primary_key is None:
            raise ModelConfigurationError(f"Model '{self.model.__name__}' has no primary key.")
        return self.primary_key.require_name()


TModel = TypeVar("TModel", bound="Model")


class ModelMeta(type):
    """
    Metaclass responsible for collecting fields and establishing metadata.
    """

    def __new__(mcls, name: str, bases: tuple[type, ...], attrs: Dict[str, Any]) -> "ModelMeta":
        # The base Model class itself carries no fields.
        if name == "Model" and bases == (object,):
            return super().__new__(mcls, name, bases, attrs)

        declared_fields: Dict[str, Field] = {}
        for attr_name, value in list(attrs.items()):
            if isinstance(value, Field):
                declared_fields[attr_name] = attrs.pop(attr_name)

        cls = super().__new__(mcls, name, bases, attrs)

        meta = getattr(cls, "Meta", None)
        table_name = getattr(meta, "table", None) or camel_to_snake(name)
        cls._meta = ModelOptions(model=cls, table_name=table_name)

        sorted_fields = sorted(declared_fields.items(), key=lambda item: item[1].creation_counter)
        for attr_name, field_obj in sorted_fields:
            field_obj.contribute_to_class(cls, attr_name)
            cls._meta.add_field(field_obj)

        if not cls._meta.primary_key:
            if "id" in cls._meta.fields:
                raise ModelConfigurationError(
                    f"Model '{cls.__name__}' defines a field named 'id' but no primary key. "
                    "Either set primary_key=True on that field or define a different name."
                )
            auto_field = AutoField()
            auto_field.contribute_to_class(cls, "id")
            cls._meta.add_field(auto_field)
            cls._meta.fields.move_to_end("id", last=False)

        return cls


class Model(metaclass=ModelMeta):
    """
    Plain data record. Persistence is handled by :class:`blogstore.persistence.Session`.
    """

    _meta: ModelOptions

    def __init__(self, **kwargs: Any) -> None:
        self._field_values: Dict[str, Any] = {}

        unknown = set(kwargs) - set(self._meta.fields)
        if unknown:
            raise TypeError(
                f"{self.__class__.__name__} got unexpected field(s): {', '.join(sorted(unknown))}"
            )

        for field_obj in self._meta.get_fields():
            if field_obj.name in kwargs:
                setattr(self, field_obj.name, kwargs[field_obj.name])
            elif field_obj.has_default:
                setattr(self, field_obj.name, field_obj.get_default())

    @classmethod
    def from_fields(cls: Type[TModel], values: Mapping[str, Any]) -> TModel:
        """
        Build a transient instance from an already-deserialized field map.

        Keys that are not model fields, and the primary key, are ignored.
        """
        pk_name = cls._meta.pk_name
        accepted = {
            key: value
            for key, value in values.items()
            if key in cls._meta.fields and key != pk_name
        }
        return cls(**accepted)

    def __repr__(self) -> str:
        field_parts = ", ".join(
            f"{f.name}={REDACTED_VALUE if f.sensitive else repr(self._field_values.get(f.name))}"
            for f in self._meta.get_fields()
            if f.name in self._field_values
        )
        return f"<{self.__class__.__name__} {field_parts}>"

    @property
    def pk(self) -> Any:
        return getattr(self, self._meta.pk_name)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in self._meta.get_fields()}
