"""
Field definitions and descriptors for blogstore models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional, cast

if TYPE_CHECKING:
    from .model import Model


class FieldError(Exception):
    """Internal exception for field configuration issues."""


class Field:
    """
    Base class for model field descriptors.

    Fields keep attribute values in the owning instance's ``_field_values`` and
    retain the metadata needed for DDL and SQL generation. Assigning a value never
    touches storage.
    """

    _creation_counter = 0

    def __init__(
        self,
        *,
        primary_key: bool = False,
        unique: bool = False,
        nullable: bool = True,
        default: Any = None,
        db_type: Optional[str] = None,
        db_column: Optional[str] = None,
        sensitive: bool = False,
    ) -> None:
        self.primary_key = primary_key
        self.unique = unique
        self.nullable = nullable
        self.default = default
        self.db_type = db_type
        self.db_column = db_column
        self.sensitive = sensitive

        self.model: type["Model"] | None = None
        self.name: str | None = None
        self.creation_counter = Field._creation_counter
        Field._creation_counter += 1

    # Descriptor protocol -------------------------------------------------
    def __get__(self, instance: object | None, owner: type | None = None) -> Any:
        if instance is None:
            return self

        model_instance = cast("Model", instance)
        name = self.require_name()
        if name not in model_instance._field_values:
            default = self.get_default()
            if default is not None:
                model_instance._field_values[name] = default
            return default
        return model_instance._field_values[name]

    def __set__(self, instance: object, value: Any) -> None:
        model_instance = cast("Model", instance)
        name = self.require_name()
        python_value = None if value is None else self.to_python(value)
        if self.write_once:
            current = model_instance._field_values.get(name)
            if current is not None and python_value != current:
                raise ValueError(
                    f"Field '{name}' of {type(instance).__name__} is already {current!r} "
                    "and cannot be reassigned."
                )
        model_instance._field_values[name] = python_value

    # Metadata helpers ----------------------------------------------------
    def contribute_to_class(self, model: type["Model"], name: str) -> None:
        """
        Attach the field to the model class as a descriptor.
        """
        self.model = model
        self.name = name
        if self.db_column is None:
            self.db_column = name
        setattr(model, name, self)

    def require_name(self) -> str:
        if self.name is None:
            raise FieldError("Field name is not set.")
        return self.name

    def column_name(self) -> str:
        if self.db_column:
            return self.db_column
        return self.require_name()

    # Conversion ----------------------------------------------------------
    def get_default(self) -> Any:
        if callable(self.default):
            return self.default()
        return self.default

    @property
    def write_once(self) -> bool:
        """Whether the value is fixed once set: primary keys and insert stamps."""
        return self.primary_key

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def to_python(self, value: Any) -> Any:
        return value

    def to_db(self, value: Any) -> Any:
        """Convert a Python value to the form bound as a statement parameter."""
        return value

    def pre_insert(self, instance: "Model") -> bool:
        """
        Give the field a chance to stamp a value before the first INSERT.

        Returns ``True`` when the instance was modified.
        """
        return False


class AutoField(Field):
    """
    Auto-incrementing integer field used as default primary key.
    """

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", "INTEGER")
        super().__init__(primary_key=True, nullable=False, **kwargs)

    def to_python(self, value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value '{value}' for AutoField") from exc


class IntegerField(Field):
    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", "INTEGER")
        super().__init__(**kwargs)

    def to_python(self, value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid integer value '{value}'") from exc


class StringField(Field):
    def __init__(self, *, max_length: int | None = 255, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", "TEXT")
        super().__init__(**kwargs)
        self.max_length = max_length

    def to_python(self, value: Any) -> str:
        result = str(value)
        if self.max_length and len(result) > self.max_length:
            field_name = self.require_name()
            raise ValueError(f"Value for field '{field_name}' exceeds max_length {self.max_length}")
        return result


class DateTimeField(Field):
    """
    Timezone-aware timestamp.

    With ``auto_now_add`` the session stamps the current UTC time immediately
    before the first INSERT, replacing any preset value. Like a primary key, a
    set value cannot be reassigned. Values read back as naive datetimes are
    taken to be UTC.
    """

    def __init__(self, *, auto_now_add: bool = False, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", "TIMESTAMP")
        super().__init__(**kwargs)
        self.auto_now_add = auto_now_add

    def to_python(self, value: Any) -> datetime:
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value)
            except ValueError as exc:
                raise ValueError(f"Invalid timestamp {value!r} for field '{self.name}'") from exc
        if not isinstance(value, datetime):
            raise ValueError(f"Expected datetime for field '{self.name}', received {value!r}")
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def to_db(self, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        return value

    @property
    def write_once(self) -> bool:
        return self.auto_now_add or super().write_once

    def pre_insert(self, instance: "Model") -> bool:
        if not self.auto_now_add:
            return False
        instance._field_values[self.require_name()] = datetime.now(timezone.utc)
        return True
