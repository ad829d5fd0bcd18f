"""Record descriptors: explicit column mappings for user record types.

A record type is any class querycraft can turn into a row (``values()``,
``set_record()``) or build from a row (``one(model)``, ``all(model)``).  Its
:class:`RecordDescriptor` lists ``(attribute, column)`` pairs in declaration
order and is resolved from, in order:

1. a descriptor registered with :func:`register_record`;
2. dataclass field metadata, ``field(metadata={"db": "column"})``;
3. pydantic field extras, ``Field(json_schema_extra={"db": "column"})``.

Fields without a ``db`` entry, or whose entry is ``"-"``, are not mapped.
Descriptors are computed once per type and cached.
"""
from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, TypeAdapter

#: Metadata key carrying the column name.
TAG = "db"

#: Tag value that excludes a field from mapping.
SKIP = "-"


@dataclass(frozen=True)
class RecordDescriptor:
    """Ordered attribute-to-column mapping for one record type.

    Attributes:
        model: The record type described.
        fields: ``(attribute, column)`` pairs in declaration order.
    """

    model: type
    fields: tuple[tuple[str, str], ...]

    @property
    def columns(self) -> list[str]:
        """Mapped column names in declaration order."""
        return [column for _, column in self.fields]

    @property
    def attributes(self) -> list[str]:
        return [attr for attr, _ in self.fields]

    def extract(self, record: Any) -> dict[str, Any]:
        """Return ``{column: value}`` read from ``record``'s attributes."""
        return {column: getattr(record, attr) for attr, column in self.fields}

    def to_attributes(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Rename a row's columns to attribute names, dropping unmapped ones."""
        by_column = {column: attr for attr, column in self.fields}
        return {by_column[key]: value for key, value in row.items() if key in by_column}


_registry: dict[type, RecordDescriptor] = {}
_lock = threading.Lock()


def register_record(
    model: type,
    mapping: Mapping[str, str] | Iterable[tuple[str, str]],
) -> RecordDescriptor:
    """Register an explicit descriptor for ``model``.

    Registered descriptors take precedence over field metadata.

    Args:
        model: The record class.
        mapping: ``{attribute: column}`` or ``(attribute, column)`` pairs.

    Returns:
        The registered descriptor.
    """
    pairs = mapping.items() if isinstance(mapping, Mapping) else mapping
    descriptor = RecordDescriptor(
        model=model,
        fields=tuple((attr, column) for attr, column in pairs if column != SKIP),
    )
    with _lock:
        _registry[model] = descriptor
    return descriptor


def _from_dataclass(model: type) -> RecordDescriptor:
    pairs = []
    for f in dataclasses.fields(model):
        column = f.metadata.get(TAG)
        if column and column != SKIP:
            pairs.append((f.name, column))
    return RecordDescriptor(model=model, fields=tuple(pairs))


def _from_pydantic(model: type[BaseModel]) -> RecordDescriptor:
    pairs = []
    for name, info in model.model_fields.items():
        extra = info.json_schema_extra
        column = extra.get(TAG) if isinstance(extra, dict) else None
        if isinstance(column, str) and column and column != SKIP:
            pairs.append((name, column))
    return RecordDescriptor(model=model, fields=tuple(pairs))


def describe(model: type) -> RecordDescriptor | None:
    """Return the descriptor for ``model``, or ``None`` if it is not a record type."""
    with _lock:
        cached = _registry.get(model)
    if cached is not None:
        return cached
    if dataclasses.is_dataclass(model):
        descriptor = _from_dataclass(model)
    elif isinstance(model, type) and issubclass(model, BaseModel):
        descriptor = _from_pydantic(model)
    else:
        return None
    with _lock:
        _registry.setdefault(model, descriptor)
    return descriptor


def is_record(value: Any) -> bool:
    """Return True when ``value`` is an instance of a describable record type."""
    if isinstance(value, type):
        return False
    return describe(type(value)) is not None


@lru_cache(maxsize=None)
def _adapter(model: type) -> TypeAdapter:
    return TypeAdapter(model)


def decode_record(model: type, row: Mapping[str, Any]) -> Any:
    """Build a ``model`` instance from a result row.

    Columns are renamed to attributes through the model's descriptor, then
    validated with pydantic.  Registered plain classes are constructed with
    keyword arguments instead.

    Raises:
        TypeError: If ``model`` has no descriptor.
        pydantic.ValidationError: If the row does not fit the model.
    """
    descriptor = describe(model)
    if descriptor is None:
        raise TypeError(f"{model!r} is not a record type; register it with register_record().")
    data = descriptor.to_attributes(row)
    if dataclasses.is_dataclass(model) or issubclass(model, BaseModel):
        return _adapter(model).validate_python(data)
    return model(**data)
