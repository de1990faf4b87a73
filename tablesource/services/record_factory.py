from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..errors import InvalidConfigurationError

"""Empty-record factories and record shape helpers.

A TableDataSource needs to build an empty record whenever a new row is
created. Callers either pass a zero-argument callable (a dataclass type, a
function returning a dict, ...) or let the source derive a KeysRecordFactory
from the field names of the first supplied record.
"""

__all__ = [
    "EMPTY",
    "RecordFactory",
    "KeysRecordFactory",
    "record_keys",
    "record_to_mapping",
]

# Value of every field in a record built by KeysRecordFactory
EMPTY: Any = None

RecordFactory = Callable[[], Any]


class KeysRecordFactory:
    """Builds dict records with a fixed set of keys, all set to EMPTY."""

    def __init__(self, keys: Iterable[str]) -> None:
        self.keys = list(keys)

    @classmethod
    def from_record(cls, record: Any) -> KeysRecordFactory:
        return cls(record_keys(record))

    def __call__(self) -> dict[str, Any]:
        return {key: EMPTY for key in self.keys}

    def __repr__(self) -> str:
        return f"KeysRecordFactory(keys={self.keys!r})"


def record_keys(record: Any) -> list[str]:
    """Field names of a record: mapping keys, dataclass fields or attributes.

    Raises:
        InvalidConfigurationError: the record exposes no field names.
    """
    if isinstance(record, Mapping):
        return list(record.keys())
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return [f.name for f in dataclasses.fields(record)]
    if isinstance(record, tuple) and hasattr(record, "_fields"):
        return list(record._fields)
    if hasattr(record, "__dict__"):
        return list(vars(record).keys())
    slots = _slot_names(type(record))
    if slots:
        return slots
    raise InvalidConfigurationError(
        f"cannot determine the fields of a {type(record).__name__} record; "
        "pass a mapping, a dataclass, a named tuple or an object with attributes"
    )


def _slot_names(cls: type) -> list[str]:
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name not in ("__dict__", "__weakref__") and name not in names:
                names.append(name)
    return names


def record_to_mapping(record: Any) -> dict[str, Any]:
    """Shallow field -> value view of a record."""
    if isinstance(record, Mapping):
        return dict(record)
    return {key: getattr(record, key) for key in record_keys(record)}
