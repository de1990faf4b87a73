from __future__ import annotations

import copy
import dataclasses
import weakref
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ..errors import RowNotFoundError
from ..services.record_factory import record_to_mapping

if TYPE_CHECKING:
    from ..services.data_source import TableDataSource
    from ..services.validator import RowValidator

"""Row wrappers for the editable table.

A row carries identity (``id``, -1 for the pending new row), the editing flag,
the live record (``current_data``) and the snapshot taken when an edit started
(``original_data``). Rows hold only a weak reference to the data source that
owns them; the source clears it when the row is removed.

Two variants exist:

- TableElement: plain attributes, always valid. Used when the validator
  service hands out no validation handle.
- ValidatedTableElement: current data, editing flag and validity all live in
  a RowValidator handle.
"""

__all__ = [
    "NEW_ROW_ID",
    "TableElement",
    "ValidatedTableElement",
]

T = TypeVar("T")

NEW_ROW_ID = -1


class TableElement(Generic[T]):
    """One line of the table, editable or not."""

    def __init__(
        self,
        *,
        id: int,
        editing: bool = False,
        current_data: T | None = None,
        original_data: T | None = None,
        source: TableDataSource[T] | None = None,
    ) -> None:
        self.id = id
        self.original_data = original_data
        self._source_ref: weakref.ref[TableDataSource[T]] | None = None
        self.source = source
        self.current_data = current_data
        self.editing = editing

    @property
    def source(self) -> TableDataSource[T] | None:
        if self._source_ref is None:
            return None
        return self._source_ref()

    @source.setter
    def source(self, value: TableDataSource[T] | None) -> None:
        self._source_ref = weakref.ref(value) if value is not None else None

    @property
    def is_new(self) -> bool:
        return self.id == NEW_ROW_ID

    def is_valid(self) -> bool:
        return True

    def patch(self, data: Any) -> None:
        """Partial update: fields absent from ``data`` keep their value."""
        changes = record_to_mapping(data)
        current = self.current_data
        if current is None or isinstance(current, Mapping):
            self.current_data = {**(current or {}), **changes}  # type: ignore[assignment]
        elif dataclasses.is_dataclass(current):
            self.current_data = dataclasses.replace(current, **changes)
        elif isinstance(current, tuple) and hasattr(current, "_replace"):
            self.current_data = current._replace(**changes)
        else:
            updated = copy.copy(current)
            for key, value in changes.items():
                setattr(updated, key, value)
            self.current_data = updated

    def _owner(self) -> TableDataSource[T]:
        owner = self.source
        if owner is None:
            raise RowNotFoundError(self.id, f"row is detached from its data source: id={self.id}")
        return owner

    def start_edit(self) -> None:
        """Snapshot the current data and switch the row to editing."""
        keep = self._owner().options.keep_original_data_after_confirm
        if not keep or self.original_data is None:
            self.original_data = copy.copy(self.current_data)
        self.editing = True

    def confirm_edit_create(self) -> bool:
        """Commit the pending row or the ongoing edit. False if invalid."""
        owner = self._owner()
        if self.is_new:
            return owner.confirm_create(self)
        return owner.confirm_edit(self)

    def cancel_or_delete(self) -> None:
        """Drop the pending row (or a row not in edit), else roll the edit back."""
        owner = self._owner()
        if self.is_new or not self.editing:
            owner.delete(self.id)
        else:
            owner.cancel_edit(self)

    def delete(self) -> None:
        self._owner().delete(self.id)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self.id}, editing={self.editing}, "
            f"current_data={self.current_data!r})"
        )


class ValidatedTableElement(TableElement[T]):
    """Row whose data and editing state are held by a validation handle."""

    def __init__(self, *, validator: RowValidator, **kwargs: Any) -> None:
        self.validator = validator
        super().__init__(**kwargs)

    @property
    def current_data(self) -> T:
        return self.validator.get_raw_value()  # type: ignore[return-value]

    @current_data.setter
    def current_data(self, data: T | None) -> None:
        if data is not None:
            self.validator.patch_value(data)

    @property
    def editing(self) -> bool:
        return self.validator.enabled

    @editing.setter
    def editing(self, value: bool) -> None:
        if value:
            self.validator.enable()
        else:
            self.validator.disable()

    def patch(self, data: Any) -> None:
        self.validator.patch_value(data)

    def is_valid(self) -> bool:
        # A disabled handle always reports valid, so validity is read with the
        # handle enabled for the duration of the check.
        with self.validator.temporarily_enabled():
            return self.validator.valid
