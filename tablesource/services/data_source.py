from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

from ..errors import (
    InvalidConfigurationError,
    RowMoveError,
    RowNotFoundError,
    TableSourceError,
)
from ..logging.diagnostics import DiagnosticBuffer
from ..models.config_models import ListRange, TableDataSourceOptions
from ..models.diagnostic_record import VALIDATION_MISMATCH, DiagnosticRecord
from ..models.table_element import NEW_ROW_ID, TableElement
from .channel import Channel, MappedObservable, Observable, Subscription
from .element_factory import TableElementFactory
from .record_factory import KeysRecordFactory, RecordFactory, record_keys
from .validator import DefaultValidatorService, ValidatorService

logger = logging.getLogger(__name__)

"""Editable table data source.

TableDataSource owns the ordered rows of a table and is the only thing that
mutates that sequence. It keeps three invariants across every operation:

- committed row ids are a contiguous permutation of 0..n-1, numbered from the
  first row (append mode) or from the last row (prepend mode);
- at most one row is pending (id -1);
- confirming a create or an edit only happens when the row is valid.

Every change is pushed synchronously on the rows channel. Changes to committed
data are then pushed, as plain records, on the datasource channel so the owner
can propagate them. Viewers connect with a visible range and receive the rows
sliced to the latest range they reported.
"""

__all__ = [
    "CollectionViewer",
    "InvalidConfigurationError",
    "RowMoveError",
    "RowNotFoundError",
    "TableDataSource",
    "TableSourceError",
    "window_rows",
]

T = TypeVar("T")


class ViewChangeSource(Protocol):
    view_change: Observable[ListRange]


class CollectionViewer:
    """Minimal viewer: reports its visible range through ``view_change``."""

    def __init__(self) -> None:
        self.view_change: Channel[ListRange] = Channel()

    def set_range(self, start: int, end: int = -1) -> None:
        self.view_change.publish(ListRange(start, end))


def window_rows(rows: Sequence[T], visible: ListRange) -> list[T]:
    """Slice ``rows`` to ``[start, end)``, ``[start, ...)`` or everything."""
    if not visible.unbounded:
        return list(rows[visible.start:visible.end])
    if visible.start > 0:
        return list(rows[visible.start:])
    return list(rows)


@dataclass
class _ViewerBinding:
    viewer: Any
    range: ListRange = field(default_factory=ListRange)
    subscription: Subscription | None = None
    view: MappedObservable[Any, Any] | None = None

    def update_range(self, visible: ListRange) -> None:
        self.range = visible

    def close(self) -> None:
        if self.subscription is not None:
            self.subscription.unsubscribe()
        if self.view is not None:
            self.view.close()


class TableDataSource(Generic[T]):
    """Row lifecycle, numbering and windowed delivery for an editable table."""

    def __init__(
        self,
        records: Sequence[T] | None,
        record_factory: RecordFactory | None = None,
        validator_service: ValidatorService | None = None,
        options: TableDataSourceOptions | None = None,
        diagnostics: DiagnosticBuffer | None = None,
    ) -> None:
        """Create a data source over ``records``.

        Args:
            records: Initial records. May be empty only if ``record_factory``
                is given.
            record_factory: Zero-argument callable returning an empty record.
                Defaults to a KeysRecordFactory over the first record's keys.
            validator_service: Provider of per-row validation handles.
                Defaults to DefaultValidatorService (always valid).
            options: Behaviour switches, all False by default.
            diagnostics: Optional buffer receiving a DiagnosticRecord for
                every message passed to log_error.

        Raises:
            InvalidConfigurationError: no records and no record factory.
        """
        self._options = options or TableDataSourceOptions()
        self.validator_service = validator_service or DefaultValidatorService()
        self._diagnostics = diagnostics

        if records is None:
            records = []
        if record_factory is not None:
            self._record_factory = record_factory
        elif len(records) > 0:
            self._record_factory = KeysRecordFactory.from_record(records[0])
        else:
            raise InvalidConfigurationError(
                "You must define either a non empty record collection, "
                "or a record factory to build the table."
            )

        self._check_validator_fields()

        self._current_records: Sequence[T] = records
        self._rows: list[TableElement[T]] = self._rows_from_records(records)
        self._rows_channel: Channel[list[TableElement[T]]] = Channel(list(self._rows))
        self._datasource_channel: Channel[list[T]] = Channel()
        self._viewers: list[_ViewerBinding] = []

    # --- properties ---

    @property
    def options(self) -> TableDataSourceOptions:
        return self._options

    @property
    def rows(self) -> list[TableElement[T]]:
        """Snapshot of the current row sequence."""
        return list(self._rows)

    @property
    def records(self) -> Sequence[T]:
        return self._current_records

    @property
    def rows_channel(self) -> Channel[list[TableElement[T]]]:
        return self._rows_channel

    @property
    def datasource_channel(self) -> Channel[list[T]]:
        return self._datasource_channel

    @property
    def viewer_count(self) -> int:
        return len(self._viewers)

    def __len__(self) -> int:
        return len(self._rows)

    # --- diagnostics ---

    def _check_validator_fields(self) -> None:
        if self._options.suppress_errors:
            return  # nothing would be logged
        handle = self.validator_service.get_row_validator()
        if handle is None:
            return
        row_keys = record_keys(self._create_new_object())
        invalid_keys = [key for key in handle.controls if key not in row_keys]
        if invalid_keys:
            self.log_error(
                "Validator form control keys must match row object keys. "
                f"Invalid keys: {','.join(invalid_keys)}",
                error_type=VALIDATION_MISMATCH,
            )
        # Values of fields without a control are lost on the first edit
        missing_controls = [key for key in row_keys if key not in handle.controls]
        if missing_controls:
            self.log_error(
                "Row object keys must all have a validator form control. "
                f"Missing controls: {','.join(missing_controls)}",
                error_type=VALIDATION_MISMATCH,
            )

    def log_error(self, message: str, *, error_type: str = "ERROR") -> None:
        if self._options.suppress_errors:
            return
        logger.error(message)
        if self._diagnostics is not None:
            self._diagnostics.append(
                DiagnosticRecord.create(type(self).__name__, error_type, message)
            )

    # --- row lifecycle ---

    def create_new(self, insert_at: int | None = None) -> None:
        """Push an empty, editing row with id -1, unless one is already pending.

        Args:
            insert_at: Explicit position; otherwise the front in prepend mode,
                the end in append mode.
        """
        if self._exists_new_element():
            logger.debug("create_new: pending row already exists")
            return

        element = TableElementFactory.create_table_element(
            id=NEW_ROW_ID,
            editing=True,
            current_data=self._create_new_object(),
            source=self,
            validator=self.validator_service.get_row_validator(),
        )

        if insert_at is not None:
            self._rows.insert(insert_at, element)
        elif self._options.prepend_new_elements:
            self._rows.insert(0, element)
        else:
            self._rows.append(element)
        logger.debug(f"create_new: pending row added rows={len(self._rows)}")
        self._publish_rows()

    def confirm_create(self, row: TableElement[T]) -> bool:
        """Commit the pending row. Returns False, changing nothing, if invalid."""
        self._require_owned(row)
        if not row.is_valid():
            logger.debug("confirm_create: rejected by validation")
            return False

        row.id = len(self._rows) - 1
        # Only differs from the id above when the row was inserted at an
        # explicit position.
        self.update_row_ids(0, renumber_all=True)

        if self._options.keep_original_data_after_confirm:
            row.original_data = copy.copy(row.current_data)
        row.editing = False
        logger.debug(f"confirm_create: committed id={row.id}")

        self._publish_rows()
        self._publish_records()
        return True

    def confirm_edit(self, row: TableElement[T]) -> bool:
        """Commit an ongoing edit. Returns False, changing nothing, if invalid."""
        index = self._require_owned(row)
        if not row.is_valid():
            logger.debug(f"confirm_edit: rejected by validation id={row.id}")
            return False

        self._rows[index] = row
        if not self._options.keep_original_data_after_confirm:
            row.original_data = None
        row.editing = False
        logger.debug(f"confirm_edit: committed id={row.id}")

        self._publish_rows()
        self._publish_records()
        return True

    def cancel_edit(self, row: TableElement[T]) -> None:
        """Roll an ongoing edit back to the data it started from."""
        self._require_owned(row)
        if row.original_data is not None:
            row.current_data = copy.copy(row.original_data)
        if not self._options.keep_original_data_after_confirm:
            row.original_data = None
        row.editing = False
        logger.debug(f"cancel_edit: id={row.id}")
        self._publish_rows()

    def delete(self, id: int) -> None:
        """Remove the row with ``id`` and renumber the rows after it."""
        index = self._index_or_raise(id)

        removed = self._rows.pop(index)
        removed.source = None
        self.update_row_ids(index)
        logger.debug(f"delete: id={id} index={index} rows={len(self._rows)}")

        self._publish_rows()
        if id != NEW_ROW_ID:
            self._publish_records()

    def move(self, id: int, direction: int) -> None:
        """Move a row by ``direction`` positions (negative is up).

        Raises:
            RowNotFoundError: no row with ``id``.
            RowMoveError: the target position is outside the sequence.
        """
        if direction == 0:
            return

        index = self._index_or_raise(id)
        target = index + direction
        if not 0 <= target < len(self._rows):
            raise RowMoveError(id, target, len(self._rows))

        self._rows.insert(target, self._rows.pop(index))
        self.update_row_ids(0, renumber_all=True)
        logger.debug(f"move: id={id} from={index} to={target}")

        self._publish_rows()
        if id != NEW_ROW_ID:
            self._publish_records()

    def get_row(self, id: int) -> TableElement[T] | None:
        """Row with ``id`` (-1 is the pending row), or None."""
        index = self.get_index_from_row_id(id)
        return self._rows[index] if 0 <= index < len(self._rows) else None

    def update_datasource(self, records: Sequence[T], *, emit_event: bool = True) -> None:
        """Replace all rows with ``records``.

        Nothing happens when ``records`` is the very collection already held
        (identity, not equality). Otherwise rows are rebuilt and, if
        ``emit_event``, the records are pushed on the datasource channel.
        """
        if records is self._current_records:
            return

        self._current_records = records
        for row in self._rows:
            row.source = None
        self._rows = self._rows_from_records(records)
        logger.debug(f"update_datasource: rebuilt rows={len(self._rows)}")

        self._publish_rows()
        if emit_event:
            self._datasource_channel.publish(records)  # type: ignore[arg-type]

    # --- numbering ---

    def get_row_id_from_index(self, index: int, count: int) -> int:
        """Id of the committed row at ``index`` among ``count`` committed rows."""
        if self._options.prepend_new_elements:
            return count - 1 - index
        return index

    def get_index_from_row_id(self, id: int, rows: Sequence[TableElement[T]] | None = None) -> int:
        """Linear scan for ``id``; -1 when absent."""
        source = self._rows if rows is None else rows
        for index, element in enumerate(source):
            if element.id == id:
                return index
        return -1

    def update_row_ids(
        self,
        from_index: int,
        rows: Sequence[TableElement[T]] | None = None,
        *,
        renumber_all: bool = False,
    ) -> None:
        """Reassign ids from ``from_index`` to the end (append) or start (prepend).

        The pending row is skipped and does not count as a position, so the
        committed ids stay contiguous wherever the pending row sits.
        """
        source = self._rows if rows is None else rows
        committed = [i for i, element in enumerate(source) if element.id != NEW_ROW_ID]
        prepend = self._options.prepend_new_elements
        for position, index in enumerate(committed):
            if not renumber_all:
                if prepend and index > from_index:
                    continue
                if not prepend and index < from_index:
                    continue
            source[index].id = self.get_row_id_from_index(position, len(committed))

    # --- windowed delivery ---

    def connect(self, viewer: ViewChangeSource | None = None) -> MappedObservable[Any, list[TableElement[T]]]:
        """Stream of the rows, windowed to the viewer's latest reported range.

        The range starts as ``ListRange(0, -1)`` (everything) and follows each
        value the viewer publishes on ``view_change``. Without a viewer the
        stream is not windowed.
        """
        if viewer is None:
            return self._rows_channel.map(list)

        binding = _ViewerBinding(viewer=viewer)
        binding.subscription = viewer.view_change.subscribe(binding.update_range)
        binding.view = self._rows_channel.map(lambda rows: window_rows(rows, binding.range))
        self._viewers.append(binding)
        logger.debug(f"connect: viewers={len(self._viewers)}")
        return binding.view

    def disconnect(self, viewer: ViewChangeSource) -> None:
        """Stop range tracking and delivery for ``viewer``. Idempotent."""
        remaining = []
        for binding in self._viewers:
            if binding.viewer is viewer:
                binding.close()
            else:
                remaining.append(binding)
        self._viewers = remaining

    # --- helpers ---

    def _exists_new_element(self) -> bool:
        return self.get_index_from_row_id(NEW_ROW_ID) > -1

    def _index_or_raise(self, id: int) -> int:
        index = self.get_index_from_row_id(id)
        if index < 0:
            raise RowNotFoundError(id)
        return index

    def _require_owned(self, row: TableElement[T]) -> int:
        for index, element in enumerate(self._rows):
            if element is row:
                return index
        raise RowNotFoundError(row.id, f"row does not belong to this data source: id={row.id}")

    def _records_from_rows(self, rows: Sequence[TableElement[T]]) -> list[T]:
        keep = self._options.keep_original_data_after_confirm
        return [
            row.original_data if not keep and row.original_data is not None else row.current_data
            for row in rows
            if row.id != NEW_ROW_ID
        ]

    def _publish_rows(self) -> None:
        self._rows_channel.publish(list(self._rows))

    def _publish_records(self) -> None:
        records = self._records_from_rows(self._rows)
        self._current_records = records
        self._datasource_channel.publish(records)

    def _rows_from_records(self, records: Sequence[T]) -> list[TableElement[T]]:
        count = len(records)
        return [
            TableElementFactory.create_table_element(
                id=self.get_row_id_from_index(index, count),
                editing=False,
                current_data=record,
                source=self,
                validator=self.validator_service.get_row_validator(),
            )
            for index, record in enumerate(records)
        ]

    def _create_new_object(self) -> T:
        return self._record_factory()
