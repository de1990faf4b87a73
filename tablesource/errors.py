from __future__ import annotations

"""Exceptions raised by the table data source.

Validation rejections are not exceptions: confirm_create / confirm_edit return
False and leave the row untouched.
"""

__all__ = [
    "TableSourceError",
    "InvalidConfigurationError",
    "RowNotFoundError",
    "RowMoveError",
]


class TableSourceError(Exception):
    """Base exception for data source errors."""
    pass


class InvalidConfigurationError(TableSourceError):
    """Raised at construction when the record shape cannot be determined."""


class RowNotFoundError(TableSourceError, LookupError):
    """Raised when an id-keyed operation finds no row, or a row is detached."""

    def __init__(self, row_id: int, message: str | None = None) -> None:
        self.row_id = row_id
        super().__init__(message or f"row not found: id={row_id}")


class RowMoveError(TableSourceError, IndexError):
    """Raised when a move would place a row outside the sequence."""

    def __init__(self, row_id: int, target_index: int, count: int) -> None:
        self.row_id = row_id
        self.target_index = target_index
        self.count = count
        super().__init__(
            f"cannot move row id={row_id} to index {target_index} (rows={count})"
        )
