from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the editable table data source.

These are the values fixed at construction time of a TableDataSource and the
visible range reported by a connected viewer. The YAML loader in
tablesource/config/loader.py produces TableDataSourceOptions.
"""

__all__ = [
    "ListRange",
    "TableDataSourceOptions",
]


@dataclass(frozen=True)
class TableDataSourceOptions:
    """Behaviour switches of a TableDataSource. All default to False.

    prepend_new_elements: new rows go to the front and id 0 is the last row.
    suppress_errors: no diagnostic output from log_error.
    keep_original_data_after_confirm: a modified row keeps its first original
        data across edits; otherwise original data is cleared on confirm.
    """
    prepend_new_elements: bool = False
    suppress_errors: bool = False
    keep_original_data_after_confirm: bool = False


@dataclass(frozen=True)
class ListRange:
    """Visible index range reported by a viewer, end exclusive.

    The default ``ListRange(0, -1)`` means "everything".
    """
    start: int = 0
    end: int = -1

    @property
    def unbounded(self) -> bool:
        return self.end <= self.start
