from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..models.table_element import TableElement, ValidatedTableElement

if TYPE_CHECKING:
    from .data_source import TableDataSource
    from .validator import RowValidator

__all__ = [
    "TableElementFactory",
]


class TableElementFactory:
    """Builds the row variant matching the validation handle (or its absence)."""

    @staticmethod
    def create_table_element(
        *,
        id: int,
        editing: bool,
        current_data: Any,
        source: TableDataSource[Any] | None,
        validator: RowValidator | None = None,
        original_data: Any = None,
    ) -> TableElement[Any]:
        if validator is not None:
            return ValidatedTableElement(
                validator=validator,
                id=id,
                editing=editing,
                current_data=current_data,
                original_data=original_data,
                source=source,
            )
        return TableElement(
            id=id,
            editing=editing,
            current_data=current_data,
            original_data=original_data,
            source=source,
        )
