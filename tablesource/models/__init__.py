"""Domain models for the editable table data source.

This package contains the value objects and row wrappers shared by the
services layer: configuration options, visible ranges, rows, diagnostic
records and replay results.
"""

from .config_models import ListRange, TableDataSourceOptions
from .diagnostic_record import DiagnosticRecord
from .replay_result import ReplayResult, StepOutcome
from .table_element import TableElement, ValidatedTableElement

__all__ = [
    # Configuration models
    "ListRange",
    "TableDataSourceOptions",
    # Rows
    "TableElement",
    "ValidatedTableElement",
    # Reporting models
    "DiagnosticRecord",
    "ReplayResult",
    "StepOutcome",
]
