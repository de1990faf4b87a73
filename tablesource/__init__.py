"""Editable, windowed tabular data source.

Public entry points are re-exported here so callers can write
``from tablesource import TableDataSource``.
"""

from .models.config_models import ListRange, TableDataSourceOptions
from .models.table_element import TableElement, ValidatedTableElement
from .services.channel import Channel, Subscription
from .services.data_source import (
    CollectionViewer,
    InvalidConfigurationError,
    RowMoveError,
    RowNotFoundError,
    TableDataSource,
    TableSourceError,
)
from .services.record_factory import EMPTY, KeysRecordFactory
from .services.validator import (
    DefaultValidatorService,
    RowValidator,
    RuleValidatorService,
    ValidatorService,
)

__all__ = [
    "EMPTY",
    "Channel",
    "CollectionViewer",
    "DefaultValidatorService",
    "InvalidConfigurationError",
    "KeysRecordFactory",
    "ListRange",
    "RowMoveError",
    "RowNotFoundError",
    "RowValidator",
    "RuleValidatorService",
    "Subscription",
    "TableDataSource",
    "TableDataSourceOptions",
    "TableElement",
    "TableSourceError",
    "ValidatedTableElement",
    "ValidatorService",
]
