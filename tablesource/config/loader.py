from __future__ import annotations

import dataclasses
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import TableDataSourceOptions

"""Table configuration loader.

Responsibilities:
- Load the YAML table configuration (config/table.yml by default)
- Validate it against table_schema.json, shipped next to this module
- Apply defaults (all options False, no fields, no rules, no steps)
- Apply TABLESOURCE_* environment overrides to the options
"""

SCHEMA_PATH = Path(__file__).parent / "table_schema.json"
DEFAULT_CONFIG_PATH = Path("config/table.yml")

# Environment variable -> TableDataSourceOptions field
ENV_OVERRIDES = {
    "TABLESOURCE_PREPEND_NEW_ELEMENTS": "prepend_new_elements",
    "TABLESOURCE_SUPPRESS_ERRORS": "suppress_errors",
    "TABLESOURCE_KEEP_ORIGINAL_DATA": "keep_original_data_after_confirm",
}
_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class TableConfig:
    options: TableDataSourceOptions
    fields: list[str] | None = None  # record shape when no records are given
    validation: dict[str, list[Any]] = field(default_factory=dict)
    steps: list[dict[str, Any]] = field(default_factory=list)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: the schema file is missing or not valid JSON, or the
            config data violates the schema.
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def parse_config(data: Mapping[str, Any]) -> TableConfig:
    """Build a TableConfig from already-parsed data (validated first)."""
    data = dict(data)
    _validate_config_schema(data)

    options_raw = data.get("options") or {}
    options = TableDataSourceOptions(
        prepend_new_elements=options_raw.get("prepend_new_elements", False),
        suppress_errors=options_raw.get("suppress_errors", False),
        keep_original_data_after_confirm=options_raw.get("keep_original_data_after_confirm", False),
    )
    return TableConfig(
        options=options,
        fields=data.get("fields"),
        validation={k: list(v or []) for k, v in (data.get("validation") or {}).items()},
        steps=list(data.get("steps") or []),
    )


def load_config(path: Path) -> TableConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return parse_config(data)


def apply_env_overrides(
    options: TableDataSourceOptions, environ: Mapping[str, str] | None = None
) -> TableDataSourceOptions:
    """Return ``options`` with TABLESOURCE_* variables applied on top."""
    env = os.environ if environ is None else environ
    changes = {
        attr: env[var].strip().lower() in _TRUE_VALUES
        for var, attr in ENV_OVERRIDES.items()
        if var in env
    }
    return dataclasses.replace(options, **changes) if changes else options
