from __future__ import annotations

from pathlib import Path

import pytest

from tablesource.config.loader import ConfigError, apply_env_overrides, load_config, parse_config
from tablesource.models.config_models import TableDataSourceOptions


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.options == TableDataSourceOptions()
    assert cfg.fields == ["name", "age"]
    assert cfg.validation == {"name": ["required"], "age": ["required", {"min": 0}]}
    assert cfg.steps[0] == {"create_new": None}
    assert len(cfg.steps) == 3


def test_load_config_defaults_for_empty_file(temp_workdir: Path):
    path = temp_workdir / "config" / "table.yml"
    path.write_text("", encoding="utf-8")
    cfg = load_config(path)
    assert cfg.options == TableDataSourceOptions()
    assert cfg.fields is None
    assert cfg.validation == {}
    assert cfg.steps == []


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError):
        load_config(temp_workdir / "config" / "not_exists.yml")


def test_load_config_invalid_yaml(temp_workdir: Path):
    path = temp_workdir / "config" / "table.yml"
    path.write_text("options: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert "invalid yaml" in str(e.value)


def test_load_config_root_must_be_mapping(temp_workdir: Path):
    path = temp_workdir / "config" / "table.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "extra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_unknown_option(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace(
        "  suppress_errors: false\n", "  suppress_errors: false\n  sort_rows: true\n"
    )
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(write_config)


def test_load_config_non_boolean_option(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace(
        "prepend_new_elements: false", "prepend_new_elements: sometimes"
    )
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(write_config)


@pytest.mark.parametrize(
    "data",
    [
        {"validation": {"name": ["unique"]}},
        {"validation": {"age": [{"min": "zero"}]}},
        {"steps": [{"explode": {}}]},
        {"steps": [{"delete": {}}]},
        {"steps": [{"move": {"id": 0}}]},
        {"steps": [{"delete": {"id": 0}, "move": {"id": 0, "direction": 1}}]},
        {"fields": ["a", "a"]},
    ],
)
def test_parse_config_rejects_invalid_sections(data):
    with pytest.raises(ConfigError):
        parse_config(data)


def test_parse_config_accepts_all_step_kinds():
    cfg = parse_config(
        {
            "steps": [
                {"create_new": {"insert_at": 0}},
                {"edit": {"id": -1, "data": {"name": "X"}}},
                {"confirm": {"id": -1}},
                {"cancel": {"id": 0}},
                {"delete": {"id": 0}},
                {"move": {"id": 0, "direction": -1}},
                {"update": {"records": [{"name": "Y"}], "emit_event": False}},
            ]
        }
    )
    assert [next(iter(s)) for s in cfg.steps] == [
        "create_new", "edit", "confirm", "cancel", "delete", "move", "update",
    ]


def test_parse_config_null_validation_rules_become_empty():
    cfg = parse_config({"validation": {"note": None}})
    assert cfg.validation == {"note": []}


def test_apply_env_overrides():
    base = TableDataSourceOptions()
    updated = apply_env_overrides(
        base,
        {
            "TABLESOURCE_PREPEND_NEW_ELEMENTS": "true",
            "TABLESOURCE_SUPPRESS_ERRORS": "0",
            "TABLESOURCE_KEEP_ORIGINAL_DATA": " YES ",
        },
    )
    assert updated == TableDataSourceOptions(
        prepend_new_elements=True,
        suppress_errors=False,
        keep_original_data_after_confirm=True,
    )


def test_apply_env_overrides_without_variables_returns_same_options():
    base = TableDataSourceOptions(suppress_errors=True)
    assert apply_env_overrides(base, {}) is base
