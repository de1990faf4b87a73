from __future__ import annotations

import json

import jsonschema
import pytest

from tablesource.config.loader import SCHEMA_PATH


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_schema_is_valid_draft(schema):
    jsonschema.Draft202012Validator.check_schema(schema)


@pytest.mark.parametrize(
    "doc",
    [
        {},
        {"options": {"prepend_new_elements": True}},
        {"fields": ["name", "age"], "validation": {"name": ["required", {"max_length": 10}]}},
        {"validation": {"code": [{"pattern": "^[A-Z]+$"}], "age": [{"min": 0}, {"max": 130}]}},
        {"steps": [{"create_new": None}, {"confirm": {"id": -1}}, {"move": {"id": 0, "direction": 1}}]},
        {"steps": [{"update": {"records": [], "emit_event": False}}]},
    ],
)
def test_schema_accepts(schema, doc):
    jsonschema.validate(doc, schema)


@pytest.mark.parametrize(
    "doc",
    [
        {"unknown": 1},
        {"options": {"prepend_new_elements": "yes"}},
        {"fields": "name"},
        {"validation": {"name": ["unique"]}},
        {"validation": {"age": [{"min": 0, "max": 1}]}},
        {"steps": [{"confirm": {"id": -2}}]},
        {"steps": [{"create_new": {"insert_at": -1}}]},
        {"steps": [{"edit": {"id": 0}}]},
    ],
)
def test_schema_rejects(schema, doc):
    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(doc, schema)
