# Shared pytest fixtures
from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path

import pytest

from tablesource.services.validator import RuleValidatorService


@dataclass
class Person:
    name: str | None = None
    age: int | None = None


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """options:
  prepend_new_elements: false
  suppress_errors: false
  keep_original_data_after_confirm: false
fields: [name, age]
validation:
  name: [required]
  age: [required, {min: 0}]
steps:
  - create_new:
  - edit: {id: -1, data: {name: B, age: 2}}
  - confirm: {id: -1}
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "table.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def people() -> list[dict]:
    return [
        {"name": "A", "age": 1},
        {"name": "B", "age": 2},
        {"name": "C", "age": 3},
    ]


@pytest.fixture()
def person_type() -> type:
    return Person


@pytest.fixture()
def person_validator() -> RuleValidatorService:
    return RuleValidatorService({"name": ["required"], "age": ["required", {"min": 0}]})


@pytest.fixture()
def emissions():
    """Subscribe to an observable and return the list of received values."""
    def _collect(observable) -> list:
        received: list = []
        observable.subscribe(received.append)
        return received
    return _collect
