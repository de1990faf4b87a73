from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from .record_factory import record_to_mapping

"""Validation capability for table rows.

A ValidatorService hands out one RowValidator per row. The RowValidator is the
row's validation handle: it holds the row's field values, an enabled flag that
mirrors the row's editing state, and the rules used to compute validity.

Like a reactive form group, a disabled handle reports itself valid whatever
its values are; ValidatedTableElement.is_valid works around that with
RowValidator.temporarily_enabled().
"""

__all__ = [
    "Rule",
    "RowValidator",
    "ValidatorService",
    "DefaultValidatorService",
    "RuleValidatorService",
    "required",
    "min_value",
    "max_value",
    "max_length",
    "pattern",
]

# A rule returns an error key when the value fails it, None otherwise
Rule = Callable[[Any], "str | None"]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def required(value: Any) -> str | None:
    return "required" if _is_blank(value) else None


def min_value(limit: float) -> Rule:
    def rule(value: Any) -> str | None:
        if _is_blank(value):
            return None
        return "min" if value < limit else None
    return rule


def max_value(limit: float) -> Rule:
    def rule(value: Any) -> str | None:
        if _is_blank(value):
            return None
        return "max" if value > limit else None
    return rule


def max_length(limit: int) -> Rule:
    def rule(value: Any) -> str | None:
        if _is_blank(value):
            return None
        return "max_length" if len(value) > limit else None
    return rule


def pattern(regex: str) -> Rule:
    compiled = re.compile(regex)

    def rule(value: Any) -> str | None:
        if _is_blank(value):
            return None
        return None if compiled.fullmatch(str(value)) else "pattern"
    return rule


_PARAMETRIC_RULES: dict[str, Callable[[Any], Rule]] = {
    "min": min_value,
    "max": max_value,
    "max_length": max_length,
    "pattern": pattern,
}


def build_rule(definition: Any) -> Rule:
    """Turn a declarative rule (``"required"``, ``{"min": 0}``, a callable) into a Rule."""
    if callable(definition):
        return definition
    if definition == "required":
        return required
    if isinstance(definition, Mapping) and len(definition) == 1:
        name, arg = next(iter(definition.items()))
        factory = _PARAMETRIC_RULES.get(name)
        if factory is not None:
            return factory(arg)
    raise ValueError(f"unknown validation rule: {definition!r}")


class RowValidator:
    """Validation handle of a single row."""

    def __init__(
        self,
        controls: Mapping[str, Sequence[Rule]] | None = None,
        value: Any = None,
    ) -> None:
        self._rules: dict[str, list[Rule]] = {
            name: list(rules) for name, rules in (controls or {}).items()
        }
        self._value: dict[str, Any] = {name: None for name in self._rules}
        self._enabled = True
        if value is not None:
            self.patch_value(value)

    @property
    def controls(self) -> list[str]:
        return list(self._rules)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def disabled(self) -> bool:
        return not self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    @contextmanager
    def temporarily_enabled(self) -> Iterator[RowValidator]:
        """Enable the handle for the block, restoring the disabled state on exit."""
        was_disabled = self.disabled
        if was_disabled:
            self.enable()
        try:
            yield self
        finally:
            if was_disabled:
                self.disable()

    def get_raw_value(self) -> dict[str, Any]:
        """All control values, disabled or not."""
        return dict(self._value)

    def patch_value(self, data: Any) -> None:
        """Update the given fields only. Keys without a control are ignored."""
        for key, val in record_to_mapping(data).items():
            if key in self._value:
                self._value[key] = val

    @property
    def errors(self) -> dict[str, list[str]]:
        if self.disabled:
            return {}
        found: dict[str, list[str]] = {}
        for name, rules in self._rules.items():
            keys = [k for k in (rule(self._value[name]) for rule in rules) if k]
            if keys:
                found[name] = keys
        return found

    @property
    def valid(self) -> bool:
        return not self.errors

    def __repr__(self) -> str:
        state = "enabled" if self._enabled else "disabled"
        return f"RowValidator({state}, value={self._value!r})"


class ValidatorService(ABC):
    """Pluggable provider of per-row validation handles."""

    @abstractmethod
    def get_row_validator(self) -> RowValidator | None:
        """Return a fresh handle for one row, or None for unvalidated rows."""


class DefaultValidatorService(ValidatorService):
    """No fields, no rules: rows are plain TableElements and always valid."""

    def get_row_validator(self) -> RowValidator | None:
        return None


class RuleValidatorService(ValidatorService):
    """Builds handles from a ``{field: [rule, ...]}`` mapping.

    Rules may be callables or the declarative forms accepted by build_rule,
    which is what the YAML ``validation`` section of the table config holds.

    ``fields`` lists the record fields that get a control even without rules.
    A handle only holds the values of its controls, so every record field
    must be listed here or in ``rules`` to survive an edit.
    """

    def __init__(
        self,
        rules: Mapping[str, Sequence[Any] | None],
        fields: Iterable[str] | None = None,
    ) -> None:
        self._controls: dict[str, list[Rule]] = {field: [] for field in (fields or [])}
        for field, definitions in rules.items():
            self._controls[field] = [build_rule(definition) for definition in (definitions or [])]

    @property
    def fields(self) -> list[str]:
        return list(self._controls)

    def get_row_validator(self) -> RowValidator | None:
        return RowValidator(self._controls)
