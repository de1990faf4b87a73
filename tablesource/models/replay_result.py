from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Replay result models.

ReplayResult aggregates what happened while an operation script was applied
to a TableDataSource; the CLI renders it as the SUMMARY line.
"""


@dataclass(frozen=True)
class StepOutcome:
    """Result of one replayed step.

    ``applied`` is False only when a confirm step was rejected by validation.
    """
    index: int  # position in the script, 0-based
    name: str  # step name (create_new, confirm, ...)
    applied: bool = True
    detail: str | None = None


@dataclass(frozen=True)
class ReplayResult:
    """Aggregated outcome of a replay run."""
    total_steps: int
    outcomes: list[StepOutcome] = field(default_factory=list)
    final_records: list[Any] = field(default_factory=list)
    row_count: int = 0  # rows in the sequence, pending row included
    pending_rows: int = 0  # 0 or 1
    elapsed_seconds: float = 0.0

    @property
    def applied_steps(self) -> int:
        return sum(1 for o in self.outcomes if o.applied)

    @property
    def rejected_steps(self) -> int:
        return sum(1 for o in self.outcomes if not o.applied)
