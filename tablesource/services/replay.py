from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

from ..errors import TableSourceError
from ..models.replay_result import ReplayResult, StepOutcome
from ..models.table_element import NEW_ROW_ID, TableElement
from .data_source import TableDataSource
from .progress import ReplayProgress

logger = logging.getLogger(__name__)

"""Operation script replay.

A script is a list of one-key mappings, each naming a data source operation:

    - create_new: {insert_at: 0}       # args optional
    - edit: {id: -1, data: {name: B}}  # start edit (if needed) + partial update
    - confirm: {id: -1}                # confirm create or edit
    - cancel: {id: 3}                  # cancel edit, or delete pending row
    - delete: {id: 0}
    - move: {id: 1, direction: -1}
    - update: {records: [...], emit_event: true}

Only a confirm rejected by validation counts as "not applied"; a missing row
or an out-of-range move aborts the replay with ReplayError.
"""

STEP_NAMES = ("create_new", "edit", "confirm", "cancel", "delete", "move", "update")


class ReplayError(Exception):
    """Raised when a step is malformed or fails on the data source."""
    pass


def _unpack_step(index: int, step: Any) -> tuple[str, dict[str, Any]]:
    if not isinstance(step, Mapping) or len(step) != 1:
        raise ReplayError(f"step {index}: expected a single-key mapping, got {step!r}")
    name, args = next(iter(step.items()))
    if name not in STEP_NAMES:
        raise ReplayError(f"step {index}: unknown step {name!r}")
    return name, dict(args or {})


def _row(source: TableDataSource[Any], row_id: int) -> TableElement[Any]:
    row = source.get_row(row_id)
    if row is None:
        raise ReplayError(f"row not found: id={row_id}")
    return row


def _apply_step(source: TableDataSource[Any], name: str, args: dict[str, Any]) -> bool:
    if name == "create_new":
        source.create_new(args.get("insert_at"))
    elif name == "edit":
        row = _row(source, args["id"])
        if not row.editing:
            row.start_edit()
        row.patch(args["data"])
    elif name == "confirm":
        return _row(source, args["id"]).confirm_edit_create()
    elif name == "cancel":
        _row(source, args["id"]).cancel_or_delete()
    elif name == "delete":
        source.delete(args["id"])
    elif name == "move":
        source.move(args["id"], args["direction"])
    elif name == "update":
        source.update_datasource(list(args["records"]), emit_event=args.get("emit_event", True))
    return True


def replay_steps(
    source: TableDataSource[Any],
    steps: Sequence[Any],
    progress: ReplayProgress | None = None,
) -> ReplayResult:
    """Apply ``steps`` to ``source`` in order and report what happened.

    Raises:
        ReplayError: malformed step, missing row or invalid move. Steps
            before the failing one stay applied.
    """
    start = time.perf_counter()
    outcomes: list[StepOutcome] = []

    for index, step in enumerate(steps):
        name, args = _unpack_step(index, step)
        if progress is not None:
            progress.start_step(name)
        try:
            applied = _apply_step(source, name, args)
        except (TableSourceError, ReplayError) as e:
            raise ReplayError(f"step {index} ({name}): {e}") from e
        except KeyError as e:
            raise ReplayError(f"step {index} ({name}): missing argument {e}") from e
        detail = None if applied else "rejected by validation"
        outcomes.append(StepOutcome(index=index, name=name, applied=applied, detail=detail))
        logger.debug(f"step {index} {name} applied={applied}")
        if progress is not None:
            progress.finish_step(applied)

    elapsed = time.perf_counter() - start
    return ReplayResult(
        total_steps=len(steps),
        outcomes=outcomes,
        final_records=list(source.records),
        row_count=len(source),
        pending_rows=0 if source.get_row(NEW_ROW_ID) is None else 1,
        elapsed_seconds=elapsed,
    )
