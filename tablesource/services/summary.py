from __future__ import annotations

from ..models.replay_result import ReplayResult

"""SUMMARY line rendering for replay runs."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ReplayResult) -> str:
    """Render the SUMMARY line for ``result``.

    Format:
    SUMMARY steps={done}/{total} applied={applied} rejected={rejected}
    rows={rows} pending={pending} elapsed_sec={elapsed}

    Examples:
        >>> from tablesource.models.replay_result import ReplayResult, StepOutcome
        >>> result = ReplayResult(
        ...     total_steps=2,
        ...     outcomes=[StepOutcome(0, "create_new"), StepOutcome(1, "confirm", applied=False)],
        ...     row_count=3, pending_rows=1, elapsed_seconds=0.5,
        ... )
        >>> render_summary_line(result)
        'SUMMARY steps=2/2 applied=1 rejected=1 rows=3 pending=1 elapsed_sec=0.5'
    """
    return (
        f"SUMMARY steps={len(result.outcomes)}/{result.total_steps} "
        f"applied={result.applied_steps} "
        f"rejected={result.rejected_steps} "
        f"rows={result.row_count} "
        f"pending={result.pending_rows} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
