from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Replay progress display with tqdm (TTY only).

One tqdm bar per replay, disabled in non-TTY environments so CI logs do not
fill with ANSI control sequences.
"""

__all__ = [
    "ReplayProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ReplayProgress:
    """Progress bar over the steps of an operation script."""

    def __init__(self, total_steps: int, *, description: str = "Replaying steps") -> None:
        self.total_steps = total_steps
        self.description = description
        self.current_step = 0
        self.rejected = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_steps,
                desc=description,
                unit="step",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_step(self, name: str) -> None:
        self.current_step += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({name})")

    def finish_step(self, applied: bool = True) -> None:
        if not applied:
            self.rejected += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)
            if self.rejected:
                self.pbar.set_postfix(rejected=self.rejected)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ReplayProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
