from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.diagnostic_record import DiagnosticRecord

"""Diagnostic buffering.

TableDataSource.log_error appends a DiagnosticRecord to the buffer it was
given. flush() writes the buffered records as JSON Lines to
``logs/diagnostics-YYYYMMDD-HHMMSS.log`` (UTC, one file per buffer) and
empties the buffer. Single-threaded use only.
"""

__all__ = [
    "DiagnosticRecord",
    "DiagnosticBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class DiagnosticBuffer:
    """In-memory buffer of diagnostics. Flush writes JSON Lines."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[DiagnosticRecord] = []
        self._logs_dir = logs_dir or LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"diagnostics-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[DiagnosticRecord]:
        return list(self._records)

    def append(self, record: DiagnosticRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file. None if nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
