from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""DiagnosticRecord model for the data source diagnostic sink.

A DiagnosticRecord is what TableDataSource.log_error produces besides the log
line: a fixed-key structure that can be buffered and written as JSON Lines by
tablesource.logging.diagnostics.DiagnosticBuffer.
"""

__all__ = [
    "DiagnosticRecord",
]

VALIDATION_MISMATCH = "VALIDATION_MISMATCH"


@dataclass(frozen=True)
class DiagnosticRecord:
    """Structured diagnostic for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: Name of the emitting data source (class name by default)
        error_type: Diagnostic classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str
    source: str
    error_type: str
    message: str

    @staticmethod
    def create(source: str, error_type: str, message: str) -> DiagnosticRecord:
        """Create a new DiagnosticRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return DiagnosticRecord(
            timestamp=ts,
            source=source,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line with exactly the dataclass keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
