from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

"""Record file reader.

Loads the initial records of a table from a .csv, .xlsx or .json file with
pandas. The first row of a sheet or CSV is the header. Empty cells become
None so that they look like the EMPTY value of a freshly created record.
"""

__all__ = [
    "RecordReadError",
    "SUPPORTED_SUFFIXES",
    "read_records",
    "frame_to_records",
]

SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".json")


class RecordReadError(Exception):
    """Raised when a record file is missing, unsupported or unreadable."""


def frame_to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    """DataFrame -> list of dicts, NaN/NaT replaced with None.

    Column labels are stringified and stripped; fully empty rows are dropped.
    """
    df = df.dropna(how="all")
    df.columns = [str(c).strip() for c in df.columns]
    cleaned = df.astype(object).where(pd.notna(df), None)
    return cleaned.to_dict(orient="records")


def read_records(path: Path, *, sheet_name: str | int = 0) -> list[dict[str, Any]]:
    """Read records from ``path``.

    Parameters
    ----------
    path: .csv / .xlsx / .json file
    sheet_name: sheet to read from an .xlsx file (first sheet by default)
    """
    if not path.exists():
        raise RecordReadError(f"record file not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise RecordReadError(
            f"unsupported record file type: {suffix or '<none>'} "
            f"(expected one of {', '.join(SUPPORTED_SUFFIXES)})"
        )

    try:
        if suffix == ".csv":
            df = pd.read_csv(path)
        elif suffix == ".xlsx":
            df = pd.read_excel(path, sheet_name=sheet_name)
        else:
            df = pd.read_json(path, orient="records")
    except (ValueError, OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise RecordReadError(f"failed to read {path.name}: {e}") from e

    return frame_to_records(df)
