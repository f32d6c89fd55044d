from __future__ import annotations

from pathlib import Path
from typing import Any
from zipfile import BadZipFile

import pandas as pd

from ..errors import ValidationEngineError
from ..models.parsed_data import ParsedData

"""Sheet loader: CSV / XLSX file -> ParsedData.

The first row is the header row. Cells are read as text (``dtype=str``) so
that list cells such as ``1,2`` and IDs such as ``007`` survive unchanged;
validators do their own numeric coercion. Fully empty rows are dropped and
NaN becomes None.
"""

__all__ = [
    "SUPPORTED_SUFFIXES",
    "SheetReadError",
    "read_sheet_frame",
    "frame_to_parsed",
    "load_sheet",
]

SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".xlsm")


class SheetReadError(ValidationEngineError):
    """Raised when a sheet file is missing, of unknown type or unreadable."""


def read_sheet_frame(path: Path, sheet_name: str | None = None) -> pd.DataFrame:
    """Read one sheet into a raw DataFrame.

    Parameters
    ----------
    path: .csv or .xlsx file
    sheet_name: Excel sheet to read (None -> first sheet); ignored for CSV
    """
    if not path.exists():
        raise SheetReadError(f"file not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise SheetReadError(f"unsupported file type: {path.name}")
    try:
        if suffix == ".csv":
            return pd.read_csv(path, dtype=str, skipinitialspace=True)
        return pd.read_excel(path, sheet_name=sheet_name or 0, dtype=str, engine="openpyxl")
    except (OSError, ValueError, BadZipFile) as e:
        raise SheetReadError(f"failed to read {path.name}: {e}") from e


def _to_python(val: Any) -> Any:
    if pd.isna(val):
        return None
    if hasattr(val, "item"):  # numpy scalar
        return val.item()
    if isinstance(val, str):
        stripped = val.strip()
        return stripped if stripped else None
    return val


def frame_to_parsed(df: pd.DataFrame) -> ParsedData:
    headers = [str(c).strip() for c in df.columns]
    rows: list[dict[str, Any]] = []
    for raw in df.itertuples(index=False, name=None):
        values = [_to_python(v) for v in raw]
        if all(v is None for v in values):
            continue
        rows.append(dict(zip(headers, values, strict=False)))
    return ParsedData(headers=tuple(headers), rows=tuple(rows))


def load_sheet(path: Path, sheet_name: str | None = None) -> ParsedData:
    return frame_to_parsed(read_sheet_frame(path, sheet_name))
