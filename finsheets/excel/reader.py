from __future__ import annotations

import io
import math
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.sheet_data import RawGrid, RawWorkbook

"""Excel decode boundary.

Reads workbook bytes (or a path) with pandas/openpyxl and returns the raw
workbook shape the normalizer consumes: sheet name -> row-major grid, in
workbook order, with blank cells as "" and date cells as ``datetime``.

Cells are read with ``dtype=object`` and NA detection off so the values come
through exactly as stored: a text cell "100" stays a string, a blank stays "".
Every row is padded to the sheet width so row positions line up with the
spreadsheet's own row numbers.
"""

__all__ = [
    "WorkbookReadError",
    "EXCEL_SUFFIXES",
    "read_workbook",
    "read_sheet_names",
    "frame_to_grid",
]

EXCEL_SUFFIXES = (".xlsx", ".xls")


class WorkbookReadError(Exception):
    """Raised when the source is not a readable workbook."""


WorkbookSource = Path | str | bytes


def _open(source: WorkbookSource) -> pd.ExcelFile:
    try:
        if isinstance(source, bytes):
            return pd.ExcelFile(io.BytesIO(source))
        return pd.ExcelFile(Path(source))
    except FileNotFoundError as e:
        raise WorkbookReadError(f"workbook not found: {source}") from e
    except Exception as e:
        raise WorkbookReadError(f"unreadable workbook: {e}") from e


def _plain(value: Any) -> Any:
    """Unwrap pandas/numpy scalars; NaN/None/NaT -> ""."""
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return ""
    return value


def frame_to_grid(df: pd.DataFrame) -> RawGrid:
    """Row-major grid from a header-less DataFrame."""
    return [[_plain(v) for v in row] for row in df.itertuples(index=False, name=None)]


def read_sheet_names(source: WorkbookSource) -> list[str]:
    """Sheet names only; cheap enough for period detection at upload time."""
    with _open(source) as xls:
        return [str(n) for n in xls.sheet_names]


def read_workbook(source: WorkbookSource, target_sheets: Iterable[str] | None = None) -> RawWorkbook:
    """Decode a workbook into sheet name -> grid.

    Parameters
    ----------
    source: path or raw bytes of an .xlsx/.xls file
    target_sheets: restrict to these sheet names (None reads every sheet)
    """
    wanted = set(target_sheets) if target_sheets is not None else None
    workbook: RawWorkbook = {}
    with _open(source) as xls:
        for name in xls.sheet_names:
            if wanted is not None and str(name) not in wanted:
                continue
            try:
                df = xls.parse(name, header=None, dtype=object, na_filter=False)
            except Exception as e:
                raise WorkbookReadError(f"sheet '{name}' could not be parsed: {e}") from e
            workbook[str(name)] = frame_to_grid(df)
    return workbook

