from __future__ import annotations

from ..models.cell import CellKind
from ..models.layout import LayoutDescriptor
from ..models.sheet_data import Row, Sheet

"""Value extraction from normalized sheets.

Rows are addressed by their label (column 0) with a case-insensitive substring
match; the first matching row wins. A value that cannot be derived (row
missing, blank cell, formula error, non-numeric cell) comes back as None,
never 0, because 0 is a legitimate business figure.
"""

__all__ = [
    "find_row",
    "find_row_value",
    "search_rows",
]


def find_row(sheet: Sheet, search_text: str) -> Row | None:
    needle = search_text.strip().lower()
    for row in sheet.rows:
        label = row[0].label().lower() if row else ""
        if needle in label:
            return row
    return None


def find_row_value(sheet: Sheet, search_text: str, column: int) -> float | int | None:
    """Numeric cell ``column`` of the first row whose label contains ``search_text``.

    Text that merely looks numeric ("100") is not coerced.
    """
    row = find_row(sheet, search_text)
    if row is None or not 0 <= column < len(row):
        return None
    cell = row[column]
    if cell.kind is not CellKind.NUMBER or cell.is_error:
        return None
    return cell.value  # type: ignore[return-value]


def search_rows(sheet: Sheet, term: str, layout: LayoutDescriptor) -> list[int]:
    """Row indices to display for a table search.

    Title and header rows are always kept; body rows are kept when any cell's
    text contains ``term`` (case-insensitive). An empty term keeps everything.
    """
    needle = term.strip().lower()
    if not needle:
        return list(range(len(sheet.rows)))
    keep: list[int] = []
    for i, row in enumerate(sheet.rows):
        if i < layout.leading_rows or any(needle in c.text.lower() for c in row):
            keep.append(i)
    return keep
