from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .cell import EMPTY, CellValue

"""Sheet / SheetData domain models.

SheetData is the canonical in-memory form of one reporting period's workbook:
an ordered, read-only mapping from the sheet name as it appears in the source
file to its visible rows. Rows keep source order; hidden rows are already gone
and the remaining ones are numbered contiguously from 0.
"""

__all__ = [
    "Row",
    "Sheet",
    "SheetData",
    "RawGrid",
    "RawWorkbook",
]

Row = tuple[CellValue, ...]
RawGrid = list[list[Any]]  # row-major grid as produced by the decoder
RawWorkbook = dict[str, RawGrid]  # sheet name -> grid, in workbook order


@dataclass(frozen=True)
class Sheet:
    """Ordered rows of a single tab."""
    name: str
    rows: tuple[Row, ...] = ()

    @property
    def width(self) -> int:
        """Column width of the sheet: the longest row."""
        return max((len(r) for r in self.rows), default=0)

    def cell(self, row_index: int, column: int) -> CellValue:
        """Cell at (row, column); positions past a short row read as EMPTY."""
        if not 0 <= row_index < len(self.rows):
            return EMPTY
        row = self.rows[row_index]
        if not 0 <= column < len(row):
            return EMPTY
        return row[column]

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __bool__(self) -> bool:
        return bool(self.rows)


class SheetData(Mapping[str, Sheet]):
    """Read-only mapping sheet name -> Sheet, in source workbook order."""

    def __init__(self, sheets: Mapping[str, Sheet] | Iterable[Sheet] = ()) -> None:
        if isinstance(sheets, Mapping):
            self._sheets: dict[str, Sheet] = dict(sheets)
        else:
            self._sheets = {s.name: s for s in sheets}

    def __getitem__(self, name: str) -> Sheet:
        return self._sheets[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sheets)

    def __len__(self) -> int:
        return len(self._sheets)

    def __repr__(self) -> str:
        return f"SheetData({list(self._sheets)!r})"

    @property
    def sheet_names(self) -> list[str]:
        return list(self._sheets)
