from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

"""CellValue tagged variant for normalized workbook cells.

The spreadsheet decoder hands over loosely typed Python values (str, int, float,
datetime, bool, "" for blanks). Every value is wrapped once into a CellValue so
downstream code matches on ``kind`` instead of sniffing types at each call site.

No coercion between kinds happens here: the text "100" stays TEXT.
"""

__all__ = [
    "CellKind",
    "CellValue",
    "EMPTY",
    "ERROR_MARKER",
]

ERROR_MARKER = "#"  # formula error sentinels (#REF!, #DIV/0!, #N/A ...)


class CellKind(Enum):
    """Kinds a cell can carry after decoding."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    EMPTY = "empty"


@dataclass(frozen=True)
class CellValue:
    """One cell: a kind tag plus its payload (None for EMPTY)."""
    kind: CellKind
    value: str | int | float | datetime | bool | None = None

    @classmethod
    def of(cls, raw: Any) -> CellValue:
        """Wrap a raw decoder value.

        ``None``, ``""`` and NaN floats are EMPTY. ``bool`` is checked before
        numbers since it subclasses ``int``. numpy/pandas scalars are unwrapped
        to plain Python values first.
        """
        if raw is None:
            return EMPTY
        # numpy scalars and pandas Timestamp expose item()/to_pydatetime()
        to_py = getattr(raw, "to_pydatetime", None)
        if callable(to_py):
            raw = to_py()
        elif hasattr(raw, "item") and not isinstance(raw, (str, bytes)):
            try:
                raw = raw.item()
            except (TypeError, ValueError):
                pass
        if isinstance(raw, bool):
            return cls(CellKind.BOOLEAN, raw)
        if isinstance(raw, (int, float)):
            if isinstance(raw, float) and math.isnan(raw):
                return EMPTY
            return cls(CellKind.NUMBER, raw)
        if isinstance(raw, datetime):
            return cls(CellKind.DATE, raw)
        if isinstance(raw, date):
            return cls(CellKind.DATE, datetime(raw.year, raw.month, raw.day))
        if isinstance(raw, str):
            if raw == "":
                return EMPTY
            return cls(CellKind.TEXT, raw)
        return cls(CellKind.TEXT, str(raw))

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    @property
    def is_number(self) -> bool:
        return self.kind is CellKind.NUMBER

    @property
    def is_error(self) -> bool:
        """Text formula-error sentinel (``#...``) or a lone dash placeholder."""
        if self.kind is not CellKind.TEXT:
            return False
        text = str(self.value)
        return text.startswith(ERROR_MARKER) or text == "-"

    @property
    def text(self) -> str:
        """Display text; "" for EMPTY."""
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.BOOLEAN:
            return "TRUE" if self.value else "FALSE"
        return str(self.value)

    def label(self) -> str:
        """Stripped text used when the cell acts as a row label."""
        return self.text.strip()


EMPTY = CellValue(CellKind.EMPTY, None)
