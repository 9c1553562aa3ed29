from __future__ import annotations

import math
from dataclasses import dataclass

from ..models.cell import CellKind, CellValue

"""Display formatting for amounts, percentages and table cells.

Amounts are rupees with Indian digit grouping (12,34,567) and the crore / lakh
abbreviations used in the monthly reports. Missing values render as an em
dash placeholder.
"""

__all__ = [
    "PLACEHOLDER",
    "CellDisplay",
    "fmt_inr",
    "fmt_pct",
    "fmt_count",
    "format_cell",
    "group_indian",
]

PLACEHOLDER = "—"
RUPEE = "₹"
CRORE = 10_000_000
LAKH = 100_000


@dataclass(frozen=True)
class CellDisplay:
    text: str
    kind: str  # "", "err", "pct", "neg", "pos"


def _missing(n: float | int | None) -> bool:
    return n is None or (isinstance(n, float) and math.isnan(n))


def group_indian(value: float | int, max_fraction_digits: int = 0) -> str:
    """Indian-style grouping: last three digits, then pairs. Sign preserved."""
    negative = value < 0
    rounded = f"{abs(value):.{max_fraction_digits}f}"
    whole, _, fraction = rounded.partition(".")
    fraction = fraction.rstrip("0")
    head, tail = whole[:-3], whole[-3:]
    groups: list[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    text = ",".join(groups + [tail])
    if fraction:
        text = f"{text}.{fraction}"
    if negative and text.strip("0.,"):
        text = "-" + text
    return text


def fmt_inr(n: float | int | None) -> str:
    """Rupee amount; >= 1 crore as "x.xx Cr", >= 1 lakh as "x.xx L"."""
    if _missing(n):
        return PLACEHOLDER
    magnitude = abs(n)  # type: ignore[arg-type]
    if magnitude >= CRORE:
        body = f"{magnitude / CRORE:.2f} Cr"
    elif magnitude >= LAKH:
        body = f"{magnitude / LAKH:.2f} L"
    else:
        body = group_indian(magnitude, 0)
    sign = "-" if n < 0 else ""  # type: ignore[operator]
    return f"{sign}{RUPEE}{body}"


def fmt_pct(n: float | int | None) -> str:
    """Ratio as a percentage with one decimal (0.125 -> "12.5%")."""
    if _missing(n):
        return PLACEHOLDER
    return f"{n * 100:.1f}%"  # type: ignore[operator]


def fmt_count(n: float | int | None) -> str:
    if _missing(n):
        return PLACEHOLDER
    return group_indian(n, 0)  # type: ignore[arg-type]


def _looks_like_ratio(value: float | int) -> bool:
    """Small fractional numbers with more than three decimals are ratios."""
    if isinstance(value, int) or value == 0 or abs(value) > 2 or float(value).is_integer():
        return False
    _, _, decimals = repr(float(value)).partition(".")
    return len(decimals) > 3


def format_cell(cell: CellValue) -> CellDisplay:
    """Display text and style kind for one table cell."""
    if cell.kind is CellKind.EMPTY:
        return CellDisplay("", "")
    if cell.is_error:
        return CellDisplay(PLACEHOLDER, "err")
    if cell.kind is CellKind.DATE:
        return CellDisplay(cell.value.strftime("%b-%Y"), "")  # type: ignore[union-attr]
    if cell.kind is CellKind.NUMBER:
        value: float | int = cell.value  # type: ignore[assignment]
        if _looks_like_ratio(value):
            return CellDisplay(f"{value * 100:.2f}%", "pct")
        kind = "neg" if value < 0 else "pos" if value > 0 else ""
        if abs(value) >= 100:
            sign = "-" if value < 0 else ""
            return CellDisplay(f"{sign}{RUPEE}{group_indian(abs(value), 2)}", kind)
        return CellDisplay(group_indian(value, 2), kind)
    return CellDisplay(cell.text, "")
