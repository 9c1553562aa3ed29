from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ..excel.extraction import find_row
from ..excel.reconciler import KeyReconciler, find_by_short_key
from ..models.cell import CellKind
from ..models.sheet_data import Row, Sheet
from .kpi import compute_kpis

"""Single-period dashboard view: KPI cards plus chart series."""

__all__ = [
    "ChannelPoint",
    "DashboardView",
    "build_dashboard",
    "channel_breakdown",
    "top_states",
    "STATE_SHEET",
]

STATE_SHEET = "STATEWISE SALE"
_STATE_FIRST_ROW = 2
_TOP_STATES = 10


@dataclass(frozen=True)
class ChannelPoint:
    channel: str
    value: float | int


@dataclass(frozen=True)
class DashboardView:
    kpis: dict[str, float | int | None]
    channel_sales: list[ChannelPoint]
    channel_margin: list[ChannelPoint]  # percent
    channel_share: list[ChannelPoint]  # percent, absolute
    top_states: list[tuple[str, float | int]]

    @property
    def is_empty(self) -> bool:
        return not (
            any(p.value for p in self.channel_sales)
            or any(p.value for p in self.channel_margin)
            or any(p.value for p in self.channel_share)
            or self.top_states
        )


def _channel_value(row: Row | None, column: int) -> float | int:
    if row is None or column >= len(row) or row[column].kind is not CellKind.NUMBER:
        return 0
    return row[column].value  # type: ignore[return-value]


def channel_breakdown(
    sheet: Sheet, row_label: str, channels: Sequence[str], scale: float = 1.0, absolute: bool = False
) -> list[ChannelPoint]:
    """Channel i read from column i + 1 of the labelled row; 0 when missing."""
    row = find_row(sheet, row_label)
    points = []
    for i, channel in enumerate(channels):
        value = _channel_value(row, i + 1) * scale
        points.append(ChannelPoint(channel, abs(value) if absolute else value))
    return points


def top_states(sheet: Sheet, limit: int = _TOP_STATES) -> list[tuple[str, float | int]]:
    """States with the largest positive net sales, descending."""
    found: list[tuple[str, float | int]] = []
    for row in sheet.rows[_STATE_FIRST_ROW:]:
        if len(row) < 2:
            continue
        name = row[0].label()
        value = row[1]
        if name and name != "TOTAL" and value.kind is CellKind.NUMBER and value.value > 0:  # type: ignore[operator]
            found.append((name, value.value))  # type: ignore[arg-type]
    found.sort(key=lambda item: item[1], reverse=True)
    return found[:limit]


def build_dashboard(
    data: Mapping[str, Sheet], channels: Sequence[str], reconciler: KeyReconciler | None = None
) -> DashboardView:
    """KPIs and chart series of one period; ``reconciler`` locates the tabs."""
    pct = find_by_short_key(data, "% Sheet", reconciler)
    return DashboardView(
        kpis=compute_kpis(data, reconciler),
        channel_sales=channel_breakdown(pct, "Sales (Rs.)", channels),
        channel_margin=channel_breakdown(pct, "Margin %", channels, scale=100),
        channel_share=channel_breakdown(pct, "Share In Net Sale", channels, scale=100, absolute=True),
        top_states=top_states(find_by_short_key(data, STATE_SHEET, reconciler)),
    )
