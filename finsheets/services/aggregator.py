from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from ..excel.classifier import RowClass, RowClassifier, is_empty_row
from ..excel.extraction import find_row, find_row_value
from ..excel.layout_registry import LayoutRegistry, default_registry
from ..excel.reconciler import KeyReconciler, find_by_short_key
from ..models.cell import CellKind
from ..models.period import PeriodValue
from ..models.sheet_data import Row, Sheet
from .kpi import KPI_DEFINITIONS, KpiDefinition, net_sales, total_cogs
from .period_codec import decode

"""Cross-period aggregation.

Input is an ordered mapping period key -> normalized workbook, in the order the
caller wants periods displayed; nothing here re-sorts it. Sheets are located
through their reconciled logical key so month-specific tab names line up.

Two missing-value conventions coexist on purpose:
- metric series and KPI tables keep None ("cannot compute", shown as a dash);
- channel series default to 0.0 (a missing channel contribution charts as 0).
"""

__all__ = [
    "ComparisonError",
    "InsufficientPeriodsError",
    "MIN_COMPARE_PERIODS",
    "KpiComparison",
    "AlignedRow",
    "ComparisonView",
    "require_periods",
    "align_metric",
    "align_channel_series",
    "compute_delta",
    "format_delta",
    "compare_kpis",
    "align_sheet_rows",
    "build_comparison",
    "CHANNEL_SALES_ROW",
    "CHANNEL_MARGIN_ROW",
    "CHANNEL_SHEET",
]

MIN_COMPARE_PERIODS = 2
CHANNEL_SHEET = "% Sheet"
CHANNEL_SALES_ROW = "Sales (Rs.)"
CHANNEL_MARGIN_ROW = "Margin %"

Workbooks = Mapping[str, Mapping[str, Sheet]]


class ComparisonError(Exception):
    """Base class for comparison failures."""


class InsufficientPeriodsError(ComparisonError):
    """Fewer periods than a comparison needs."""

    def __init__(self, supplied: int, required: int = MIN_COMPARE_PERIODS) -> None:
        self.supplied = supplied
        self.required = required
        super().__init__(f"select at least {required} periods to compare (got {supplied})")


def require_periods(periods: Sequence[str] | Mapping[str, object], minimum: int = MIN_COMPARE_PERIODS) -> None:
    if len(periods) < minimum:
        raise InsufficientPeriodsError(len(periods), minimum)


def align_metric(
    workbooks: Workbooks,
    metric_label: str,
    sheet_key: str,
    column: int,
    reconciler: KeyReconciler | None = None,
) -> list[PeriodValue]:
    """Value of one labelled row/column for every period, caller order."""
    return [
        PeriodValue(period, find_row_value(find_by_short_key(data, sheet_key, reconciler), metric_label, column))
        for period, data in workbooks.items()
    ]


def _numeric(row: Row | None, column: int) -> float | int | None:
    if row is None or not 0 <= column < len(row):
        return None
    cell = row[column]
    return cell.value if cell.kind is CellKind.NUMBER else None  # type: ignore[return-value]


def align_channel_series(
    workbooks: Workbooks,
    sheet_key: str,
    row_label: str,
    channels: Sequence[str],
    column_offset: int = 1,
    reconciler: KeyReconciler | None = None,
) -> dict[str, list[PeriodValue]]:
    """Per-channel series of one row; channel i sits at column ``column_offset + i``.

    Missing rows or non-numeric cells yield 0.0.
    """
    rows = {
        period: find_row(find_by_short_key(data, sheet_key, reconciler), row_label)
        for period, data in workbooks.items()
    }
    series: dict[str, list[PeriodValue]] = {}
    for ci, channel in enumerate(channels):
        points = []
        for period, row in rows.items():
            value = _numeric(row, column_offset + ci)
            points.append(PeriodValue(period, value if value is not None else 0.0))
        series[channel] = points
    return series


def compute_delta(v0: float | int | None, v1: float | int | None) -> float | None:
    """Percent change of v0 relative to v1; None when undefined."""
    if not isinstance(v0, (int, float)) or not isinstance(v1, (int, float)):
        return None
    if isinstance(v0, bool) or isinstance(v1, bool) or v1 == 0:
        return None
    return (v0 - v1) / abs(v1) * 100


def format_delta(pct: float | None) -> str:
    """"▲10.0%" / "▼5.2%"; a dash when there is no delta."""
    if pct is None:
        return "—"
    arrow = "▲" if pct >= 0 else "▼"
    return f"{arrow}{abs(pct):.1f}%"


@dataclass(frozen=True)
class KpiComparison:
    label: str
    values: tuple[PeriodValue, ...]
    delta: float | None = None  # only set when exactly two periods are compared
    formatted: tuple[str, ...] = ()


def compare_kpis(
    workbooks: Workbooks,
    kpis: Sequence[KpiDefinition] = KPI_DEFINITIONS,
    reconciler: KeyReconciler | None = None,
) -> list[KpiComparison]:
    """KPI table across periods; the change column needs exactly two periods."""
    require_periods(workbooks)
    out: list[KpiComparison] = []
    for kpi in kpis:
        values = tuple(PeriodValue(period, kpi.extract(data, reconciler)) for period, data in workbooks.items())
        delta = compute_delta(values[0].value, values[1].value) if len(values) == 2 else None
        out.append(KpiComparison(kpi.label, values, delta, tuple(kpi.fmt(v.value) for v in values)))
    return out


@dataclass(frozen=True)
class AlignedRow:
    """One template row with the same-index row of every period."""
    index: int
    row_class: RowClass
    label: str
    rows_by_period: Mapping[str, Row]


def align_sheet_rows(
    workbooks: Workbooks,
    sheet_key: str,
    registry: LayoutRegistry | None = None,
    classifier: RowClassifier | None = None,
    reconciler: KeyReconciler | None = None,
) -> list[AlignedRow]:
    """Rows of one logical sheet aligned by position across periods.

    The first period that has the sheet provides the row labels and classes;
    blank template rows are dropped. Periods lacking a row contribute ().
    """
    registry = registry or default_registry()
    classifier = classifier or RowClassifier()
    sheets = {period: find_by_short_key(data, sheet_key, reconciler) for period, data in workbooks.items()}
    template = next((s for s in sheets.values() if s.rows), None)
    if template is None:
        return []
    layout = registry.lookup_logical(sheet_key, reconciler)
    max_columns = template.width
    aligned: list[AlignedRow] = []
    for ri, row in enumerate(template.rows):
        if is_empty_row(row):
            continue
        cls = classifier.classify(ri, row, layout.title_rows, layout.header_rows, max_columns)
        by_period = {p: (s.rows[ri] if ri < len(s.rows) else ()) for p, s in sheets.items()}
        aligned.append(AlignedRow(ri, cls, row[0].label() if row else "", by_period))
    return aligned


@dataclass(frozen=True)
class ComparisonView:
    """Everything the multi-period comparison screen renders."""
    periods: tuple[str, ...]
    labels: tuple[str, ...]
    kpis: list[KpiComparison]
    sales_trend: list[dict[str, object]]
    channel_sales: dict[str, list[PeriodValue]]
    channel_margin: dict[str, list[PeriodValue]]
    has_channel_sales: bool = field(default=False)
    has_channel_margin: bool = field(default=False)


def _any_nonzero(series: Mapping[str, list[PeriodValue]]) -> bool:
    return any(p.value for points in series.values() for p in points)


def build_comparison(
    workbooks: Workbooks, channels: Sequence[str], reconciler: KeyReconciler | None = None
) -> ComparisonView:
    """KPI table, sales trend and channel series for two or more periods."""
    require_periods(workbooks)
    trend = [
        {
            "period": decode(period),
            "Net Sales": net_sales(data, reconciler) or 0,
            "Total COGS": total_cogs(data, reconciler) or 0,
        }
        for period, data in workbooks.items()
    ]
    sales = align_channel_series(workbooks, CHANNEL_SHEET, CHANNEL_SALES_ROW, channels, reconciler=reconciler)
    margin_raw = align_channel_series(workbooks, CHANNEL_SHEET, CHANNEL_MARGIN_ROW, channels, reconciler=reconciler)
    margin = {
        ch: [PeriodValue(p.period, round(p.value * 100, 1)) for p in points]  # type: ignore[operator]
        for ch, points in margin_raw.items()
    }
    return ComparisonView(
        periods=tuple(workbooks),
        labels=tuple(decode(p) for p in workbooks),
        kpis=compare_kpis(workbooks, reconciler=reconciler),
        sales_trend=trend,
        channel_sales=sales,
        channel_margin=margin,
        has_channel_sales=_any_nonzero(sales),
        has_channel_margin=_any_nonzero(margin),
    )
