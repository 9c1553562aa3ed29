from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from ..excel.extraction import find_row_value
from ..excel.reconciler import PL_SHEET_KEY, KeyReconciler, find_by_short_key
from ..models.sheet_data import Sheet, SheetData
from .formatting import fmt_count, fmt_inr, fmt_pct

"""KPI definitions for a single period's workbook.

Each KPI is a scalar read from a normalized sheet via value extraction. A KPI
whose source row or cell is missing is None and renders as a placeholder; it
is never defaulted to 0.
"""

__all__ = [
    "KpiDefinition",
    "KPI_DEFINITIONS",
    "ORDERS_SHEET",
    "STOCK_SHEET",
    "compute_kpis",
    "pl_sheet",
    "net_sales",
    "total_cogs",
    "gross_margin",
    "total_orders",
    "return_rate",
    "closing_stock",
]

ORDERS_SHEET = "ORDERS SHEET"
STOCK_SHEET = "STOCK VALUE"

Number = float | int


@dataclass(frozen=True)
class KpiDefinition:
    label: str
    extract: Callable[[Mapping[str, Sheet], KeyReconciler | None], Number | None]
    fmt: Callable[[Number | None], str]


def pl_sheet(data: Mapping[str, Sheet], reconciler: KeyReconciler | None = None) -> Sheet:
    """The period's P&L tab, whatever month its name carries."""
    return find_by_short_key(data, PL_SHEET_KEY, reconciler)


def net_sales(data: Mapping[str, Sheet], reconciler: KeyReconciler | None = None) -> Number | None:
    return find_row_value(pl_sheet(data, reconciler), "Net Sale", 1)


def total_cogs(data: Mapping[str, Sheet], reconciler: KeyReconciler | None = None) -> Number | None:
    return find_row_value(pl_sheet(data, reconciler), "Total COGS", 1)


def gross_margin(data: Mapping[str, Sheet], reconciler: KeyReconciler | None = None) -> float | None:
    ns = net_sales(data, reconciler)
    cogs = total_cogs(data, reconciler)
    if ns is None or cogs is None or ns == 0:
        return None
    return (ns - cogs) / ns


def total_orders(data: Mapping[str, Sheet], reconciler: KeyReconciler | None = None) -> Number | None:
    return find_row_value(find_by_short_key(data, ORDERS_SHEET, reconciler), "TOTAL ORDERS", 1)


def return_rate(data: Mapping[str, Sheet], reconciler: KeyReconciler | None = None) -> float | None:
    total = total_orders(data, reconciler)
    returned = find_row_value(find_by_short_key(data, ORDERS_SHEET, reconciler), "RETURN ORDERS", 1)
    if total is None or returned is None or total == 0:
        return None
    return returned / total


def closing_stock(data: Mapping[str, Sheet], reconciler: KeyReconciler | None = None) -> Number | None:
    return find_row_value(find_by_short_key(data, STOCK_SHEET, reconciler), "TOTAL STOCK VALUE AT COST", 2)


KPI_DEFINITIONS: tuple[KpiDefinition, ...] = (
    KpiDefinition("Net Sales", net_sales, fmt_inr),
    KpiDefinition("Total COGS", total_cogs, fmt_inr),
    KpiDefinition("Gross Margin %", gross_margin, fmt_pct),
    KpiDefinition("Total Orders", total_orders, fmt_count),
    KpiDefinition("Return Rate", return_rate, fmt_pct),
    KpiDefinition("Closing Stock", closing_stock, fmt_inr),
)


def compute_kpis(
    data: SheetData | Mapping[str, Sheet], reconciler: KeyReconciler | None = None
) -> dict[str, Number | None]:
    """Label -> value for every KPI, in display order."""
    return {k.label: k.extract(data, reconciler) for k in KPI_DEFINITIONS}
