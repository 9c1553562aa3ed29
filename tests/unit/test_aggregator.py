from __future__ import annotations

import pytest

from conftest import make_sheet, period_sheets, pl_grid
from finsheets.excel.classifier import RowClass
from finsheets.excel.layout_registry import default_registry
from finsheets.excel.normalizer import normalize
from finsheets.excel.reconciler import KeyReconciler
from finsheets.models.sheet_data import SheetData
from finsheets.services.aggregator import (
    InsufficientPeriodsError,
    align_channel_series,
    align_metric,
    align_sheet_rows,
    build_comparison,
    compare_kpis,
    compute_delta,
    format_delta,
    require_periods,
)


def _data(month, net, cogs):
    return SheetData(make_sheet(n, g) for n, g in period_sheets(month, net, cogs).items())


@pytest.fixture()
def two_periods():
    return {"2025-11": _data("NOV 2025", 1_100_000, 660_000), "2025-10": _data("OCT 2025", 1_000_000, 700_000)}


def test_compute_delta():
    assert compute_delta(110, 100) == 10.0
    assert compute_delta(95, 100) == -5.0
    assert compute_delta(-50, -100) == 50.0
    assert compute_delta(1, 0) is None
    assert compute_delta(None, 100) is None
    assert compute_delta(100, None) is None


def test_format_delta():
    assert format_delta(10.0) == "▲10.0%"
    assert format_delta(-5.24) == "▼5.2%"
    assert format_delta(None) == "—"


def test_require_periods():
    require_periods(["a", "b"])
    with pytest.raises(InsufficientPeriodsError) as e:
        require_periods(["a"])
    assert e.value.supplied == 1
    assert "select at least 2 periods" in str(e.value)


def test_compare_kpis_two_periods(two_periods):
    rows = {r.label: r for r in compare_kpis(two_periods)}
    net = rows["Net Sales"]
    assert [v.period for v in net.values] == ["2025-11", "2025-10"]
    assert net.delta == pytest.approx(10.0)
    assert format_delta(net.delta) == "▲10.0%"
    assert net.formatted == ("₹11.00 L", "₹10.00 L")


def test_compare_kpis_single_period_is_signalled():
    with pytest.raises(InsufficientPeriodsError):
        compare_kpis({"2025-11": _data("NOV 2025", 1, 1)})


def test_compare_kpis_three_periods_no_delta(two_periods):
    three = dict(two_periods, **{"2025-09": _data("SEP 2025", 900_000, 500_000)})
    assert all(r.delta is None for r in compare_kpis(three))


def test_align_metric_keeps_order_and_missing(two_periods):
    workbooks = dict(two_periods, **{"2025-09": SheetData()})
    series = align_metric(workbooks, "Net Sale", "IAV P&L", 1)
    assert [p.period for p in series] == ["2025-11", "2025-10", "2025-09"]
    assert [p.value for p in series] == [1_100_000, 1_000_000, None]


def test_align_channel_series_defaults_to_zero(two_periods):
    series = align_channel_series(two_periods, "% Sheet", "Sales (Rs.)", ["AMAZON.IN", "FLIPKART", "MYNTRA"])
    assert series["AMAZON.IN"][0].value == pytest.approx(660_000)
    assert series["FLIPKART"][1].value == pytest.approx(400_000)
    assert [p.value for p in series["MYNTRA"]] == [0.0, 0.0]


def test_align_sheet_rows(two_periods):
    workbooks = {"2025-12": SheetData(), **two_periods}
    rows = align_sheet_rows(workbooks, "% Sheet")
    assert rows[0].row_class is RowClass.TITLE
    assert rows[1].row_class is RowClass.HEADER
    sales = next(r for r in rows if r.label == "Sales (Rs.)")
    assert sales.row_class is RowClass.DATA
    assert sales.rows_by_period["2025-12"] == ()
    assert sales.rows_by_period["2025-10"][1].value == pytest.approx(600_000)


def test_align_sheet_rows_missing_everywhere():
    assert align_sheet_rows({"a": SheetData(), "b": SheetData()}, "NOPE") == []


def test_build_comparison(two_periods):
    view = build_comparison(two_periods, ["AMAZON.IN", "FLIPKART"])
    assert view.labels == ("NOV 2025", "OCT 2025")
    assert view.sales_trend[0] == {"period": "NOV 2025", "Net Sales": 1_100_000, "Total COGS": 660_000}
    assert view.channel_margin["AMAZON.IN"][0].value == 25.0
    assert view.channel_margin["FLIPKART"][1].value == 12.5
    assert view.has_channel_sales and view.has_channel_margin


def test_build_comparison_requires_two():
    with pytest.raises(InsufficientPeriodsError):
        build_comparison({"2025-11": SheetData()}, ["AMAZON.IN"])


def test_configured_prefix_locates_renamed_tabs():
    workbooks = {
        "2025-11": SheetData([make_sheet("SALES REPORT v2 final", [["Units", 10, 0]])]),
        "2025-10": SheetData([make_sheet("SALES REPORT v1", [["Units", 9, 0]])]),
    }
    assert [p.value for p in align_metric(workbooks, "Units", "SALES REPORT", 1)] == [None, None]
    custom = KeyReconciler.with_prefixes(["IAV P&L", "SALES REPORT"])
    assert [p.value for p in align_metric(workbooks, "Units", "SALES REPORT", 1, custom)] == [10, 9]


def _renamed(month, net, cogs, tab):
    sheets = period_sheets(month, net, cogs)
    sheets[tab] = sheets.pop("% Sheet")
    return SheetData(make_sheet(n, g) for n, g in sheets.items())


def test_build_comparison_uses_reconciler():
    workbooks = {
        "2025-11": _renamed("NOV 2025", 1_100_000, 660_000, "% Sheet rev2"),
        "2025-10": _renamed("OCT 2025", 1_000_000, 700_000, "% Sheet rev1"),
    }
    assert not build_comparison(workbooks, ["AMAZON.IN"]).has_channel_sales

    view = build_comparison(workbooks, ["AMAZON.IN"], KeyReconciler.with_prefixes(["IAV P&L", "% Sheet"]))
    assert view.has_channel_sales
    assert [p.value for p in view.channel_sales["AMAZON.IN"]] == pytest.approx([660_000, 600_000])
    net = next(k for k in view.kpis if k.label == "Net Sales")
    assert net.delta == pytest.approx(10.0)


def test_pl_layout_needs_an_entry_per_month():
    raw = {"2025-11": {"IAV P&L NOV 2025": pl_grid("NOV 2025", 10, 6)}, "2025-10": {"IAV P&L OCT 2025": pl_grid("OCT 2025", 9, 6)}}

    def ebitda_pair(registry):
        workbooks = {p: normalize(wb, registry) for p, wb in raw.items()}
        row = next(r for r in align_sheet_rows(workbooks, "IAV P&L", registry) if r.label == "EBITDA")
        return [row.rows_by_period[p][0].label() for p in raw]

    assert ebitda_pair(default_registry()) == ["EBITDA", "HIDDEN HELPER"]
    registry = default_registry().with_overrides(
        {"IAV P&L OCT 2025": {"short": "P&L Oct-25", "header_rows": 6, "title_rows": 2, "hidden_rows": [19]}}
    )
    assert ebitda_pair(registry) == ["EBITDA", "EBITDA"]
