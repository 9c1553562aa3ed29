from __future__ import annotations

from conftest import make_sheet
from finsheets.excel.reconciler import (
    KeyReconciler,
    all_short_keys,
    find_by_short_key,
    short_key,
    union_short_keys,
)
from finsheets.models.sheet_data import SheetData


def test_literal_prefix():
    assert short_key("IAV P&L NOV 2025") == "IAV P&L"
    assert short_key("IAV P&L DEC-25") == "IAV P&L"
    assert short_key("IAV P&L") == "IAV P&L"


def test_period_suffix():
    assert short_key("ALPHA JAN 2025") == "ALPHA"
    assert short_key("ALPHA FEB 2025") == "ALPHA"
    assert short_key("SALES NOVEMBER 2024") == "SALES"


def test_identity_and_trim():
    assert short_key("% Sheet") == "% Sheet"
    assert short_key("STATEWISE SALE ") == "STATEWISE SALE"
    assert short_key("IAV GROUP MONT. COMPARATIVE P&L") == "IAV GROUP MONT. COMPARATIVE P&L"


def test_stable_across_periods():
    jan = SheetData([make_sheet("ALPHA JAN 2025", [["a", 1]]), make_sheet("% Sheet", [])])
    feb = SheetData([make_sheet("ALPHA FEB 2025", [["b", 2]])])
    assert all_short_keys(jan) == ["ALPHA", "% Sheet"]
    assert union_short_keys([jan, feb]) == ["ALPHA", "% Sheet"]
    assert find_by_short_key(feb, "ALPHA").rows[0][0].value == "b"


def test_missing_key_gives_empty_sheet():
    sheet = find_by_short_key(SheetData(), "NOPE")
    assert sheet.name == "NOPE"
    assert len(sheet) == 0


def test_custom_prefixes():
    rec = KeyReconciler.with_prefixes(["AMAZON EXP"])
    assert rec.short_key("AMAZON EXP SHEET OCT") == "AMAZON EXP"
    assert rec.short_key("IAV P&L NOV 2025") == "IAV P&L"
