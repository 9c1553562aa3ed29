from __future__ import annotations

from datetime import datetime

from conftest import make_sheet
from finsheets.services.formatting import PLACEHOLDER, CellDisplay, fmt_count, fmt_inr, fmt_pct, format_cell, group_indian


def _cell(value):
    return make_sheet("s", [[value]]).cell(0, 0)


def test_group_indian():
    assert group_indian(1234567) == "12,34,567"
    assert group_indian(999) == "999"
    assert group_indian(100000) == "1,00,000"
    assert group_indian(1234.5, 2) == "1,234.5"
    assert group_indian(-4500) == "-4,500"


def test_fmt_inr():
    assert fmt_inr(None) == PLACEHOLDER
    assert fmt_inr(12_345_678) == "₹1.23 Cr"
    assert fmt_inr(250_000) == "₹2.50 L"
    assert fmt_inr(12_345) == "₹12,345"
    assert fmt_inr(-150_000) == "-₹1.50 L"
    assert fmt_inr(0) == "₹0"


def test_fmt_pct_and_count():
    assert fmt_pct(0.125) == "12.5%"
    assert fmt_pct(None) == PLACEHOLDER
    assert fmt_count(1500) == "1,500"
    assert fmt_count(None) == PLACEHOLDER


def test_format_cell_kinds():
    assert format_cell(_cell("")) == CellDisplay("", "")
    assert format_cell(_cell("#REF!")) == CellDisplay(PLACEHOLDER, "err")
    assert format_cell(_cell("-")) == CellDisplay(PLACEHOLDER, "err")
    assert format_cell(_cell(datetime(2025, 11, 1))) == CellDisplay("Nov-2025", "")
    assert format_cell(_cell(0.256789)) == CellDisplay("25.68%", "pct")
    assert format_cell(_cell(0.25)) == CellDisplay("0.25", "pos")
    assert format_cell(_cell(150000.5)) == CellDisplay("₹1,50,000.5", "pos")
    assert format_cell(_cell(-2500)) == CellDisplay("-₹2,500", "neg")
    assert format_cell(_cell(0)) == CellDisplay("0", "")
    assert format_cell(_cell("Net Sale")) == CellDisplay("Net Sale", "")
