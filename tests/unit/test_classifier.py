from __future__ import annotations

from conftest import make_sheet
from finsheets.excel.classifier import (
    DEFAULT_TOTAL_PREFIXES,
    RowClass,
    RowClassifier,
    classify,
    is_empty_row,
)


def _row(*values):
    return make_sheet("s", [list(values)]).rows[0]


def test_title_and_header_by_position():
    row = _row("Anything", 1, 2, 3, 4)
    assert classify(0, row, 2, 3, 5) is RowClass.TITLE
    assert classify(1, row, 2, 3, 5) is RowClass.TITLE
    assert classify(2, row, 2, 3, 5) is RowClass.HEADER
    assert classify(4, row, 2, 3, 5) is RowClass.HEADER
    assert classify(5, row, 2, 3, 5) is RowClass.DATA


def test_header_block_boundary():
    row = _row("Item", 1, 2, 3, 4)
    assert classify(0, row, 0, 1, 5) is RowClass.HEADER
    assert classify(1, row, 0, 1, 5) is RowClass.DATA


def test_section_row():
    assert classify(3, _row("REVENUE", "", "", "", ""), 0, 1, 5) is RowClass.SECTION


def test_section_within_margin():
    # 5 columns: 4 trailing cells, 3 empty >= 5 - 2
    assert classify(3, _row("Other income", 10, "", "", ""), 0, 1, 5) is RowClass.SECTION
    assert classify(3, _row("Other income", 10, 20, "", ""), 0, 1, 5) is RowClass.DATA


def test_total_prefixes():
    for label in ("Total Expenses", "NET SALES", "EBITDA", "EBT", "Contribution", "Sales after returns",
                  "Successfull orders", "Earnings before tax"):
        assert classify(3, _row(label, 1, 2, 3, 4), 0, 1, 5) is RowClass.TOTAL, label
    assert "successfull" in DEFAULT_TOTAL_PREFIXES


def test_section_rule_wins_over_total():
    assert classify(3, _row("TOTAL", "", "", "", ""), 0, 1, 5) is RowClass.SECTION


def test_blank_label_is_data():
    assert classify(3, _row("", 1, 2, 3, 4), 0, 1, 5) is RowClass.DATA


def test_configured_margin_and_prefixes():
    classifier = RowClassifier.from_settings(section_empty_margin=0, total_prefixes=["Grand "])
    assert classifier.classify(3, _row("Other income", 10, "", "", ""), 0, 1, 5) is RowClass.DATA
    assert classifier.classify(3, _row("grand total", 1, 2, 3, 4), 0, 1, 5) is RowClass.TOTAL
    assert classifier.classify(3, _row("Total", 1, 2, 3, 4), 0, 1, 5) is RowClass.DATA


def test_is_empty_row():
    assert is_empty_row(())
    assert is_empty_row(_row("", "", ""))
    assert not is_empty_row(_row("", 0, ""))
