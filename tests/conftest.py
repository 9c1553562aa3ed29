# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from finsheets.models.cell import CellValue
from finsheets.models.sheet_data import Sheet, SheetData

CHANNELS = ["AMAZON.IN", "FLIPKART"]


def make_sheet(name: str, grid: list[list[Any]]) -> Sheet:
    return Sheet(name=name, rows=tuple(tuple(CellValue.of(v) for v in row) for row in grid))


def write_workbook(path: Path, sheets: dict[str, list[list[Any]]]) -> Path:
    """Write grids as-is (no header row, no index) with openpyxl."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, grid in sheets.items():
            pd.DataFrame(grid).to_excel(writer, sheet_name=name, header=False, index=False)
    return path


def pl_grid(month: str, net_sale: float | int, cogs: float | int) -> list[list[Any]]:
    """P&L tab: 2 title rows, 6 header rows, hidden source row 19."""
    grid: list[list[Any]] = [
        ["INDIAN ART VILLA", "", ""],
        [f"P&L FOR {month}", "", ""],
    ]
    grid += [[f"Header {i}", "Amount", "%"] for i in range(6)]
    grid += [
        ["Gross Sale", net_sale * 1.2, 1.2],
        ["Net Sale", net_sale, 1],
        ["Total COGS", cogs, cogs / net_sale],
    ]
    while len(grid) < 18:
        grid.append([f"Expense {len(grid)}", 100, 0.001])
    grid.append(["HIDDEN HELPER", 999, 999])  # source row 19
    grid.append(["EBITDA", net_sale - cogs, 0.1])
    return grid


def period_sheets(month: str, net_sale: float | int, cogs: float | int, orders: int = 200) -> dict[str, list[list[Any]]]:
    """A small but complete monthly workbook, keyed by sheet name."""
    return {
        f"IAV P&L {month}": pl_grid(month, net_sale, cogs),
        "% Sheet": [
            ["CHANNEL ANALYSIS", "", ""],
            ["", "AMAZON.IN", "FLIPKART"],
            ["", "Value", "Value"],
            ["Sales (Rs.)", net_sale * 0.6, net_sale * 0.4],
            ["Margin %", 0.25, 0.125],
            ["Share In Net Sale", 0.6, -0.4],
        ],
        "ORDERS SHEET": [
            ["ORDERS", "", ""],
            ["Channel", "Count", "Note"],
            ["", "", ""],
            ["", "", ""],
            ["", "", ""],
            ["TOTAL ORDERS", orders, "all"],
            ["RETURN ORDERS", orders // 10, "returns"],
        ],
        "STATEWISE SALE ": [
            ["STATEWISE", "", ""],
            ["State", "Net Sale", "Qty"],
            ["KERALA", 500, 5],
            ["GOA", 800, 8],
            ["PUNJAB", -20, 1],
            ["TOTAL", 1280, 14],
        ],
        "STOCK VALUE": [
            ["Item", "Qty", "Value"],
            ["TOTAL STOCK VALUE AT COST", "", 50000],
        ],
    }


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("FINSHEETS_PASSWORD", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """storage:
  backend: local
  root: ./data/store
channels:
  - AMAZON.IN
  - FLIPKART
classifier:
  section_empty_margin: 2
literal_prefixes:
  - "IAV P&L"
notifications:
  sender: reports@example.com
  recipients:
    - finance@example.com
auth:
  username: Admin
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "finsheets.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def nov_workbook(temp_workdir: Path) -> Path:
    return write_workbook(temp_workdir / "data" / "nov.xlsx", period_sheets("NOV 2025", 1_100_000, 660_000))


@pytest.fixture()
def oct_workbook(temp_workdir: Path) -> Path:
    return write_workbook(temp_workdir / "data" / "oct.xlsx", period_sheets("OCT 2025", 1_000_000, 700_000))


@pytest.fixture()
def sample_sheet_data() -> SheetData:
    """Normalized-looking workbook built directly, no Excel round trip."""
    return SheetData(make_sheet(name, grid) for name, grid in period_sheets("NOV 2025", 1_000_000, 600_000).items())
