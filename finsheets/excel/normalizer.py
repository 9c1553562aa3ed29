from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ..models.cell import CellValue
from ..models.sheet_data import Row, Sheet, SheetData
from .layout_registry import LayoutRegistry, default_registry

"""Workbook normalizer.

Turns the decoder's raw workbook (sheet name -> row-major grid) into SheetData:
hidden rows listed in the sheet's layout are dropped, everything else keeps
its source order and is renumbered from 0. Each raw cell is wrapped into a
CellValue.

Pure function of (raw workbook, registry): no I/O, no shared state, and no
exception for unknown sheets or ragged rows.
"""

__all__ = [
    "normalize",
    "normalize_sheet",
]

logger = logging.getLogger(__name__)


def _to_row(raw_row: Sequence[Any] | None) -> Row:
    if raw_row is None:
        return ()
    return tuple(CellValue.of(v) for v in raw_row)


def normalize_sheet(name: str, grid: Sequence[Sequence[Any]], registry: LayoutRegistry | None = None) -> Sheet:
    """Visible rows of one sheet, hidden source rows removed."""
    layout = (registry or default_registry()).lookup(name)
    hidden = layout.hidden_indices
    rows = tuple(_to_row(raw) for i, raw in enumerate(grid) if i not in hidden)
    dropped = len(grid) - len(rows)
    if dropped:
        logger.debug("sheet=%r hidden_rows_dropped=%d visible_rows=%d", name, dropped, len(rows))
    return Sheet(name=name, rows=rows)


def normalize(raw_workbook: Mapping[str, Sequence[Sequence[Any]]], registry: LayoutRegistry | None = None) -> SheetData:
    """Normalize every sheet of a decoded workbook, preserving sheet order."""
    registry = registry or default_registry()
    sheets = {name: normalize_sheet(name, grid or (), registry) for name, grid in raw_workbook.items()}
    return SheetData(sheets)
