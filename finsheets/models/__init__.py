"""Domain models for the financial workbook dashboard.

Cells and sheets produced by the normalizer, layout descriptors, period value
objects, and the records used for error logging and batch load results.
"""

from .cell import CellKind, CellValue
from .error_record import ErrorRecord
from .layout import LayoutDescriptor
from .load_result import LoadResult, PeriodStat
from .period import PeriodEntry, PeriodValue, UploadResult
from .sheet_data import RawGrid, RawWorkbook, Row, Sheet, SheetData

__all__ = [
    # Workbook models
    "CellKind",
    "CellValue",
    "Row",
    "Sheet",
    "SheetData",
    "RawGrid",
    "RawWorkbook",
    "LayoutDescriptor",
    # Period models
    "PeriodValue",
    "PeriodEntry",
    "UploadResult",
    # Processing models
    "ErrorRecord",
    "LoadResult",
    "PeriodStat",
]
