from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .sheet_data import SheetData

"""Result models for batch workbook loads.

``LoadResult`` aggregates everything the SUMMARY line and the comparison step
need: per-period outcomes, the successfully normalized workbooks (in the order
the periods were requested) and timings.
"""

__all__ = [
    "PeriodStat",
    "LoadResult",
]


@dataclass(frozen=True)
class PeriodStat:
    """Per-period load statistics."""
    period_key: str
    object_key: str
    status: str  # success/failed/cached
    sheets: int  # normalized sheets, 0 on failure
    rows: int  # total rows after hidden-row removal
    elapsed_seconds: float
    error: str | None = None


@dataclass(frozen=True)
class LoadResult:
    success_periods: int
    failed_periods: int
    total_sheets: int
    total_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    workbooks: dict[str, SheetData] = field(default_factory=dict)
    period_stats: list[PeriodStat] = field(default_factory=list)

    @property
    def total_periods(self) -> int:
        return self.success_periods + self.failed_periods

    @property
    def failed_keys(self) -> list[str]:
        return [s.period_key for s in self.period_stats if s.status == "failed"]
