from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Period-level value objects shared by storage, aggregation and the CLI."""

__all__ = [
    "PeriodValue",
    "PeriodEntry",
    "UploadResult",
]


@dataclass(frozen=True)
class PeriodValue:
    """One point of a cross-period series."""
    period: str  # period key (YYYY-MM)
    value: float | int | None


@dataclass(frozen=True)
class PeriodEntry:
    """A stored workbook discovered by listing the blob store."""
    object_key: str  # e.g. months/2025-11.xlsx
    period_key: str  # 2025-11
    period: str  # NOV 2025
    last_modified: datetime | None = None
    size: int = 0


@dataclass(frozen=True)
class UploadResult:
    """Outcome of storing one workbook under its detected period."""
    file_name: str
    period: str
    period_key: str
    object_key: str
    size: int
    uploaded_at: datetime
    replaced: bool = False  # an earlier workbook for the period was overwritten
