from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future

from ..models.sheet_data import SheetData

"""In-memory workbook cache keyed by period key.

Plain set/overwrite store: the last write for a key wins and nothing expires
on its own. ``clear()`` is the eviction hook used on logout.

``get_or_load`` deduplicates concurrent loads of a not-yet-cached key: the
first caller runs the loader, later callers for the same key wait on its
result. The lock guards only the two dicts, never a load.
"""

__all__ = [
    "WorkbookCache",
]

logger = logging.getLogger(__name__)


class WorkbookCache:
    def __init__(self) -> None:
        self._entries: dict[str, SheetData] = {}
        self._in_flight: dict[str, Future[SheetData]] = {}
        self._lock = threading.Lock()

    def get(self, period_key: str) -> SheetData | None:
        return self._entries.get(period_key)

    def put(self, period_key: str, data: SheetData) -> None:
        self._entries[period_key] = data

    def evict(self, period_key: str) -> None:
        self._entries.pop(period_key, None)

    def clear(self) -> None:
        self._entries.clear()
        logger.debug("workbook cache cleared")

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, period_key: object) -> bool:
        return period_key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_load(self, period_key: str, loader: Callable[[], SheetData]) -> SheetData:
        """Cached workbook, or the result of ``loader`` shared by concurrent callers."""
        with self._lock:
            cached = self._entries.get(period_key)
            if cached is not None:
                return cached
            future: Future[SheetData] = Future()
            in_flight = self._in_flight.setdefault(period_key, future)
        if in_flight is not future:
            return in_flight.result()
        try:
            data = loader()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            self.put(period_key, data)
            future.set_result(data)
            return data
        finally:
            with self._lock:
                self._in_flight.pop(period_key, None)
