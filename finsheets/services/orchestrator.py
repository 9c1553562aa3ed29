from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..excel.layout_registry import LayoutRegistry, default_registry
from ..excel.normalizer import normalize
from ..excel.reader import EXCEL_SUFFIXES, WorkbookReadError, read_sheet_names, read_workbook
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.load_result import LoadResult, PeriodStat
from ..models.period import PeriodEntry, UploadResult
from ..models.sheet_data import SheetData
from ..storage.blob_store import (
    DEFAULT_LEGACY_KEY,
    MONTHS_PREFIX,
    WORKBOOK_SUFFIX,
    BlobStore,
    ObjectNotFoundError,
    StorageError,
    month_object_key,
    period_key_from_object,
)
from .cache import WorkbookCache
from .period_codec import LATEST, decode, detect_period, encode, is_period_key
from .progress import ProgressTracker

"""Service orchestration: storing, listing and loading period workbooks.

Flow for one period: resolve the object key, fetch the bytes from the blob
store, decode them into a raw workbook, normalize against the layout registry,
cache the result under the period key.

Batch loads (``load_periods``) treat each period independently: a failure is
logged to the JSON Lines error buffer and counted, and the remaining periods
still load. Only problems that make the whole run meaningless raise
``ProcessingError``.
"""

__all__ = [
    "ProcessingError",
    "InvalidUploadError",
    "error_type_of",
    "object_key_for",
    "upload_workbook",
    "list_periods",
    "resolve_period_key",
    "load_period",
    "load_periods",
]

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal orchestration failure."""


class InvalidUploadError(ProcessingError):
    """Upload rejected before anything was stored."""


def object_key_for(period_key: str, legacy_key: str = DEFAULT_LEGACY_KEY) -> str:
    """Blob key of a period; the ``latest`` sentinel means the legacy object."""
    return legacy_key if period_key == LATEST else month_object_key(period_key)


def upload_workbook(store: BlobStore, path: Path, legacy_key: str = DEFAULT_LEGACY_KEY) -> UploadResult:
    """Store one workbook under the period detected from its sheet names.

    A workbook whose sheet names carry no "MON YYYY" is stored as the legacy
    (un-keyed) workbook.
    """
    if path.suffix.lower() not in EXCEL_SUFFIXES:
        raise InvalidUploadError(f"{path.name}: only .xlsx or .xls files are allowed")
    if not path.is_file():
        raise InvalidUploadError(f"{path.name}: file not found")
    data = path.read_bytes()
    sheet_names = read_sheet_names(data)
    period = detect_period(sheet_names)
    period_key = encode(period)
    object_key = object_key_for(period_key, legacy_key)
    replaced = store.exists(object_key)
    store.put(object_key, data)
    logger.debug("uploaded %s as %s -> %s (%d bytes, replaced=%s)", path.name, period, object_key, len(data), replaced)
    return UploadResult(
        file_name=path.name,
        period=period,
        period_key=period_key,
        object_key=object_key,
        size=len(data),
        uploaded_at=datetime.now(UTC),
        replaced=replaced,
    )


def list_periods(store: BlobStore) -> list[PeriodEntry]:
    """Stored period workbooks, newest period first."""
    entries = []
    for blob in store.list(MONTHS_PREFIX):
        if not blob.key.endswith(WORKBOOK_SUFFIX):
            continue
        period_key = period_key_from_object(blob.key)
        if not is_period_key(period_key):
            logger.debug("ignoring non-period object %s", blob.key)
            continue
        entries.append(PeriodEntry(blob.key, period_key, decode(period_key), blob.last_modified, blob.size))
    entries.sort(key=lambda e: e.period_key, reverse=True)
    return entries


def resolve_period_key(store: BlobStore, key: str | None = None) -> str:
    """Requested key, else the newest stored period, else the legacy sentinel."""
    if key:
        return key.strip()
    periods = list_periods(store)
    if periods:
        return periods[0].period_key
    logger.debug("no period workbooks stored; falling back to the legacy object")
    return LATEST


def _fetch_and_normalize(store: BlobStore, object_key: str, registry: LayoutRegistry) -> SheetData:
    raw = read_workbook(store.get(object_key))
    return normalize(raw, registry)


def load_period(
    store: BlobStore,
    key: str,
    registry: LayoutRegistry | None = None,
    cache: WorkbookCache | None = None,
    legacy_key: str = DEFAULT_LEGACY_KEY,
) -> SheetData:
    """Normalized workbook of one period, served from the cache when present.

    Raises:
        ObjectNotFoundError: nothing stored for the period
        StorageError: the store failed
        WorkbookReadError: the stored bytes are not a workbook
    """
    registry = registry or default_registry()
    object_key = object_key_for(key, legacy_key)
    if cache is None:
        return _fetch_and_normalize(store, object_key, registry)
    return cache.get_or_load(key, lambda: _fetch_and_normalize(store, object_key, registry))


def error_type_of(e: Exception) -> str:
    """UPPER_SNAKE error class recorded in the JSON Lines error log."""
    if isinstance(e, InvalidUploadError):
        return "INVALID_UPLOAD"
    if isinstance(e, ObjectNotFoundError):
        return "OBJECT_NOT_FOUND"
    if isinstance(e, StorageError):
        return "STORAGE_ERROR"
    if isinstance(e, WorkbookReadError):
        return "WORKBOOK_READ_ERROR"
    return "UNEXPECTED_ERROR"


def load_periods(
    store: BlobStore,
    keys: Iterable[str],
    registry: LayoutRegistry | None = None,
    cache: WorkbookCache | None = None,
    error_log: ErrorLogBuffer | None = None,
    legacy_key: str = DEFAULT_LEGACY_KEY,
) -> LoadResult:
    """Load several periods, keeping going past per-period failures.

    ``LoadResult.workbooks`` holds the successful periods in request order;
    duplicate keys are loaded once.

    Raises:
        ProcessingError: no period keys were given
    """
    requested = list(dict.fromkeys(k.strip() for k in keys if k and k.strip()))
    if not requested:
        raise ProcessingError("no periods requested")

    start_time = datetime.now(UTC)
    registry = registry or default_registry()
    error_log = error_log if error_log is not None else ErrorLogBuffer()

    workbooks: dict[str, SheetData] = {}
    stats: list[PeriodStat] = []
    success_count = 0
    failed_count = 0
    total_sheets = 0
    total_rows = 0

    with ProgressTracker(len(requested)) as progress:
        for key in requested:
            progress.start(key)
            object_key = object_key_for(key, legacy_key)
            period_start = datetime.now(UTC)
            cached = cache is not None and key in cache
            try:
                data = load_period(store, key, registry, cache, legacy_key)
            except (StorageError, WorkbookReadError) as e:
                failed_count += 1
                elapsed = (datetime.now(UTC) - period_start).total_seconds()
                logger.error("period %s (%s): %s", key, object_key, e)
                error_log.append(ErrorRecord.create(key, object_key, error_type_of(e), str(e)))
                stats.append(PeriodStat(key, object_key, "failed", 0, 0, elapsed, str(e)))
                progress.finish(success=False)
                continue

            rows = sum(len(sheet) for sheet in data.values())
            elapsed = (datetime.now(UTC) - period_start).total_seconds()
            workbooks[key] = data
            success_count += 1
            total_sheets += len(data)
            total_rows += rows
            stats.append(PeriodStat(key, object_key, "cached" if cached else "success", len(data), rows, elapsed))
            logger.debug("period %s: sheets=%d rows=%d elapsed=%.3fs", key, len(data), rows, elapsed)
            progress.set_postfix(success=success_count, failed=failed_count)
            progress.finish(success=True)

    try:
        written = error_log.flush()
    except OSError as e:
        logger.warning("error log flush failed: %s", e)
    else:
        if written is not None:
            logger.info("error details written to %s", written)

    end_time = datetime.now(UTC)
    return LoadResult(
        success_periods=success_count,
        failed_periods=failed_count,
        total_sheets=total_sheets,
        total_rows=total_rows,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        workbooks=workbooks,
        period_stats=stats,
    )
