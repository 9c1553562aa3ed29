from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from getpass import getpass
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config
from ..excel.normalizer import normalize
from ..excel.reader import WorkbookReadError, read_workbook
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..logging.init import log_summary, setup_logging
from ..notify.notes import NotesSender, NotificationError
from ..services.aggregator import InsufficientPeriodsError, build_comparison, format_delta, require_periods
from ..services.dashboard import build_dashboard
from ..services.formatting import fmt_inr, fmt_pct
from ..services.kpi import KPI_DEFINITIONS
from ..services.orchestrator import (
    InvalidUploadError,
    ProcessingError,
    error_type_of,
    list_periods,
    load_period,
    load_periods,
    resolve_period_key,
    upload_workbook,
)
from ..services.period_codec import decode
from ..services.progress import ProgressTracker
from ..services.session import Session
from ..services.summary import render_summary_line, render_upload_summary
from ..storage.blob_store import BlobStore, LocalBlobStore, S3BlobStore, StorageError

"""CLI entrypoint.

    python -m finsheets.cli [--config PATH] [--debug] [--user NAME] <command> ...

When FINSHEETS_PASSWORD is set, commands that touch stored workbooks prompt
for it first.

Commands: upload, list, show, compare, inspect, notes.

Exit codes:
- 0 success
- 1 fatal (bad config, nothing could be done)
- 2 partial failure (some files/periods failed, the rest went through)
"""

__all__ = [
    "EXIT_SUCCESS_ALL",
    "EXIT_FATAL",
    "EXIT_PARTIAL_FAILURE",
    "build_store",
    "main",
]

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; .env values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="finsheets", description="Monthly financial workbook dashboard")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to finsheets.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--user", default=None, help="Login name (default: auth.username from the config)")
    sub = p.add_subparsers(dest="command", required=True)

    up = sub.add_parser("upload", help="Store workbooks under their detected period")
    up.add_argument("files", nargs="+", type=Path)

    sub.add_parser("list", help="List stored periods, newest first")

    show = sub.add_parser("show", help="KPI cards and charts for one period")
    show.add_argument("period", nargs="?", default=None, help="Period key (YYYY-MM); latest when omitted")

    cmp_ = sub.add_parser("compare", help="Compare KPIs across periods")
    cmp_.add_argument("periods", nargs="*", help="Two or more period keys, in display order")

    insp = sub.add_parser("inspect", help="Per-sheet layout and row classes of a local workbook")
    insp.add_argument("file", type=Path)
    insp.add_argument("--sheet", action="append", dest="sheets", metavar="NAME", help="Only this sheet (repeatable)")

    notes = sub.add_parser("notes", help="E-mail notes for a period")
    notes.add_argument("period", help="Period key (YYYY-MM)")
    notes.add_argument("--text", required=True, help="Notes; one bullet per line")
    return p.parse_args(argv)


def build_store(cfg: AppConfig) -> BlobStore:
    storage = cfg.storage
    if storage.backend == "s3":
        return S3BlobStore(
            bucket=storage.bucket,
            region=storage.region,
            endpoint_url=storage.endpoint_url,
            access_key=storage.access_key,
            secret_key=storage.secret_key,
        )
    return LocalBlobStore(storage.root)


def _cmd_upload(cfg: AppConfig, store: BlobStore, files: list[Path], logger: logging.Logger) -> int:
    error_log = ErrorLogBuffer()
    ok = 0
    failed = 0
    with ProgressTracker(len(files), description="Uploading", unit="file") as progress:
        for path in files:
            progress.start(path.name)
            try:
                result = upload_workbook(store, path, cfg.storage.legacy_key)
            except (InvalidUploadError, WorkbookReadError, StorageError) as e:
                failed += 1
                logger.error(f"upload {path.name}: {e}")
                error_log.append(ErrorRecord.create("", str(path), error_type_of(e), str(e)))
                progress.finish(success=False)
                continue
            ok += 1
            note = " (replaced)" if result.replaced else ""
            logger.info(f"{result.file_name}: {result.period} -> {result.object_key} size={result.size}{note}")
            progress.finish(success=True)
    written = error_log.flush()
    if written is not None:
        logger.info(f"error details written to {written}")
    log_summary(render_upload_summary(ok, failed)[len("SUMMARY "):])
    return EXIT_PARTIAL_FAILURE if failed else EXIT_SUCCESS_ALL


def _cmd_list(store: BlobStore, logger: logging.Logger) -> int:
    periods = list_periods(store)
    if not periods:
        logger.info("no periods stored")
        return EXIT_SUCCESS_ALL
    for entry in periods:
        modified = entry.last_modified.isoformat() if entry.last_modified else "-"
        logger.info(f"{entry.period_key}  {entry.period:<10} size={entry.size} modified={modified}")
    return EXIT_SUCCESS_ALL


def _cmd_show(cfg: AppConfig, store: BlobStore, session: Session, period: str | None, logger: logging.Logger) -> int:
    key = resolve_period_key(store, period)
    try:
        data = load_period(store, key, cfg.registry, session.cache, cfg.storage.legacy_key)
    except (StorageError, WorkbookReadError) as e:
        logger.error(f"period {key}: {e}")
        return EXIT_FATAL
    session.remember_period(key)
    view = build_dashboard(data, cfg.channels, cfg.reconciler)
    logger.info(f"{decode(key)} ({key}) sheets={len(data)}")
    for kpi in KPI_DEFINITIONS:
        logger.info(f"  {kpi.label:<16} {kpi.fmt(view.kpis[kpi.label])}")
    if view.is_empty:
        logger.info("  no channel or state data in this workbook")
        return EXIT_SUCCESS_ALL
    for sales, margin in zip(view.channel_sales, view.channel_margin):
        logger.info(f"  {sales.channel:<22} sales={fmt_inr(sales.value)} margin={fmt_pct(margin.value / 100)}")
    for state, value in view.top_states:
        logger.info(f"  {state:<22} {fmt_inr(value)}")
    return EXIT_SUCCESS_ALL


def _cmd_compare(cfg: AppConfig, store: BlobStore, session: Session, periods: list[str], logger: logging.Logger) -> int:
    try:
        require_periods(periods)
    except InsufficientPeriodsError as e:
        logger.error(f"compare: {e}")
        return EXIT_FATAL
    try:
        result = load_periods(store, periods, cfg.registry, session.cache, legacy_key=cfg.storage.legacy_key)
    except ProcessingError as e:
        logger.error(f"compare: {e}")
        return EXIT_FATAL

    code = EXIT_SUCCESS_ALL
    try:
        view = build_comparison(result.workbooks, cfg.channels, cfg.reconciler)
    except InsufficientPeriodsError as e:
        logger.error(f"compare: {e}")
        code = EXIT_FATAL
    else:
        logger.info("  " + " | ".join(view.labels))
        for row in view.kpis:
            delta = f" {format_delta(row.delta)}" if row.delta is not None else ""
            logger.info(f"  {row.label:<16} " + " | ".join(row.formatted) + delta)
        if view.has_channel_sales:
            for channel, points in view.channel_sales.items():
                logger.info(f"  {channel:<22} " + " | ".join(fmt_inr(p.value) for p in points))
        if result.failed_periods:
            code = EXIT_PARTIAL_FAILURE

    log_summary(render_summary_line(result)[len("SUMMARY "):])
    return code


def _cmd_inspect(cfg: AppConfig, path: Path, sheets: list[str] | None, logger: logging.Logger) -> int:
    try:
        data = normalize(read_workbook(path, target_sheets=sheets), cfg.registry)
    except WorkbookReadError as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    logger.info(f"FILE: {path.name} sheets={len(data)}")
    for missing in [s for s in sheets or () if s not in data]:
        logger.warning(f"  sheet {missing!r} not in workbook")
    for name, sheet in data.items():
        layout = cfg.registry.lookup(name)
        classes = Counter(
            cfg.classifier.classify(ri, row, layout.title_rows, layout.header_rows, sheet.width).value
            for ri, row in enumerate(sheet.rows)
        )
        counts = " ".join(f"{k}={v}" for k, v in sorted(classes.items()))
        logger.info(
            f"  SHEET: {name!r} key={cfg.reconciler.short_key(name)!r} layout={layout.short!r} "
            f"title={layout.title_rows} header={layout.header_rows} rows={len(sheet)} {counts}"
        )
    return EXIT_SUCCESS_ALL


def _cmd_notes(cfg: AppConfig, period: str, text: str, logger: logging.Logger) -> int:
    notes_cfg = cfg.notifications
    sender = NotesSender(
        api_key=notes_cfg.api_key or "",
        recipients=notes_cfg.recipients,
        sender=notes_cfg.sender,
        endpoint=notes_cfg.endpoint,
    )
    try:
        message_id = sender.send(decode(period), text)
    except NotificationError as e:
        logger.error(f"notes: {e}")
        return EXIT_FATAL
    logger.info(f"notes sent id={message_id}")
    return EXIT_SUCCESS_ALL


def _authenticate(cfg: AppConfig, session: Session, user: str | None, logger: logging.Logger) -> bool:
    """Prompt for the password when FINSHEETS_PASSWORD is set; open access otherwise."""
    if not cfg.password:
        logger.debug("FINSHEETS_PASSWORD not set; stored workbooks are not password protected")
        return True
    username = user or cfg.username
    if session.login(username, getpass(f"password for {username}: ")):
        return True
    logger.error(f"login failed for {username}")
    return False


def main(argv: list[str] | None = None) -> int:
    # argv=None only: an explicit [] must not fall through to sys.argv under pytest
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "inspect":
        return _cmd_inspect(cfg, args.file, args.sheets, logger)
    if args.command == "notes":
        return _cmd_notes(cfg, args.period, args.text, logger)

    session = Session(cfg.username, cfg.password or "")
    if not _authenticate(cfg, session, args.user, logger):
        return EXIT_FATAL
    try:
        store = build_store(cfg)
        if args.command == "upload":
            return _cmd_upload(cfg, store, args.files, logger)
        if args.command == "list":
            return _cmd_list(store, logger)
        if args.command == "show":
            return _cmd_show(cfg, store, session, args.period, logger)
        return _cmd_compare(cfg, store, session, args.periods, logger)
    except StorageError as e:
        logger.error(f"storage: {e}")
        return EXIT_FATAL
    finally:
        session.logout()
