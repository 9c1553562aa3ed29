from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Labeled console logging for finsheets.

Every line the CLI prints goes through the ``finsheets`` logger as
``LABEL message`` where LABEL is INFO, WARN, ERROR or SUMMARY (DEBUG only
with ``--debug``). Library modules log through ``logging.getLogger(__name__)``
and so end up under the ``finsheets`` hierarchy; they never attach handlers.

boto3/botocore and urllib3 log request chatter at INFO and DEBUG. Those loggers
are held at WARNING unless debug output is requested.

Per-period load failures also go to the JSON Lines error log
(finsheets.logging.error_log).
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "enable_debug",
    "reset_logging",
]

LOGGER_NAME = "finsheets"

# between INFO (20) and WARNING (30): shown at the default level, never filtered as noise
SUMMARY_LEVEL = 25

_DEPENDENCY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")

_LABELS: dict[int, str] = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_app_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message``; exceptions, when attached, follow on the next lines."""

    def format(self, record: logging.LogRecord) -> str:
        label = _LABELS.get(record.levelno, record.levelname)
        line = f"{label} {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _set_dependency_level(level: int) -> None:
    for name in _DEPENDENCY_LOGGERS:
        logging.getLogger(name).setLevel(level)


def setup_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Install the single labeled handler on the ``finsheets`` logger.

    Idempotent: later calls return the configured logger, though
    ``debug=True`` still switches an existing logger to DEBUG. ``stream``
    defaults to stdout as it is at first setup.
    """
    global _app_logger

    if _app_logger is None:
        logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
        logger = logging.getLogger(LOGGER_NAME)
        for stale in list(logger.handlers):
            logger.removeHandler(stale)

        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(LabeledFormatter())
        handler.setLevel(logging.INFO)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        # the root logger may have its own handler (pytest, notebooks)
        logger.propagate = False

        _set_dependency_level(logging.WARNING)
        _app_logger = logger

    if debug:
        enable_debug()
    return _app_logger


def get_logger() -> logging.Logger:
    return _app_logger if _app_logger is not None else setup_logging()


def enable_debug() -> None:
    logger = get_logger()
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG)
    _set_dependency_level(logging.DEBUG)
    logger.debug("debug mode enabled")


def log_summary(message: str) -> None:
    """Emit one ``SUMMARY ...`` line."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Drop the configured handler so the next setup rebinds the stream (tests)."""
    global _app_logger
    if _app_logger is not None:
        for handler in list(_app_logger.handlers):
            _app_logger.removeHandler(handler)
    _set_dependency_level(logging.NOTSET)
    _app_logger = None
