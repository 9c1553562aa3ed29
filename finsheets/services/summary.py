from __future__ import annotations

from ..models.load_result import LoadResult

"""SUMMARY line rendering.

Format:
    SUMMARY periods={ok}/{total} success={ok} failed={failed} sheets={sheets}
    rows={rows} elapsed_sec={elapsed}
"""

__all__ = [
    "render_summary_line",
    "format_seconds",
    "render_upload_summary",
]


def format_seconds(seconds: float) -> str:
    """Plain decimal, no scientific notation, integers without a fraction."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: LoadResult) -> str:
    """
    >>> from datetime import datetime, timezone
    >>> t = datetime(2025, 1, 1, tzinfo=timezone.utc)
    >>> render_summary_line(LoadResult(2, 1, 24, 900, t, t, 1.5))
    'SUMMARY periods=2/3 success=2 failed=1 sheets=24 rows=900 elapsed_sec=1.5'
    """
    return (
        f"SUMMARY periods={result.success_periods}/{result.total_periods} "
        f"success={result.success_periods} "
        f"failed={result.failed_periods} "
        f"sheets={result.total_sheets} "
        f"rows={result.total_rows} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )


def render_upload_summary(success: int, failed: int) -> str:
    total = success + failed
    return f"SUMMARY files={success}/{total} success={success} failed={failed}"
