from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm

"""Progress display with tqdm (TTY only).

One bar per batch command: periods for ``compare``, files for ``upload``. When
stdout is not a terminal (CI, pipes, tests) no bar is created, so the log
stays free of control sequences.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Counts items through ``start``/``finish``; draws a bar only on a TTY."""

    def __init__(self, total: int, *, description: str = "Loading periods", unit: str = "period") -> None:
        self.total = total
        self.description = description
        self.current = 0
        self.failed = 0
        self.enabled = is_tty_enabled()
        self.pbar: Any = None
        if self.enabled:
            self.pbar = tqdm(total=total, desc=description, unit=unit, leave=True, ncols=80, ascii=True)

    def start(self, item: str) -> None:
        """Mark ``item`` (a period key or file name) as in progress."""
        self.current += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({item})")

    def finish(self, success: bool = True) -> None:
        if not success:
            self.failed += 1
        if self.pbar is None:
            return
        self.pbar.update(1)
        self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.pbar is None:
            return
        self.pbar.close()
        self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
