from __future__ import annotations

import hmac
import logging

from .cache import WorkbookCache

"""Minimal session: one configured credential pair and a logged-in flag.

Logging out evicts every cached workbook and forgets the last viewed period.
"""

__all__ = [
    "Session",
]

logger = logging.getLogger(__name__)


class Session:
    def __init__(self, username: str, password: str, cache: WorkbookCache | None = None) -> None:
        self._username = username.strip().lower()
        self._password = password
        self.cache = cache if cache is not None else WorkbookCache()
        self.authenticated = False
        self.last_period: str = ""

    def login(self, username: str, password: str) -> bool:
        """Username is trimmed and case-insensitive; the password is exact."""
        ok = bool(self._password) and username.strip().lower() == self._username and hmac.compare_digest(
            password.encode("utf-8"), self._password.encode("utf-8")
        )
        self.authenticated = ok
        if not ok:
            logger.warning("login rejected for user=%r", username.strip())
        return ok

    def logout(self) -> None:
        self.authenticated = False
        self.last_period = ""
        self.cache.clear()

    def remember_period(self, period_key: str) -> None:
        self.last_period = period_key
