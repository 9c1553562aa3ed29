from __future__ import annotations

import html
import logging
from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

import requests

"""Monthly notes e-mail.

Free-text notes for one period are rendered into a small HTML mail (one bullet
per non-blank line) and posted as JSON to a transactional mail API. The API
answers with the id of the queued message.
"""

__all__ = [
    "NotificationError",
    "NotesSender",
    "build_html",
    "note_lines",
    "DEFAULT_ENDPOINT",
]

DEFAULT_ENDPOINT = "https://api.resend.com/emails"
DEFAULT_SENDER = "onboarding@resend.dev"
_TIMEOUT = 30
_IST = ZoneInfo("Asia/Kolkata")
_BULLETS = ("-", "•")

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    pass


def note_lines(notes: str) -> list[str]:
    """Trimmed non-blank lines, each starting with a bullet."""
    lines = [line.strip() for line in notes.split("\n")]
    return [line if line.startswith(_BULLETS) else f"• {line}" for line in lines if line]


def build_html(period: str, notes: str, sent_at: str) -> str:
    rows = "".join(
        f'<tr><td style="padding:10px 16px;border-bottom:1px solid #e9e0d0;">{html.escape(line)}</td></tr>'
        for line in note_lines(notes)
    )
    if not rows:
        rows = '<tr><td style="padding:16px;font-style:italic;">No notes recorded.</td></tr>'
    period_html = html.escape(period)
    return (
        "<!DOCTYPE html>"
        f'<html lang="en"><head><meta charset="UTF-8" /><title>Notes — {period_html}</title></head>'
        '<body style="font-family:Arial,sans-serif;">'
        f"<h1>Monthly Notes</h1><p>{period_html}</p><p>Sent {html.escape(sent_at)}</p>"
        f'<table width="100%" cellpadding="0" cellspacing="0">{rows}</table>'
        "</body></html>"
    )


class NotesSender:
    def __init__(
        self,
        api_key: str,
        recipients: Sequence[str],
        sender: str = DEFAULT_SENDER,
        endpoint: str = DEFAULT_ENDPOINT,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.recipients = list(recipients)
        self.sender = sender
        self.endpoint = endpoint
        self._session = session or requests.Session()

    def send(self, period: str, notes: str, now: datetime | None = None) -> str:
        """Send the notes mail; returns the provider's message id."""
        if not period or not notes or not notes.strip():
            raise NotificationError("period and notes are required")
        if not self.api_key:
            raise NotificationError("NOTES_API_KEY is not set")
        if not self.recipients:
            raise NotificationError("no recipients configured")
        sent_at = (now or datetime.now(_IST)).astimezone(_IST).strftime("%d %b %Y, %I:%M %p")
        payload = {
            "from": self.sender,
            "to": self.recipients,
            "subject": f"Notes — {period}",
            "html": build_html(period, notes, sent_at),
        }
        try:
            resp = self._session.post(
                self.endpoint,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=_TIMEOUT,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise NotificationError(f"email send failed: {e}") from e
        message_id = str((resp.json() or {}).get("id", ""))
        logger.info("notes for %s sent to %d recipient(s) id=%s", period, len(self.recipients), message_id)
        return message_id
