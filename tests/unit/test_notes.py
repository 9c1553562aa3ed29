from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from finsheets.notify.notes import NotesSender, NotificationError, build_html, note_lines


def test_note_lines():
    assert note_lines("first\n\n  - second \n• third") == ["• first", "- second", "• third"]


def test_build_html_escapes():
    html = build_html("NOV 2025", "<b>bold</b>", "01 Dec 2025")
    assert "&lt;b&gt;bold&lt;/b&gt;" in html
    assert "<b>bold</b>" not in html
    assert "NOV 2025" in html


def test_build_html_no_notes():
    assert "No notes recorded." in build_html("NOV 2025", "\n \n", "now")


def _sender(session):
    return NotesSender("key", ["a@example.com"], sender="r@example.com", endpoint="https://mail.test/emails",
                       session=session)


def test_send_posts_and_returns_id():
    session = MagicMock()
    session.post.return_value.json.return_value = {"id": "msg-1"}
    msg_id = _sender(session).send("NOV 2025", "margins up", now=datetime(2025, 12, 1, tzinfo=timezone.utc))
    assert msg_id == "msg-1"
    args, kwargs = session.post.call_args
    assert args[0] == "https://mail.test/emails"
    assert kwargs["json"]["subject"] == "Notes — NOV 2025"
    assert kwargs["json"]["to"] == ["a@example.com"]
    assert kwargs["headers"]["Authorization"] == "Bearer key"


@pytest.mark.parametrize("period,notes", [("", "x"), ("NOV 2025", ""), ("NOV 2025", "   ")])
def test_send_validates(period, notes):
    with pytest.raises(NotificationError):
        _sender(MagicMock()).send(period, notes)


def test_send_http_failure():
    session = MagicMock()
    session.post.return_value.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    with pytest.raises(NotificationError):
        _sender(session).send("NOV 2025", "notes")


def test_send_requires_api_key():
    with pytest.raises(NotificationError):
        NotesSender("", ["a@example.com"], session=MagicMock()).send("NOV 2025", "notes")
