from __future__ import annotations

import re
from collections.abc import Iterable

"""Period key codec.

Maps a human period label ("NOV 2025") to a sortable, storage-safe period key
("2025-11") and back. Keys sort chronologically as plain strings, which is how
stored workbooks are ordered when listed.
"""

__all__ = [
    "MONTHS",
    "FALLBACK_LABEL",
    "LATEST",
    "encode",
    "decode",
    "detect_period",
    "is_period_key",
]

MONTHS: tuple[str, ...] = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)
FALLBACK_LABEL = "Financial Summary"
LATEST = "latest"  # sentinel key for the un-keyed legacy workbook

_MONTH_NUMBER = {m: i for i, m in enumerate(MONTHS, start=1)}
_YEAR_RE = re.compile(r"(\d{4})")
_KEY_RE = re.compile(r"^\d{4}-\d{2}$")
_DETECT_RE = re.compile(r"(JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC)\s*(\d{4})", re.IGNORECASE)


def encode(period_label: str) -> str:
    """"MON YYYY" -> "YYYY-MM".

    The month is taken from the first three letters of the label; an unknown
    month becomes "01". A label carrying no 4-digit year (the fallback label
    included) encodes to the ``latest`` sentinel.
    """
    label = period_label.strip()
    year_match = _YEAR_RE.search(label)
    if year_match is None:
        return LATEST
    month = _MONTH_NUMBER.get(label[:3].upper(), 1)
    return f"{year_match.group(1)}-{month:02d}"


def decode(key: str) -> str:
    """"YYYY-MM" -> "MON YYYY"; anything unusable decodes to the fallback label."""
    key = key.strip()
    if key == LATEST or "-" not in key:
        return FALLBACK_LABEL
    year, _, month = key.partition("-")
    try:
        index = int(month)
    except ValueError:
        return FALLBACK_LABEL
    if not 1 <= index <= 12 or not year:
        return FALLBACK_LABEL
    return f"{MONTHS[index - 1]} {year}"


def is_period_key(key: str) -> bool:
    return bool(_KEY_RE.match(key))


def detect_period(sheet_names: Iterable[str]) -> str:
    """Period label from the first sheet name embedding "MON YYYY"."""
    for name in sheet_names:
        match = _DETECT_RE.search(name)
        if match:
            return f"{match.group(1).upper()} {match.group(2)}"
    return FALLBACK_LABEL
