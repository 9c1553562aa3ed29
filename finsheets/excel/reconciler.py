from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from ..models.sheet_data import Sheet, SheetData

"""Sheet key reconciliation across periods.

Monthly workbooks rename some tabs every release ("IAV P&L NOV 2025",
"IAV P&L DEC 2025"). short_key() collapses such names to a stable logical key
so the same analytical sheet can be found in any period's workbook.

Rules run in order on the trimmed sheet name; the first match wins and names
matching no rule map to themselves.
"""

__all__ = [
    "LiteralPrefixRule",
    "PeriodSuffixRule",
    "KeyReconciler",
    "DEFAULT_LITERAL_PREFIXES",
    "PL_SHEET_KEY",
    "short_key",
    "find_by_short_key",
    "all_short_keys",
    "union_short_keys",
]

PL_SHEET_KEY = "IAV P&L"
DEFAULT_LITERAL_PREFIXES: tuple[str, ...] = (PL_SHEET_KEY,)

_MONTH_TOKEN = (
    r"(?:JAN(?:UARY)?|FEB(?:RUARY)?|MAR(?:CH)?|APR(?:IL)?|MAY|JUNE?|JULY?|AUG(?:UST)?"
    r"|SEP(?:T(?:EMBER)?)?|OCT(?:OBER)?|NOV(?:EMBER)?|DEC(?:EMBER)?)"
)
_PERIOD_SUFFIX_RE = re.compile(
    rf"^(?P<stem>.*?\S)[\s\-_]+{_MONTH_TOKEN}[\s\-_'.]*(?:\d{{4}}|\d{{2}})$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class LiteralPrefixRule:
    """Known literal prefix followed by volatile text -> the prefix."""
    prefix: str

    def apply(self, name: str) -> str | None:
        if name.upper().startswith(self.prefix.upper()) and len(name) > len(self.prefix):
            return self.prefix
        return None


@dataclass(frozen=True)
class PeriodSuffixRule:
    """Trailing "MON YYYY" (or "MON-YY") stripped from the name."""

    def apply(self, name: str) -> str | None:
        match = _PERIOD_SUFFIX_RE.match(name)
        if match is None:
            return None
        return match.group("stem").strip()


KeyRule = LiteralPrefixRule | PeriodSuffixRule


@dataclass(frozen=True)
class KeyReconciler:
    rules: tuple[KeyRule, ...] = tuple(LiteralPrefixRule(p) for p in DEFAULT_LITERAL_PREFIXES) + (PeriodSuffixRule(),)

    @classmethod
    def with_prefixes(cls, prefixes: Sequence[str]) -> KeyReconciler:
        return cls(rules=tuple(LiteralPrefixRule(p) for p in prefixes) + (PeriodSuffixRule(),))

    def short_key(self, sheet_name: str) -> str:
        name = sheet_name.strip()
        for rule in self.rules:
            key = rule.apply(name)
            if key is not None:
                return key
        return name

    def find_by_short_key(self, sheet_data: Mapping[str, Sheet], key: str) -> Sheet:
        for name, sheet in sheet_data.items():
            if self.short_key(name) == key:
                return sheet
        return Sheet(name=key, rows=())

    def all_short_keys(self, sheet_data: Iterable[str]) -> list[str]:
        seen: dict[str, None] = {}
        for name in sheet_data:
            seen.setdefault(self.short_key(name), None)
        return list(seen)

    def union_short_keys(self, workbooks: Iterable[Mapping[str, Sheet]]) -> list[str]:
        seen: dict[str, None] = {}
        for workbook in workbooks:
            for key in self.all_short_keys(workbook):
                seen.setdefault(key, None)
        return list(seen)


_DEFAULT = KeyReconciler()


def short_key(sheet_name: str) -> str:
    """Stable logical key for a displayed sheet name."""
    return _DEFAULT.short_key(sheet_name)


def find_by_short_key(
    sheet_data: SheetData | Mapping[str, Sheet], key: str, reconciler: KeyReconciler | None = None
) -> Sheet:
    """First sheet reconciling to ``key``; an empty sheet when none does.

    ``reconciler`` defaults to the built-in rules (``IAV P&L`` prefix, period suffix).
    """
    return (reconciler or _DEFAULT).find_by_short_key(sheet_data, key)


def all_short_keys(sheet_data: SheetData | Mapping[str, Sheet]) -> list[str]:
    """Reconciled keys of every sheet, deduplicated, first-seen order."""
    return _DEFAULT.all_short_keys(sheet_data)


def union_short_keys(workbooks: Iterable[Mapping[str, Sheet]]) -> list[str]:
    """Keys present in at least one of the workbooks, first-seen order."""
    return _DEFAULT.union_short_keys(workbooks)
