from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from ..models.cell import CellValue

"""Row classification for normalized sheets.

A row's class is derived from its position (title / header block) and, for
body rows, from an ordered list of shape rules. The first rule that matches
wins, so a row that looks both like a section heading and like a total is a
section.

Classification is never stored; every consumer (table rendering, comparison
alignment) recomputes it with the same classifier.
"""

__all__ = [
    "RowClass",
    "SectionRule",
    "TotalPrefixRule",
    "RowClassifier",
    "DEFAULT_TOTAL_PREFIXES",
    "DEFAULT_SECTION_EMPTY_MARGIN",
    "classify",
    "is_empty_row",
]

# "successfull" is misspelled in the production workbooks; keep it verbatim.
DEFAULT_TOTAL_PREFIXES: tuple[str, ...] = (
    "total",
    "net sale",
    "ebit",
    "ebt",
    "contribution",
    "sales after",
    "successfull",
    "earnings before",
)
DEFAULT_SECTION_EMPTY_MARGIN = 2


class RowClass(Enum):
    TITLE = "title"
    HEADER = "header"
    SECTION = "section"
    TOTAL = "total"
    DATA = "data"
    EMPTY = "empty"  # only assigned by callers that suppress blank rows


def is_empty_row(row: Sequence[CellValue]) -> bool:
    """True when every cell is empty (a zero-length row included)."""
    return all(c.is_empty for c in row)


def _label(row: Sequence[CellValue]) -> str:
    return row[0].label() if row else ""


@dataclass(frozen=True)
class SectionRule:
    """Label present and (almost) all trailing cells blank.

    Cells 1 .. min(len(row), max_columns) - 1 are inspected; the row is a
    section when at least ``min(len(row), max_columns) - empty_margin`` of them
    are empty.
    """
    empty_margin: int = DEFAULT_SECTION_EMPTY_MARGIN
    row_class: RowClass = field(default=RowClass.SECTION, init=False)

    def matches(self, row: Sequence[CellValue], max_columns: int) -> bool:
        if not _label(row):
            return False
        bound = min(len(row), max_columns)
        empties = sum(1 for c in row[1:bound] if c.is_empty)
        return empties >= bound - self.empty_margin


@dataclass(frozen=True)
class TotalPrefixRule:
    """Label starts with an aggregate keyword (case-insensitive)."""
    prefixes: tuple[str, ...] = DEFAULT_TOTAL_PREFIXES
    row_class: RowClass = field(default=RowClass.TOTAL, init=False)

    def matches(self, row: Sequence[CellValue], max_columns: int) -> bool:
        label = _label(row).lower()
        return any(label.startswith(p) for p in self.prefixes)


ShapeRule = SectionRule | TotalPrefixRule


@dataclass(frozen=True)
class RowClassifier:
    """Ordered shape rules applied to body rows."""
    rules: tuple[ShapeRule, ...] = (SectionRule(), TotalPrefixRule())

    @classmethod
    def from_settings(
        cls,
        section_empty_margin: int = DEFAULT_SECTION_EMPTY_MARGIN,
        total_prefixes: Sequence[str] | None = None,
    ) -> RowClassifier:
        prefixes = tuple(p.strip().lower() for p in total_prefixes) if total_prefixes else DEFAULT_TOTAL_PREFIXES
        return cls(rules=(SectionRule(section_empty_margin), TotalPrefixRule(prefixes)))

    def classify(
        self,
        row_index: int,
        row: Sequence[CellValue],
        title_rows: int,
        header_rows: int,
        max_columns: int,
    ) -> RowClass:
        if row_index < title_rows:
            return RowClass.TITLE
        if row_index < title_rows + header_rows:
            return RowClass.HEADER
        for rule in self.rules:
            if rule.matches(row, max_columns):
                return rule.row_class
        return RowClass.DATA


_DEFAULT_CLASSIFIER = RowClassifier()


def classify(
    row_index: int,
    row: Sequence[CellValue],
    title_rows: int,
    header_rows: int,
    max_columns: int,
) -> RowClass:
    """Classify with the default rule list."""
    return _DEFAULT_CLASSIFIER.classify(row_index, row, title_rows, header_rows, max_columns)
