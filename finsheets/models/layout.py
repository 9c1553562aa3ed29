from __future__ import annotations

from dataclasses import dataclass

"""LayoutDescriptor: structural metadata for one logical sheet."""

__all__ = [
    "LayoutDescriptor",
]


@dataclass(frozen=True)
class LayoutDescriptor:
    """Per-sheet layout as configured for the source workbook.

    ``hidden_rows`` are 1-based positions in the *unfiltered* source grid, the
    way they read in the spreadsheet application.
    """
    short: str  # tab label shown to users
    header_rows: int = 1
    title_rows: int = 0
    hidden_rows: tuple[int, ...] = ()

    @property
    def hidden_indices(self) -> frozenset[int]:
        """0-based source indices to drop during normalization."""
        return frozenset(r - 1 for r in self.hidden_rows if r >= 1)

    @property
    def leading_rows(self) -> int:
        """Title plus header rows: rows always kept by table searches."""
        return self.title_rows + self.header_rows

    @classmethod
    def default(cls, sheet_name: str) -> LayoutDescriptor:
        return cls(short=sheet_name, header_rows=1, title_rows=0, hidden_rows=())
