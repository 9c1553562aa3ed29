from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from ..models.layout import LayoutDescriptor
from .reconciler import KeyReconciler, short_key

"""Sheet layout registry.

Static table from exact sheet name (as it appears in the workbook, trailing
spaces included) to its LayoutDescriptor. Unknown sheets fall back to a
one-header-row default so new tabs added by the finance team still load.

The registry is built once and never written afterwards; it is shared freely
between concurrent normalizations.
"""

__all__ = [
    "BUILTIN_LAYOUTS",
    "LayoutRegistry",
    "default_registry",
]

BUILTIN_LAYOUTS: Mapping[str, LayoutDescriptor] = MappingProxyType({
    "IAV P&L NOV 2025": LayoutDescriptor("P&L Nov-25", header_rows=6, title_rows=2, hidden_rows=(19,)),
    "% Sheet": LayoutDescriptor("% Analysis", header_rows=2, title_rows=1),
    "COMPARATIVE %": LayoutDescriptor("Comparative %", header_rows=3, title_rows=1),
    "IAV GROUP MONT. COMPARATIVE P&L": LayoutDescriptor("Group Comparative", header_rows=4, title_rows=2),
    "AMAZON MONTHLY COMPARATIVE P&L": LayoutDescriptor("Amazon Monthly", header_rows=4, title_rows=2),
    "AMAZON QTRLY COMPARATIVE P&L": LayoutDescriptor("Amazon Quarterly", header_rows=4, title_rows=2),
    "ORDERS SHEET": LayoutDescriptor("Orders", header_rows=4, title_rows=1, hidden_rows=(12, 13, 14, 15, 16)),
    "AMAZON STATEWISE P&L": LayoutDescriptor("Amazon Statewise", header_rows=3, title_rows=2),
    "STATEWISE SALE ": LayoutDescriptor("Statewise Sale", header_rows=2, title_rows=1),
    "STOCK VALUE": LayoutDescriptor("Stock Value", header_rows=1, title_rows=0),
    "AMAZON EXP SHEET": LayoutDescriptor("Amazon Expenses", header_rows=3, title_rows=1),
    "FLIPKART EXP SHEET": LayoutDescriptor("Flipkart Expenses", header_rows=3, title_rows=1),
})


def _descriptor_from_mapping(name: str, raw: Mapping[str, Any]) -> LayoutDescriptor:
    return LayoutDescriptor(
        short=raw.get("short", name),
        header_rows=int(raw.get("header_rows", 1)),
        title_rows=int(raw.get("title_rows", 0)),
        hidden_rows=tuple(int(r) for r in raw.get("hidden_rows", ())),
    )


class LayoutRegistry:
    """Immutable sheet name -> LayoutDescriptor table."""

    def __init__(self, layouts: Mapping[str, LayoutDescriptor]) -> None:
        self._layouts: Mapping[str, LayoutDescriptor] = MappingProxyType(dict(layouts))

    @property
    def layouts(self) -> Mapping[str, LayoutDescriptor]:
        return self._layouts

    def __contains__(self, sheet_name: object) -> bool:
        return sheet_name in self._layouts

    def __len__(self) -> int:
        return len(self._layouts)

    def lookup(self, sheet_name: str) -> LayoutDescriptor:
        """Descriptor for an exact sheet name, default layout when unknown."""
        found = self._layouts.get(sheet_name)
        if found is None:
            return LayoutDescriptor.default(sheet_name)
        return found

    def lookup_logical(self, logical_key: str, reconciler: KeyReconciler | None = None) -> LayoutDescriptor:
        """Descriptor for a reconciled sheet key.

        Used where only the period-independent key is known (comparison
        tables). Exact names win over reconciled matches.
        """
        if logical_key in self._layouts:
            return self._layouts[logical_key]
        key_of = reconciler.short_key if reconciler is not None else short_key
        for name, descriptor in self._layouts.items():
            if key_of(name) == logical_key:
                return descriptor
        return LayoutDescriptor.default(logical_key)

    def with_overrides(self, overrides: Mapping[str, Mapping[str, Any] | LayoutDescriptor]) -> LayoutRegistry:
        """New registry with entries added or replaced; self is untouched."""
        merged = dict(self._layouts)
        for name, raw in overrides.items():
            merged[name] = raw if isinstance(raw, LayoutDescriptor) else _descriptor_from_mapping(name, raw)
        return LayoutRegistry(merged)


_DEFAULT = LayoutRegistry(BUILTIN_LAYOUTS)


def default_registry() -> LayoutRegistry:
    return _DEFAULT
