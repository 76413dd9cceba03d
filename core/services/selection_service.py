"""Selection state for a gallery page, decoupled from any UI toolkit.

A selection is a set of flat indices. Insertion order is kept so the first
index of a single selection can act as the "current" photo, and an anchor is
remembered for shift-click range selection.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Flag, auto
from typing import Protocol


class Modifiers(Flag):
    """Pointer modifiers relevant to click selection."""

    NONE = 0
    SHIFT = auto()
    CTRL = auto()
    META = auto()


class _VisibilityResolver(Protocol):
    """Resolves an index to a currently visible one (e.g. a burst stack tile)."""

    def to_visible(self, index: int) -> int:
        raise NotImplementedError


class SelectionModel:
    """Owns the selected flat indices and the range-select anchor."""

    def __init__(self, initial: Iterable[int] = ()) -> None:
        self._order: list[int] = []
        self.anchor: int | None = None
        for i in initial:
            self._add(i)
        if self._order:
            self.anchor = self._order[0]

    def _add(self, index: int) -> bool:
        if index in self._order:
            return False
        self._order.append(index)
        return True

    # Queries
    @property
    def indices(self) -> set[int]:
        return set(self._order)

    @property
    def ordered(self) -> list[int]:
        """Selected indices in insertion order."""
        return list(self._order)

    @property
    def current(self) -> int | None:
        """The single current index, only when exactly one index is selected."""
        return self._order[0] if len(self._order) == 1 else None

    def __contains__(self, index: object) -> bool:
        return index in self._order

    def __len__(self) -> int:
        return len(self._order)

    # Click handling
    def click(self, index: int, modifiers: Modifiers = Modifiers.NONE) -> set[int]:
        """Apply a click on `index` and return the new selection.

        - Shift with an anchor selects the contiguous range anchor..index.
        - Ctrl/Cmd toggles `index`.
        - Otherwise `index` becomes the only selection and the new anchor.
        """
        if modifiers & Modifiers.SHIFT and self.anchor is not None:
            self.select_range(self.anchor, index)
        elif modifiers & (Modifiers.CTRL | Modifiers.META):
            self.toggle(index)
        else:
            self.select_only(index)
        return self.indices

    def select_only(self, index: int) -> None:
        self._order = [index]
        self.anchor = index

    def toggle(self, index: int) -> bool:
        """Toggle membership of `index`; return True when it was added."""
        if index in self._order:
            self._order.remove(index)
            return False
        self._order.append(index)
        self.anchor = index
        return True

    def select_range(
        self, anchor: int, target: int, is_visible: Callable[[int], bool] | None = None
    ) -> None:
        """Replace the selection with the inclusive range between `anchor` and `target`.

        The anchor itself is left unchanged.
        """
        lo, hi = min(anchor, target), max(anchor, target)
        span = range(lo, hi + 1) if anchor <= target else range(hi, lo - 1, -1)
        self._order = [i for i in span if is_visible is None or is_visible(i)]

    def toggle_range(self, indices: Iterable[int]) -> bool:
        """Select all of `indices`, or deselect them if all are already selected.

        Selections outside `indices` are preserved. Returns True when the
        range ended up selected.
        """
        targets = list(indices)
        if not targets:
            return False
        if all(i in self._order for i in targets):
            drop = set(targets)
            self._order = [i for i in self._order if i not in drop]
            return False
        for i in targets:
            self._add(i)
        return True

    def clear(self) -> None:
        self._order = []
        self.anchor = None

    # Consistency
    def resolve_hidden(self, resolver: _VisibilityResolver) -> None:
        """Re-point indices that became hidden (e.g. a burst collapsed)."""
        resolved: list[int] = []
        for i in self._order:
            j = resolver.to_visible(i)
            if j not in resolved:
                resolved.append(j)
        self._order = resolved
        if self.anchor is not None:
            self.anchor = resolver.to_visible(self.anchor)

    def remove_index(self, index: int) -> None:
        """Drop `index` and shift later indices down so they keep their photos."""
        self._order = [i if i < index else i - 1 for i in self._order if i != index]
        if self.anchor is not None:
            if self.anchor == index:
                self.anchor = None
            elif self.anchor > index:
                self.anchor -= 1
