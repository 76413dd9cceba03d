"""Keyboard and pointer navigation over a gallery page.

One engine serves every gallery variant (flat grid, grouped, burst-aware,
single-select curation) through a `GalleryCapabilities` descriptor. Column
counts are supplied by the rendering layer on every vertical move so they
always reflect the live layout.
"""

from __future__ import annotations

from enum import Enum

from loguru import logger

from core.models import GalleryCapabilities
from core.services.index_mapper import GalleryIndex
from core.services.selection_service import Modifiers, SelectionModel


class Direction(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"


def _columns(columns: int) -> int:
    try:
        return max(1, int(columns))
    except (TypeError, ValueError):
        return 1


def next_row_index(index: int, columns: int, gallery: GalleryIndex, grouped: bool = True) -> int:
    """Return the index one row below `index`.

    Within a group the column is kept, clamped to the last index of a short
    row. From a group's last row the move lands in the next group's first row
    at `min(col, next_count - 1)`. At the bottom edge `index` is returned.
    """
    n = gallery.photo_count
    if n == 0:
        return index
    cols = _columns(columns)
    index = gallery.clamp(index)
    loc = gallery.locate_group(index) if grouped else None
    if loc is None:
        return min(n - 1, index + cols)

    row, col = divmod(loc.index_in_group, cols)
    last_row = (loc.photo_count - 1) // cols
    if row < last_row:
        target = loc.group_start + (row + 1) * cols + col
        return min(target, loc.group_end - 1)

    if loc.group_end >= n:
        return index
    nxt = gallery.locate_group(loc.group_end)
    if nxt is None:
        # Photos past the declared group counts are laid out as ungrouped
        return min(n - 1, loc.group_end + col)
    return nxt.group_start + min(col, nxt.photo_count - 1)


def prev_row_index(index: int, columns: int, gallery: GalleryIndex, grouped: bool = True) -> int:
    """Return the index one row above `index`.

    From a group's first row the move lands on the previous group's last row
    at `last_row_start + min(col, count - 1 - last_row_start)`. At the top edge
    `index` is returned.
    """
    n = gallery.photo_count
    if n == 0:
        return index
    cols = _columns(columns)
    index = gallery.clamp(index)
    loc = gallery.locate_group(index) if grouped else None
    if loc is None:
        return max(0, index - cols)

    row, col = divmod(loc.index_in_group, cols)
    if row > 0:
        return loc.group_start + (row - 1) * cols + col

    if loc.group_start == 0:
        return index
    prev = gallery.locate_group(loc.group_start - 1)
    if prev is None:
        return max(0, index - cols)
    last_row_start = ((prev.photo_count - 1) // cols) * cols
    target = prev.group_start + last_row_start + min(col, prev.photo_count - 1 - last_row_start)
    return gallery.clamp(target)


def step(
    index: int, direction: Direction, columns: int, gallery: GalleryIndex, grouped: bool = True
) -> int:
    """Move one step from `index` and land on a visible target."""
    if gallery.photo_count == 0:
        return index
    index = gallery.to_visible(index)
    if direction is Direction.RIGHT:
        return gallery.next_visible(index)
    if direction is Direction.LEFT:
        return gallery.prev_visible(index)
    if direction is Direction.DOWN:
        raw = next_row_index(index, columns, gallery, grouped)
        target = gallery.to_visible(raw)
        if target <= index < raw:
            # Landed inside the collapsed burst we started from; skip past it
            entry = gallery.burst_for(raw)
            after = entry.end_index if entry is not None else raw
            return after if after < gallery.photo_count else index
        return target
    return gallery.to_visible(prev_row_index(index, columns, gallery, grouped))


class NavigationEngine:
    """Computes selection transitions for every input event of a page.

    The engine never mutates the photo list; the page session calls
    `remove_index` after it splices a photo out.
    """

    def __init__(
        self,
        capabilities: GalleryCapabilities | None = None,
        gallery: GalleryIndex | None = None,
        selection: SelectionModel | None = None,
    ) -> None:
        self.capabilities = capabilities or GalleryCapabilities()
        self.gallery = gallery or GalleryIndex()
        self.selection = selection or SelectionModel()

    def reset(self, gallery: GalleryIndex, initial_index: int | None = None) -> None:
        """Replace the working set after a page load."""
        self.gallery = gallery
        self.selection.clear()
        if initial_index is not None and gallery.photo_count > 0:
            self.selection.select_only(gallery.to_visible(initial_index))

    @property
    def grouped(self) -> bool:
        return self.capabilities.has_groups and self.gallery.has_groups

    @property
    def current(self) -> int | None:
        return self.selection.current

    # Pointer
    def click(self, index: int, modifiers: Modifiers = Modifiers.NONE) -> set[int]:
        """Apply a click; a hidden burst member selects its stack tile instead."""
        if self.gallery.photo_count == 0 or not 0 <= index < self.gallery.photo_count:
            logger.debug("Ignoring click on out-of-range index {}", index)
            return self.selection.indices
        index = self.gallery.to_visible(index)
        if self.capabilities.is_single_select:
            modifiers = Modifiers.NONE
        if modifiers & Modifiers.SHIFT and self.selection.anchor is not None:
            self.selection.select_range(
                self.selection.anchor, index, is_visible=self.gallery.is_visible
            )
            return self.selection.indices
        return self.selection.click(index, modifiers & ~Modifiers.SHIFT)

    # Keyboard
    def move(self, direction: Direction, columns: int) -> int | None:
        """Move the single current index; return the new index or None if no move applies."""
        current = self.selection.current
        if current is None or self.gallery.photo_count == 0:
            return None
        target = step(current, direction, columns, self.gallery, self.grouped)
        self.selection.select_only(target)
        return target

    def advance(self) -> int | None:
        """Auto-advance the single current index; None when already at the end."""
        current = self.selection.current
        if current is None or self.gallery.photo_count == 0:
            return None
        target = self.gallery.next_visible(self.gallery.to_visible(current))
        if target == current:
            return None
        self.selection.select_only(target)
        return target

    # Groups and bursts
    def toggle_group(self, group_index: int) -> bool:
        """Select or deselect every visible index of a group; return True when selected."""
        bounds = self.gallery.group_range(group_index)
        if bounds is None:
            return False
        start, end = bounds
        return self.selection.toggle_range(self.gallery.visible_indices(start, end))

    def group_fully_selected(self, group_index: int) -> bool:
        bounds = self.gallery.group_range(group_index)
        if bounds is None:
            return False
        visible = self.gallery.visible_indices(*bounds)
        return bool(visible) and all(i in self.selection for i in visible)

    def toggle_burst(self, burst_id: str) -> bool:
        """Expand or collapse a burst and keep the selection on visible tiles."""
        expanded = self.gallery.toggle_burst(burst_id)
        self.selection.resolve_hidden(self.gallery)
        logger.debug("Burst {} {}", burst_id, "expanded" if expanded else "collapsed")
        return expanded

    # Removal
    def remove_index(self, index: int) -> None:
        self.gallery.remove_index(index)
        self.selection.remove_index(index)
        self.selection.resolve_hidden(self.gallery)
