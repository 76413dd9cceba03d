"""Mapping between flat photo indices and the group/burst overlays.

Every position in a page is addressed by its flat index. Groups and bursts
are views over contiguous index ranges; this module decides which indices
are independently visible and how they are laid out per group.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from enum import Enum

from loguru import logger

from core.models import Burst, Group


@dataclass(frozen=True)
class GroupLocation:
    """Position of a flat index inside the grouping overlay.

    Attributes:
        group_index: Ordinal of the group in the overlay.
        group_start: First flat index of the group.
        group_end: Exclusive end of the group.
        index_in_group: Offset of the index from `group_start`.
        photo_count: Number of photos in the group (`group_end - group_start`).
    """

    group_index: int
    group_start: int
    group_end: int
    index_in_group: int
    photo_count: int


@dataclass(frozen=True)
class BurstEntry:
    """Lookup entry for one burst member."""

    burst_id: str
    is_first: bool
    burst_count: int
    start_index: int
    position_in_burst: int

    @property
    def end_index(self) -> int:
        return self.start_index + self.burst_count


class RenderKind(str, Enum):
    PHOTO = "photo"
    STACK = "stack"
    BURST_MEMBER = "burst_member"


@dataclass(frozen=True)
class RenderItem:
    """One selectable tile produced by `render_range`."""

    kind: RenderKind
    index: int
    burst_id: str | None = None
    burst_count: int = 0
    position_in_burst: int = 0
    is_first_in_burst: bool = False
    is_last_in_burst: bool = False


def _safe_count(value: object) -> int:
    try:
        return max(0, int(value or 0))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0


def group_ranges(groups: Iterable[Group], total: int | None = None) -> list[tuple[int, int]]:
    """Return half-open `(start, end)` ranges for `groups`, clamped to `total`."""
    ranges: list[tuple[int, int]] = []
    start = 0
    for g in groups:
        end = start + _safe_count(g.photo_count)
        if total is None:
            ranges.append((start, end))
        else:
            ranges.append((min(start, total), min(end, total)))
        start = end
    return ranges


def locate_group(
    groups: Sequence[Group], index: int, total: int | None = None
) -> GroupLocation | None:
    """Find the group containing `index` by a linear scan of cumulative ranges.

    Returns None when grouping is inactive or the index lies outside every
    group. When `total` is given, a group overrunning it is clamped and
    indices past the declared counts are treated as ungrouped.
    """
    if not groups or index < 0:
        return None
    if total is not None and index >= total:
        return None
    start = 0
    for group_index, g in enumerate(groups):
        count = _safe_count(g.photo_count)
        end = start + count
        if total is not None:
            end = min(end, total)
        if start <= index < end:
            return GroupLocation(
                group_index=group_index,
                group_start=start,
                group_end=end,
                index_in_group=index - start,
                photo_count=end - start,
            )
        start += count
    return None


def build_burst_index(
    bursts: Iterable[Burst], total: int | None = None
) -> dict[int, BurstEntry]:
    """Expand bursts into a flat-index lookup.

    Bursts with a non-positive count, out-of-range members, or members already
    claimed by an earlier burst are skipped.
    """
    index: dict[int, BurstEntry] = {}
    for b in bursts:
        count = _safe_count(b.count)
        if count < 1:
            logger.warning("Skipping burst {} with count {}", b.burst_id, b.count)
            continue
        if b.start_index < 0 or (total is not None and b.start_index + count > total):
            logger.warning(
                "Skipping burst {} outside list bounds: start={} count={} total={}",
                b.burst_id,
                b.start_index,
                count,
                total,
            )
            continue
        members = range(b.start_index, b.start_index + count)
        if any(i in index for i in members):
            logger.warning("Skipping burst {} overlapping an earlier burst", b.burst_id)
            continue
        for position, i in enumerate(members, start=1):
            index[i] = BurstEntry(
                burst_id=b.burst_id,
                is_first=i == b.start_index,
                burst_count=count,
                start_index=b.start_index,
                position_in_burst=position,
            )
    return index


def render_range(
    start: int,
    end: int,
    burst_index: dict[int, BurstEntry],
    expanded: Iterable[str] = (),
) -> list[RenderItem]:
    """Enumerate the visible items for flat indices `start..end-1`.

    A collapsed burst yields a single stack item at its start and the walk
    skips to the burst's end (clamped to `end`). Members of expanded bursts
    are emitted individually with their position metadata.
    """
    expanded_ids = set(expanded)
    items: list[RenderItem] = []
    i = max(0, start)
    while i < end:
        entry = burst_index.get(i)
        if entry is None:
            items.append(RenderItem(kind=RenderKind.PHOTO, index=i))
            i += 1
            continue
        if entry.burst_id in expanded_ids:
            items.append(
                RenderItem(
                    kind=RenderKind.BURST_MEMBER,
                    index=i,
                    burst_id=entry.burst_id,
                    burst_count=entry.burst_count,
                    position_in_burst=entry.position_in_burst,
                    is_first_in_burst=entry.position_in_burst == 1,
                    is_last_in_burst=entry.position_in_burst == entry.burst_count,
                )
            )
            i += 1
            continue
        if entry.is_first:
            items.append(
                RenderItem(
                    kind=RenderKind.STACK,
                    index=i,
                    burst_id=entry.burst_id,
                    burst_count=entry.burst_count,
                    position_in_burst=1,
                    is_first_in_burst=True,
                    is_last_in_burst=entry.burst_count == 1,
                )
            )
        # Hidden members of a collapsed burst never render on their own
        i = min(entry.end_index, end)
    return items


class GalleryIndex:
    """Index over one page: photo count plus grouping and burst overlays.

    The overlays are owned by the page session and replaced wholesale on every
    page load. `remove_index` keeps them consistent when a photo is spliced
    out after a fade.
    """

    def __init__(
        self,
        photo_count: int = 0,
        groups: Iterable[Group] | None = None,
        bursts: Iterable[Burst] | None = None,
        expanded: Iterable[str] | None = None,
    ) -> None:
        self._count = max(0, int(photo_count))
        self._groups: list[Group] = list(groups or [])
        self._bursts: list[Burst] = list(bursts or [])
        self._expanded: set[str] = set(expanded or ())
        self._burst_index: dict[int, BurstEntry] = {}
        self._rebuild()

    def _rebuild(self) -> None:
        self._burst_index = build_burst_index(self._bursts, self._count)
        if self._groups:
            declared = sum(_safe_count(g.photo_count) for g in self._groups)
            if declared != self._count:
                logger.warning(
                    "Group counts sum to {} but page has {} photos", declared, self._count
                )

    # Properties
    @property
    def photo_count(self) -> int:
        return self._count

    @property
    def groups(self) -> list[Group]:
        return list(self._groups)

    @property
    def bursts(self) -> list[Burst]:
        return list(self._bursts)

    @property
    def expanded(self) -> frozenset[str]:
        return frozenset(self._expanded)

    @property
    def has_groups(self) -> bool:
        return bool(self._groups)

    @property
    def burst_index(self) -> dict[int, BurstEntry]:
        return self._burst_index

    # Groups
    def locate_group(self, index: int) -> GroupLocation | None:
        return locate_group(self._groups, index, self._count)

    def group_range(self, group_index: int) -> tuple[int, int] | None:
        """Return the clamped `(start, end)` range of a group, or None."""
        ranges = group_ranges(self._groups, self._count)
        if 0 <= group_index < len(ranges):
            return ranges[group_index]
        return None

    def group_ranges(self) -> list[tuple[int, int]]:
        return group_ranges(self._groups, self._count)

    # Bursts
    def burst_for(self, index: int) -> BurstEntry | None:
        return self._burst_index.get(index)

    def is_expanded(self, burst_id: str) -> bool:
        return burst_id in self._expanded

    def toggle_burst(self, burst_id: str) -> bool:
        """Flip the expansion state of `burst_id`; return the new state."""
        if burst_id in self._expanded:
            self._expanded.discard(burst_id)
            return False
        self._expanded.add(burst_id)
        return True

    def render_range(self, start: int, end: int) -> list[RenderItem]:
        return render_range(start, min(end, self._count), self._burst_index, self._expanded)

    def render_all(self) -> list[RenderItem]:
        return self.render_range(0, self._count)

    # Visibility
    def is_visible(self, index: int) -> bool:
        if not 0 <= index < self._count:
            return False
        entry = self._burst_index.get(index)
        return entry is None or entry.is_first or entry.burst_id in self._expanded

    def clamp(self, index: int) -> int:
        if self._count == 0:
            return 0
        return max(0, min(self._count - 1, int(index)))

    def to_visible(self, index: int) -> int:
        """Clamp `index` and resolve a hidden burst member to its stack tile."""
        index = self.clamp(index)
        if self.is_visible(index):
            return index
        entry = self._burst_index.get(index)
        return entry.start_index if entry is not None else index

    def next_visible(self, index: int) -> int:
        """Return the next visible index after `index`, or `index` at the end."""
        j = index + 1
        if j >= self._count:
            return index
        if not self.is_visible(j):
            entry = self._burst_index[j]
            j = entry.end_index
            if j >= self._count:
                return index
        return j

    def prev_visible(self, index: int) -> int:
        """Return the previous visible index before `index`, or `index` at the start."""
        j = index - 1
        if j < 0:
            return index
        return self.to_visible(j)

    def visible_indices(self, start: int = 0, end: int | None = None) -> list[int]:
        stop = self._count if end is None else min(end, self._count)
        return [i for i in range(max(0, start), stop) if self.is_visible(i)]

    # Mutation
    def remove_index(self, index: int) -> None:
        """Splice `index` out of the overlays.

        The owning group loses one photo (and disappears at zero), later bursts
        shift down by one, and the containing burst shrinks or disappears.
        """
        if not 0 <= index < self._count:
            return
        loc = self.locate_group(index)
        if loc is not None:
            group = self._groups[loc.group_index]
            remaining = _safe_count(group.photo_count) - 1
            if remaining <= 0:
                del self._groups[loc.group_index]
            else:
                self._groups[loc.group_index] = replace(group, photo_count=remaining)

        bursts: list[Burst] = []
        for b in self._bursts:
            if b.start_index <= index < b.end_index:
                if b.count - 1 < 1:
                    self._expanded.discard(b.burst_id)
                    continue
                cover = b.cover_index if b.cover_index is not None else b.start_index
                if cover > index:
                    cover -= 1
                cover = min(max(cover, b.start_index), b.start_index + b.count - 2)
                bursts.append(replace(b, count=b.count - 1, cover_index=cover))
            elif index < b.start_index:
                cover = b.cover_index if b.cover_index is not None else b.start_index
                bursts.append(replace(b, start_index=b.start_index - 1, cover_index=cover - 1))
            else:
                bursts.append(b)
        self._bursts = bursts
        self._count -= 1
        self._rebuild()
