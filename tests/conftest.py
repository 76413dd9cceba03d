# tests/conftest.py
# Fakes for the page-session ports plus photo factories

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from core.models import FilterOptions, Group, Photo, PhotoFilters, PhotoPage, ViewMode
from core.services.interfaces import CurateRequest, CurateResult, CurationError, PageFetchError


class FakeScheduler:
    """Manual clock: timers fire only when `advance` passes their deadline."""

    def __init__(self) -> None:
        self.now = 0
        self._timers: dict[int, tuple[int, Callable[[], None]]] = {}
        self._next = 0

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> int:
        self._next += 1
        self._timers[self._next] = (self.now + delay_ms, callback)
        return self._next

    def cancel(self, handle: int) -> None:
        self._timers.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._timers)

    def advance(self, ms: int) -> None:
        self.now += ms
        due = sorted(
            (deadline, handle)
            for handle, (deadline, _) in self._timers.items()
            if deadline <= self.now
        )
        for _, handle in due:
            entry = self._timers.pop(handle, None)
            if entry is not None:
                entry[1]()


class FakeNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, int]] = []

    def notify(self, message: str, duration_ms: int = 3000) -> None:
        self.messages.append((message, duration_ms))


class FakeCurationService:
    """Records curate calls; keys in `failing` raise CurationError."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, bool, bool, int]] = []
        self.failing: set[str] = set()

    def curate(self, photo_key: str, is_curated: bool, is_trashed: bool, rating: int) -> None:
        if photo_key in self.failing:
            raise CurationError(f"backend rejected {photo_key}")
        self.calls.append((photo_key, is_curated, is_trashed, rating))


class DeferredRunner:
    """Holds requests until the test resolves them, in any order."""

    def __init__(self) -> None:
        self.pending: list[tuple[CurateRequest, Callable[[CurateResult], None]]] = []

    def submit(self, request: CurateRequest, on_done: Callable[[CurateResult], None]) -> None:
        self.pending.append((request, on_done))

    def resolve(self, index: int = 0, success: bool = True, error: str | None = None) -> None:
        request, on_done = self.pending.pop(index)
        on_done(CurateResult(request=request, success=success, error=error))

    def resolve_all(self, success: bool = True) -> None:
        while self.pending:
            self.resolve(0, success=success, error=None if success else "failed")


class FakePageSource:
    """Serves fixed pages; set `fail` to make the next fetch raise.

    Active filters are applied to the served photos; the fixed overlays are
    only returned for unfiltered fetches.
    """

    def __init__(self, photos: list[Photo], groups=None, bursts=None, total: int | None = None):
        self.photos = photos
        self.groups = groups or []
        self.bursts = bursts or []
        self.total = total
        self.fail = False
        self.calls: list[tuple[ViewMode, int, int, bool]] = []
        self.filters_seen: list[PhotoFilters | None] = []
        self.options = FilterOptions()

    def fetch_page(
        self,
        mode: ViewMode,
        offset: int,
        limit: int,
        with_groups: bool = True,
        filters: PhotoFilters | None = None,
    ):
        self.calls.append((mode, offset, limit, with_groups))
        self.filters_seen.append(filters)
        if self.fail:
            raise PageFetchError("backend unavailable")
        photos = [replace(p) for p in self.photos if filters is None or filters.matches(p)]
        overlays = with_groups and filters is None
        total = self.total if self.total is not None and filters is None else offset + len(photos)
        return PhotoPage(
            photos=photos,
            groups=[Group(photo_count=g.photo_count) for g in self.groups] if overlays else [],
            bursts=list(self.bursts) if overlays else [],
            offset=offset,
            limit=limit,
            total_records=total,
            page_start_record=offset + 1 if photos else 0,
            page_end_record=offset + len(photos),
        )

    def filter_options(self) -> FilterOptions:
        if self.fail:
            raise PageFetchError("backend unavailable")
        return self.options


def make_photos(count: int, start: datetime | None = None, step_s: int = 60) -> list[Photo]:
    start = start or datetime(2024, 5, 1, 9, 0, 0)
    return [
        Photo(file_path=f"/photos/img_{i:03d}.jpg", date_time=start + timedelta(seconds=i * step_s))
        for i in range(count)
    ]


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def curation_service() -> FakeCurationService:
    return FakeCurationService()


@pytest.fixture
def runner() -> DeferredRunner:
    return DeferredRunner()


@pytest.fixture
def photos() -> list[Photo]:
    return make_photos(10)


@pytest.fixture
def photo_factory():
    return make_photos


@pytest.fixture
def page_source_factory():
    return FakePageSource
