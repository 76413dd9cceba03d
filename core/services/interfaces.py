"""Core service interfaces, ports and shared data structures.

The page session talks to the outside world only through the ports defined
here: page fetch, curation mutation, notifications and timers. Views provide
toolkit-specific adapters (Qt or others); tests provide fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from core.models import CurateAction, FilterOptions, PhotoFilters, PhotoPage, ViewMode


class GalleryError(Exception):
    """Base class for recoverable gallery errors."""


class CurationError(GalleryError):
    """A curation mutation did not happen."""


class PageFetchError(GalleryError):
    """A page of photos could not be fetched."""


@dataclass(frozen=True)
class CurateRequest:
    """A single curation mutation for one photo.

    Attributes:
        photo_key: Stable key (file path) of the photo.
        is_curated: New curated flag.
        is_trashed: New trashed flag.
        rating: New rating (0..5).
        action: The user action that produced the request.
    """

    photo_key: str
    is_curated: bool
    is_trashed: bool
    rating: int
    action: CurateAction


@dataclass(frozen=True)
class CurateResult:
    """Outcome of a curation mutation.

    Attributes:
        request: The request this result answers.
        success: Whether the mutation was applied.
        error: Failure reason when `success` is False.
    """

    request: CurateRequest
    success: bool
    error: str | None = None


class IPageSource(Protocol):
    """Supplies one page of photos plus overlays for a view."""

    def fetch_page(
        self,
        mode: ViewMode,
        offset: int,
        limit: int,
        with_groups: bool = True,
        filters: PhotoFilters | None = None,
    ) -> PhotoPage:
        """Return the page at `offset`; raise `PageFetchError` on failure.

        `filters` narrows the view before paging; totals and overlays are
        computed over the filtered photos.
        """
        raise NotImplementedError

    def filter_options(self) -> FilterOptions:
        """Distinct values each filter can take; raise `PageFetchError` on failure."""
        raise NotImplementedError


class ICurationService(Protocol):
    """Applies curation mutations to the backing store."""

    def curate(self, photo_key: str, is_curated: bool, is_trashed: bool, rating: int) -> None:
        """Persist the new curation state; raise `CurationError` on failure."""
        raise NotImplementedError


class ICurationRunner(Protocol):
    """Dispatches curation requests, possibly concurrently.

    `on_done` must be invoked on the session's thread, once per request.
    """

    def submit(self, request: CurateRequest, on_done: Callable[[CurateResult], None]) -> None:
        raise NotImplementedError


class INotifier(Protocol):
    """Non-fatal user notifications (toasts, status bar)."""

    def notify(self, message: str, duration_ms: int = 3000) -> None:
        raise NotImplementedError


class IScheduler(Protocol):
    """Cooperative single-shot timers on the session's event loop."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        """Run `callback` once after `delay_ms`; return a cancellable handle."""
        raise NotImplementedError

    def cancel(self, handle: Any) -> None:
        """Cancel a pending handle; cancelling a fired handle is a no-op."""
        raise NotImplementedError


class InlineCurationRunner:
    """Runs curation requests synchronously on the calling thread."""

    def __init__(self, service: ICurationService) -> None:
        self._service = service

    def submit(self, request: CurateRequest, on_done: Callable[[CurateResult], None]) -> None:
        on_done(run_curation(self._service, request))


def run_curation(service: ICurationService, request: CurateRequest) -> CurateResult:
    """Execute `request` against `service`, converting failures into a result."""
    try:
        service.curate(request.photo_key, request.is_curated, request.is_trashed, request.rating)
    except CurationError as ex:
        return CurateResult(request=request, success=False, error=str(ex))
    return CurateResult(request=request, success=True)
