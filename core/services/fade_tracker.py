"""Grace period between a curation and the photo leaving the view.

Each photo key moves `active -> fading -> removed`, or back to `active` when
the user undoes before the timer fires. Undo only cancels the removal; the
curation itself stays applied.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from loguru import logger

from core.services.interfaces import IScheduler

DEFAULT_FADE_MS = 3000


@dataclass(eq=False)
class _PendingFade:
    handle: Any = None


class FadeTracker:
    """Tracks photos that are fading out and their removal timers."""

    def __init__(
        self,
        scheduler: IScheduler,
        on_expire: Callable[[str], None],
        duration_ms: int = DEFAULT_FADE_MS,
    ) -> None:
        self._scheduler = scheduler
        self._on_expire = on_expire
        self._duration_ms = max(0, int(duration_ms))
        self._pending: dict[str, _PendingFade] = {}

    @property
    def duration_ms(self) -> int:
        return self._duration_ms

    @property
    def keys(self) -> set[str]:
        return set(self._pending)

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._pending))

    def __len__(self) -> int:
        return len(self._pending)

    def is_fading(self, key: str) -> bool:
        return key in self._pending

    def start(self, key: str) -> None:
        """Start (or restart) the removal countdown for `key`."""
        if self._cancel(key):
            logger.debug("Replacing pending fade for {}", key)
        pending = _PendingFade()
        self._pending[key] = pending
        pending.handle = self._scheduler.schedule(
            self._duration_ms, lambda: self._on_timer(key, pending)
        )

    def undo(self, key: str) -> bool:
        """Cancel the pending removal of `key`; return False if nothing was pending."""
        cancelled = self._cancel(key)
        if cancelled:
            logger.info("Undo fade for {}", key)
        return cancelled

    def clear(self) -> None:
        """Cancel every pending timer without firing (page change or teardown)."""
        for key in list(self._pending):
            self._cancel(key)

    def _cancel(self, key: str) -> bool:
        pending = self._pending.pop(key, None)
        if pending is None:
            return False
        if pending.handle is not None:
            self._scheduler.cancel(pending.handle)
        return True

    def _on_timer(self, key: str, pending: _PendingFade) -> None:
        # A superseded or cancelled timer must not remove anything
        if self._pending.get(key) is not pending:
            return
        del self._pending[key]
        self._on_expire(key)
