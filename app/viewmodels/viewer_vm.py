"""ViewModel for the full-screen viewer opened over a gallery page."""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from core.models import CurateAction, Photo
from core.services.shortcuts import Shortcut, parse_shortcut


class ViewerVM:
    """Single-photo viewer with its own copy of the curation shortcuts.

    The viewer shares the page's photo list but keeps its own current index;
    closing it leaves the grid selection untouched.
    """

    def __init__(
        self,
        photos: list[Photo],
        index: int,
        on_curate: Callable[[str, CurateAction, int | None], None],
        is_fading: Callable[[str], bool] | None = None,
    ) -> None:
        """Create a viewer.

        Args:
            photos: The page's photo list (shared, not copied).
            index: Flat index to open at; clamped into range.
            on_curate: Callback `(photo_key, action, rating)` routed to the
                page session's curation path.
            is_fading: Predicate telling whether a photo is fading out.
        """
        self.photos = photos
        self.index = max(0, min(len(photos) - 1, int(index))) if photos else 0
        self.is_open = bool(photos)
        self.is_zoomed = False
        self._on_curate = on_curate
        self._is_fading = is_fading or (lambda _key: False)
        # Curated key -> key advanced to, or None when curated at the last photo
        self._advanced: dict[str, str | None] = {}

    @property
    def current_photo(self) -> Photo | None:
        if not self.is_open or not 0 <= self.index < len(self.photos):
            return None
        return self.photos[self.index]

    def close(self) -> None:
        self.is_open = False

    def toggle_zoom(self) -> None:
        photo = self.current_photo
        if photo is not None and not photo.is_video:
            self.is_zoomed = not self.is_zoomed

    def go_next(self) -> bool:
        if self.index < len(self.photos) - 1:
            self.index += 1
            self.is_zoomed = False
            return True
        return False

    def go_prev(self) -> bool:
        if self.index > 0:
            self.index -= 1
            self.is_zoomed = False
            return True
        return False

    def handle_key(self, key: str) -> bool:
        """Handle a key press; return True when it was consumed."""
        if not self.is_open:
            return False
        binding = parse_shortcut(key)
        if binding is None:
            return False
        if binding.shortcut is Shortcut.CLOSE:
            self.close()
            return True
        if binding.shortcut is Shortcut.LEFT:
            self.go_prev()
            return True
        if binding.shortcut is Shortcut.RIGHT:
            self.go_next()
            return True
        if binding.shortcut is Shortcut.CURATE and binding.action is not None:
            photo = self.current_photo
            if photo is None or self._is_fading(photo.key):
                return True
            # Advance before submitting so a synchronous failure can step back
            if self.go_next():
                self._advanced[photo.key] = self.photos[self.index].key
            else:
                self._advanced[photo.key] = None
            self._on_curate(photo.key, binding.action, binding.rating)
            return True
        return False

    def on_curate_result(self, key: str, success: bool) -> None:
        """Settle the advance made when `key` was curated from the viewer.

        A failure steps back to the photo unless the user has moved on. Curating
        the last photo closes the viewer once the mutation succeeds.
        """
        if key not in self._advanced:
            return
        landed = self._advanced.pop(key)
        if success:
            if landed is None and self.is_open:
                logger.debug("Viewer reached the last photo; closing")
                self.close()
            return
        current = self.current_photo
        if landed is None or current is None or current.key != landed:
            return
        for i, photo in enumerate(self.photos):
            if photo.key == key:
                self.index = i
                self.is_zoomed = False
                break

    def on_photo_removed(self, index: int) -> None:
        """Keep the current photo in view after `index` was spliced out."""
        if not self.photos:
            self.close()
            return
        if index < self.index:
            self.index -= 1
        self.index = max(0, min(self.index, len(self.photos) - 1))
