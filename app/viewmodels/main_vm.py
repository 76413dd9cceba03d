"""ViewModel for one gallery page session.

Owns the page's working set (photos, overlays, selection, fading photos)
and mediates between user input, the navigation engine and the external
page-fetch and curation collaborators.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from app.viewmodels.group_vm import GroupVM
from app.viewmodels.photo_vm import PhotoVM
from app.viewmodels.viewer_vm import ViewerVM
from core.models import (
    NO_FILTERS,
    VIEW_CONFIGS,
    CurateAction,
    FilterOptions,
    Photo,
    PhotoFilters,
    PhotoPage,
    ViewMode,
    curation_fields,
)
from core.rules.fade_rules import belongs_to_view, should_fade
from core.services.fade_tracker import DEFAULT_FADE_MS, FadeTracker
from core.services.index_mapper import GalleryIndex
from core.services.interfaces import (
    CurateRequest,
    CurateResult,
    ICurationRunner,
    INotifier,
    IPageSource,
    IScheduler,
    PageFetchError,
)
from core.services.navigation_service import Direction, NavigationEngine
from core.services.selection_service import Modifiers
from core.services.shortcuts import Shortcut, parse_shortcut

DEFAULT_PAGE_SIZE = 100
NO_MATCHES_TITLE = "No matches"
NO_MATCHES_DESCRIPTION = "Try adjusting your filters."

_DIRECTIONS = {
    Shortcut.LEFT: Direction.LEFT,
    Shortcut.RIGHT: Direction.RIGHT,
    Shortcut.UP: Direction.UP,
    Shortcut.DOWN: Direction.DOWN,
}


class MainVM:
    """Main page-session view-model.

    Views subscribe with `subscribe(callback)`; the callback receives a short
    topic string ("page", "selection", "photos", "viewer", "loading", "error").
    """

    def __init__(
        self,
        page_source: IPageSource,
        curation_runner: ICurationRunner,
        notifier: INotifier | None,
        scheduler: IScheduler,
        mode: ViewMode = ViewMode.CURATE,
        page_size: int = DEFAULT_PAGE_SIZE,
        fade_ms: int = DEFAULT_FADE_MS,
    ) -> None:
        """Create a MainVM.

        Args:
            page_source: Supplies pages of photos with overlays.
            curation_runner: Dispatches curation mutations.
            notifier: Non-fatal user notifications; may be attached later
                by assigning `notifier`.
            scheduler: Timer port used for fade countdowns.
            mode: Initial view mode.
            page_size: Photos per page.
            fade_ms: Undo window before a curated photo leaves the view.
        """
        self._source = page_source
        self._runner = curation_runner
        self.notifier = notifier
        self._page_size = max(1, int(page_size))
        self._listeners: list[Callable[[str], None]] = []

        self._mode = mode
        self._config = VIEW_CONFIGS[mode]
        self.engine = NavigationEngine(self._config.capabilities)
        self.fades = FadeTracker(scheduler, self._on_fade_expired, fade_ms)

        self.filters: PhotoFilters = NO_FILTERS
        self.photos: list[Photo] = []
        self.page: PhotoPage | None = None
        self.offset = 0
        self.viewer: ViewerVM | None = None
        self.error: str | None = None
        self.is_loading = False
        self._in_flight = 0
        # Curated photo key -> key the cursor auto-advanced to
        self._advanced: dict[str, str] = {}

    # Observers
    def subscribe(self, callback: Callable[[str], None]) -> None:
        self._listeners.append(callback)

    def _emit(self, topic: str) -> None:
        for callback in list(self._listeners):
            callback(topic)

    def _notify(self, message: str, duration_ms: int = 3000) -> None:
        if self.notifier is None:
            logger.warning("No notifier attached; dropped message: {}", message)
            return
        self.notifier.notify(message, duration_ms)

    # Properties
    @property
    def mode(self) -> ViewMode:
        return self._mode

    @property
    def config(self):
        return self._config

    @property
    def gallery(self) -> GalleryIndex:
        return self.engine.gallery

    @property
    def selected_indices(self) -> set[int]:
        return self.engine.selection.indices

    @property
    def is_curating(self) -> bool:
        return self._in_flight > 0

    @property
    def has_next(self) -> bool:
        return self.page is not None and self.page.has_next

    @property
    def has_prev(self) -> bool:
        return self.offset > 0

    def photo_at(self, index: int) -> Photo | None:
        return self.photos[index] if 0 <= index < len(self.photos) else None

    def index_of(self, key: str) -> int | None:
        for i, photo in enumerate(self.photos):
            if photo.key == key:
                return i
        return None

    def is_fading_index(self, index: int) -> bool:
        photo = self.photo_at(index)
        return photo is not None and self.fades.is_fading(photo.key)

    # Page loading
    def set_mode(self, mode: ViewMode) -> None:
        """Switch to another view and load its first page."""
        if mode is self._mode and self.page is not None:
            return
        self._mode = mode
        self._config = VIEW_CONFIGS[mode]
        self.engine.capabilities = self._config.capabilities
        self.load_page(0)

    def load_page(self, offset: int | None = None) -> bool:
        """Fetch the page at `offset` and replace the working set.

        On failure the previous page stays in place and the error is reported.
        """
        offset = self.offset if offset is None else max(0, int(offset))
        caps = self._config.capabilities
        self.is_loading = True
        self._emit("loading")
        try:
            page = self._source.fetch_page(
                self._mode,
                offset,
                self._page_size,
                with_groups=caps.has_groups or caps.has_bursts,
                filters=self.filters if self.filters.is_active else None,
            )
        except PageFetchError as ex:
            logger.error("Load page failed (mode={}, offset={}): {}", self._mode.value, offset, ex)
            self.error = str(ex)
            self._notify(f"Failed to load photos: {ex}")
            self._emit("error")
            return False
        finally:
            self.is_loading = False

        self.fades.clear()
        self._advanced.clear()
        self.viewer = None
        self.page = page
        self.photos = list(page.photos)
        self.offset = page.offset
        self.error = None
        gallery = GalleryIndex(
            photo_count=len(self.photos),
            groups=page.groups if caps.has_groups else [],
            bursts=page.bursts if caps.has_bursts else [],
        )
        self.engine.reset(gallery, self._config.initial_selected_index)
        logger.info(
            "Loaded {} page at offset {}: {} photos, {} groups, {} bursts",
            self._mode.value,
            self.offset,
            len(self.photos),
            len(gallery.groups),
            len(gallery.bursts),
        )
        self._emit("page")
        return True

    def next_page(self) -> bool:
        if not self.has_next:
            return False
        # Curated photos no longer in the listing do not count towards the offset
        listed = sum(
            1
            for p in self.photos
            if belongs_to_view(self._mode, p.is_curated, p.is_trashed) and self.filters.matches(p)
        )
        return self.load_page(self.offset + listed)

    def prev_page(self) -> bool:
        if not self.has_prev:
            return False
        return self.load_page(max(0, self.offset - self._page_size))

    # Filters
    @property
    def has_filters(self) -> bool:
        return self.filters.is_active

    def set_filters(self, filters: PhotoFilters | None) -> bool:
        """Apply `filters` (None clears them) and reload from the first page."""
        filters = filters or NO_FILTERS
        if filters == self.filters and self.page is not None:
            return False
        previous, self.filters = self.filters, filters
        logger.info("Applying {} filter value(s)", filters.active_count)
        if not self.load_page(0):
            self.filters = previous
            return False
        return True

    @property
    def empty_state(self) -> tuple[str, str]:
        """Title and description shown when the page has no photos."""
        if self.filters.is_active:
            return NO_MATCHES_TITLE, NO_MATCHES_DESCRIPTION
        return self._config.empty_title, self._config.empty_description

    def clear_filters(self) -> bool:
        return self.set_filters(NO_FILTERS)

    def filter_options(self) -> FilterOptions:
        """Values offered by the filter menus; empty when the source cannot list them."""
        try:
            return self._source.filter_options()
        except PageFetchError as ex:
            logger.warning("Filter options unavailable: {}", ex)
            return FilterOptions()

    # Pointer input
    def click(self, index: int, modifiers: Modifiers = Modifiers.NONE) -> set[int]:
        selection = self.engine.click(index, modifiers)
        self._emit("selection")
        return selection

    def activate(self, index: int) -> ViewerVM | None:
        """Double-click: open the viewer at `index` without touching the selection."""
        return self.open_viewer(index)

    def toggle_group(self, group_index: int) -> bool:
        selected = self.engine.toggle_group(group_index)
        self._emit("selection")
        return selected

    def toggle_burst(self, burst_id: str) -> bool:
        expanded = self.engine.toggle_burst(burst_id)
        self._emit("page")
        return expanded

    def clear_selection(self) -> None:
        self.engine.selection.clear()
        self._emit("selection")

    # Keyboard input
    def handle_key(self, key: str, columns: int, in_text_input: bool = False) -> bool:
        """Handle a grid key press; return True when it was consumed.

        Keys are ignored while typing in a text field, while the viewer is
        open (it handles its own keys), and while the current photo is fading.
        """
        if in_text_input or self.viewer is not None:
            return False
        binding = parse_shortcut(key)
        if binding is None:
            return False

        if binding.shortcut is Shortcut.NEXT_PAGE:
            return self.next_page()
        if binding.shortcut is Shortcut.PREV_PAGE:
            return self.prev_page()
        if not self.photos:
            return False

        if binding.shortcut is Shortcut.CURATE and binding.action is not None:
            return self.curate(binding.action, binding.rating)

        current = self.engine.current
        if current is None or self.is_fading_index(current):
            return False
        if binding.shortcut in _DIRECTIONS:
            self.engine.move(_DIRECTIONS[binding.shortcut], columns)
            self._emit("selection")
            return True
        if binding.shortcut is Shortcut.OPEN:
            self.open_viewer(current)
            return True
        return False

    # Viewer
    def open_viewer(self, index: int) -> ViewerVM | None:
        if not 0 <= index < len(self.photos):
            return None
        self.viewer = ViewerVM(
            self.photos, index, on_curate=self.curate_photo, is_fading=self.fades.is_fading
        )
        self._emit("viewer")
        return self.viewer

    def viewer_key(self, key: str) -> bool:
        """Route a key press to the open viewer."""
        viewer = self.viewer
        if viewer is None:
            return False
        handled = viewer.handle_key(key)
        if self.viewer is not viewer:
            # An inline curation result already closed it
            return handled
        if not viewer.is_open:
            self.close_viewer()
        elif handled:
            self._emit("viewer")
        return handled

    def close_viewer(self) -> None:
        self.viewer = None
        self._emit("viewer")

    # Curation
    def curate(self, action: CurateAction, rating: int | None = None) -> bool:
        """Curate the selection, then auto-advance when exactly one photo is selected.

        The advance happens right away and is rolled back if the mutation
        fails. Ignored while the single current photo is fading out.
        """
        current = self.engine.current
        if current is not None and self.is_fading_index(current):
            return False
        keys = self._curatable_keys()
        if not keys:
            return False
        if current is not None:
            self._advance_past(keys[0])
        for key in keys:
            self.curate_photo(key, action, rating)
        return True

    def _curatable_keys(self) -> list[str]:
        """Keys of selected photos that are not fading, in selection order."""
        keys: list[str] = []
        for i in self.engine.selection.ordered:
            photo = self.photo_at(i)
            if photo is not None and not self.fades.is_fading(photo.key):
                keys.append(photo.key)
        return keys

    def _advance_past(self, key: str) -> None:
        if self.engine.advance() is None:
            return
        landed = self.photo_at(self.engine.current)
        if landed is not None:
            self._advanced[key] = landed.key
        self._emit("selection")

    def _rollback_advance(self, key: str) -> None:
        landed = self._advanced.pop(key, None)
        if landed is None:
            return
        current = self.engine.current
        photo = self.photo_at(current) if current is not None else None
        if photo is None or photo.key != landed:
            # The user moved on since the advance
            return
        idx = self.index_of(key)
        if idx is None:
            return
        logger.debug("Moving selection back to {} after failed curation", key)
        self.engine.selection.select_only(self.gallery.to_visible(idx))
        self._emit("selection")

    def curate_photo(self, key: str, action: CurateAction, rating: int | None = None) -> bool:
        """Submit one curation request; each request succeeds or fails on its own."""
        idx = self.index_of(key)
        if idx is None:
            logger.warning("Curate requested for unknown photo {}", key)
            return False
        photo = self.photos[idx]
        is_curated, is_trashed, new_rating = curation_fields(action, photo.rating, rating)
        request = CurateRequest(
            photo_key=key,
            is_curated=is_curated,
            is_trashed=is_trashed,
            rating=new_rating,
            action=action,
        )
        self._in_flight += 1
        logger.debug("Submitting {} for {}", action.value, key)
        self._runner.submit(request, self._on_curate_done)
        return True

    def _on_curate_done(self, result: CurateResult) -> None:
        self._in_flight = max(0, self._in_flight - 1)
        request = result.request
        viewer = self.viewer
        if viewer is not None:
            viewer.on_curate_result(request.photo_key, result.success)
            if not viewer.is_open:
                self.close_viewer()
        if not result.success:
            logger.error("Curation failed for {}: {}", request.photo_key, result.error)
            self._rollback_advance(request.photo_key)
            self._notify("Failed to update photo", 3000)
            self._emit("photos")
            return
        self._advanced.pop(request.photo_key, None)

        idx = self.index_of(request.photo_key)
        if idx is None:
            logger.debug("Dropping curation result for photo no longer on page: {}", request.photo_key)
            return
        photo = self.photos[idx]
        photo.is_curated = request.is_curated
        photo.is_trashed = request.is_trashed
        photo.rating = request.rating
        logger.info(
            "Curated {}: curated={} trashed={} rating={}",
            request.photo_key,
            request.is_curated,
            request.is_trashed,
            request.rating,
        )
        if should_fade(self._mode, request.action, request.is_curated, request.is_trashed):
            self.fades.start(request.photo_key)
        self._emit("photos")

    def undo(self, key: str) -> bool:
        """Cancel the pending removal of a fading photo; the curation stays applied."""
        undone = self.fades.undo(key)
        if undone:
            self._emit("photos")
        return undone

    def _on_fade_expired(self, key: str) -> None:
        idx = self.index_of(key)
        if idx is None:
            return
        del self.photos[idx]
        self.engine.remove_index(idx)
        if self.page is not None:
            self.page.total_records = max(0, self.page.total_records - 1)
            self.page.page_end_record = max(0, self.page.page_end_record - 1)
        if (
            len(self.engine.selection) == 0
            and self._config.initial_selected_index is not None
            and self.photos
        ):
            self.engine.selection.select_only(self.gallery.to_visible(min(idx, len(self.photos) - 1)))
        if self.viewer is not None:
            self.viewer.on_photo_removed(idx)
            if not self.viewer.is_open:
                self.viewer = None
        logger.info("Removed faded photo {} at index {}", key, idx)
        self._emit("page")

    # Rendering helpers
    def _tiles(self, start: int, end: int) -> list[PhotoVM]:
        selected = self.engine.selection.indices
        tiles: list[PhotoVM] = []
        for item in self.gallery.render_range(start, end):
            photo = self.photos[item.index]
            tiles.append(
                PhotoVM(
                    record=photo,
                    item=item,
                    is_selected=item.index in selected,
                    is_fading=self.fades.is_fading(photo.key),
                )
            )
        return tiles

    def render_group(self, group_index: int) -> GroupVM | None:
        """Return one group's header data and visible tiles, or None if it is empty."""
        bounds = self.gallery.group_range(group_index)
        if bounds is None or bounds[1] <= bounds[0]:
            return None
        start, end = bounds
        return GroupVM(
            group_index=group_index,
            start=start,
            end=end,
            group=self.gallery.groups[group_index],
            items=self._tiles(start, end),
            is_fully_selected=self.engine.group_fully_selected(group_index),
        )

    def sections(self) -> list[GroupVM]:
        """Return the page as on-screen sections of visible tiles."""
        n = len(self.photos)
        if not self.engine.grouped:
            return [GroupVM(group_index=None, start=0, end=n, items=self._tiles(0, n))]

        sections: list[GroupVM] = []
        covered = 0
        for group_index in range(len(self.gallery.groups)):
            section = self.render_group(group_index)
            if section is None:
                continue
            sections.append(section)
            covered = section.end
        if covered < n:
            sections.append(
                GroupVM(group_index=None, start=covered, end=n, items=self._tiles(covered, n))
            )
        return sections

    # Teardown
    def close(self) -> None:
        """Cancel pending fades and drop the viewer (component teardown)."""
        self.fades.clear()
        self.viewer = None
