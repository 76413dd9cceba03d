"""MainWindow: gallery grid, menus, status bar and viewer wiring.

All decisions are delegated to `MainVM`; this module only translates Qt
events into view-model calls and view-model topics into widget updates.
"""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import Signal
from PySide6.QtWidgets import QLabel, QMainWindow
from loguru import logger

from app.viewmodels.main_vm import MainVM
from app.views.components.filter_menu import FilterMenu
from app.views.components.menu_controller import MenuController
from app.views.constants import (
    DEFAULT_THUMB_SIZE,
    GRID_MIN_TILE_PX,
    GRID_SPACING_PX,
    VIEW_MODE_TITLES,
)
from app.views.dialogs.viewer_dialog import ViewerDialog
from app.views.image_tasks import ImageKind, ImageTaskRunner, token_kind
from app.views.qt_adapters import StatusReporterImpl
from app.views.widgets.gallery_grid import GalleryGrid
from core.models import MAX_RATING, CurateAction, ViewMode
from infrastructure.logging import open_latest_log, open_log_directory


class MainWindow(QMainWindow):
    """Main application window."""

    # Thumbnail/preview completion from ImageTaskRunner
    imageLoaded = Signal(str, str, object)  # token, path, QImage

    def __init__(
        self,
        vm: MainVM,
        image_service: Any | None = None,
        settings: Any | None = None,
        log_dir: str | None = None,
    ) -> None:
        """Initialize MainWindow with its services.

        Args:
            vm: Page-session view-model
            image_service: Image service for thumbnails and previews
            settings: Settings instance for grid configuration
            log_dir: Directory backing the Log menu
        """
        super().__init__()
        self._vm = vm
        self._img = image_service
        self._settings = settings
        self._log_dir = log_dir
        self._viewer_dialog: ViewerDialog | None = None

        self.status_reporter = StatusReporterImpl(self)
        self._vm.notifier = self.status_reporter

        self._setup_ui()
        self._connect_signals()
        self.statusBar().showMessage("Ready", 3000)

    def _setting_int(self, key: str, default: int) -> int:
        if self._settings is None:
            return default
        try:
            return int(self._settings.get(key, default) or default)
        except (TypeError, ValueError):
            logger.warning("Invalid setting {}; using {}", key, default)
            return default

    def _setup_ui(self) -> None:
        self.setWindowTitle("Photo Gallery")
        self.resize(1280, 860)

        self._runner = ImageTaskRunner(service=self._img, receiver=self)
        self.grid = GalleryGrid(
            self._vm,
            self._runner,
            thumb_size=self._setting_int("thumbnail_size", DEFAULT_THUMB_SIZE),
            min_tile_px=self._setting_int("grid.min_tile_px", GRID_MIN_TILE_PX),
            spacing_px=self._setting_int("grid.spacing_px", GRID_SPACING_PX),
        )
        self.setCentralWidget(self.grid)

        self._page_label = QLabel()
        self.statusBar().addPermanentWidget(self._page_label)

        self.menu_controller = MenuController(self)
        self.filter_menu = FilterMenu(self._vm, self)
        self.menu_controller.setup_menus(filter_menu=self.filter_menu)
        self.menu_controller.set_mode(self._vm.mode)

    def _connect_signals(self) -> None:
        handlers = {
            "reload": lambda: self._vm.load_page(),
            "exit": self.close,
            "mode": self.on_mode_selected,
            "pick": lambda: self.on_curate(CurateAction.PICK),
            "reject": lambda: self.on_curate(CurateAction.REJECT),
            "unflag": lambda: self.on_curate(CurateAction.UNFLAG),
            "prev_page": self._vm.prev_page,
            "next_page": self._vm.next_page,
            "open_latest_log": self.on_open_latest_log,
            "open_log_directory": lambda: open_log_directory(self._log_dir),
        }
        for stars in range(1, MAX_RATING + 1):
            handlers[f"rate_{stars}"] = lambda _=False, s=stars: self.on_curate(
                CurateAction.RATE, s
            )
        self.menu_controller.connect_actions(handlers)

        self.imageLoaded.connect(self._on_image_loaded)
        self._vm.subscribe(self._on_vm_changed)
        self._update_page_state()

    # Menu handlers
    def on_mode_selected(self, mode: ViewMode) -> None:
        logger.info("Switching view to {}", mode.value)
        self._vm.set_mode(mode)
        self.grid.setFocus()

    def on_curate(self, action: CurateAction, rating: int | None = None) -> None:
        if self._vm.viewer is not None:
            return
        if not self._vm.curate(action, rating):
            self.status_reporter.notify("Nothing to update", 2000)

    def on_open_latest_log(self) -> None:
        if not open_latest_log(self._log_dir):
            self.status_reporter.notify("No log file found", 3000)

    # View-model events
    def _on_vm_changed(self, topic: str) -> None:
        if topic == "viewer":
            self._sync_viewer()
        elif topic in ("page", "photos", "error"):
            self._update_page_state()
            if self._viewer_dialog is not None:
                self._sync_viewer()

    def _sync_viewer(self) -> None:
        if self._vm.viewer is None:
            dlg, self._viewer_dialog = self._viewer_dialog, None
            if dlg is not None and dlg.isVisible():
                dlg.accept()
            self.grid.setFocus()
            return
        if self._viewer_dialog is None:
            self._viewer_dialog = ViewerDialog(self._vm, self._runner, self)
            self._viewer_dialog.showMaximized()
        else:
            self._viewer_dialog.refresh()

    def _update_page_state(self) -> None:
        page = self._vm.page
        title = VIEW_MODE_TITLES.get(self._vm.mode.value, self._vm.mode.value)
        self.setWindowTitle(f"Photo Gallery - {title}")
        self.filter_menu.refresh_title()
        if page is None or page.total_records == 0:
            self._page_label.setText("No matches" if self._vm.has_filters else "No photos")
        else:
            self._page_label.setText(
                f"{page.page_start_record}-{page.page_end_record} of {page.total_records}"
            )
        self.menu_controller.enable_action("prev_page", self._vm.has_prev)
        self.menu_controller.enable_action("next_page", self._vm.has_next)

    def _on_image_loaded(self, token: str, path: str, image: Any) -> None:
        if token_kind(token) is ImageKind.VIEWER:
            if self._viewer_dialog is not None:
                self._viewer_dialog.on_image_loaded(token, path, image)
            return
        self.grid.on_image_loaded(token, path, image)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._vm.close()
        event.accept()
