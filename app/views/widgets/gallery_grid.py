"""Scrollable grouped photo grid bound to a `MainVM`."""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QKeyEvent, QPixmap
from PySide6.QtWidgets import (
    QCheckBox,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)
from loguru import logger

from app.viewmodels.group_vm import GroupVM
from app.viewmodels.main_vm import MainVM
from app.views.constants import (
    DEFAULT_THUMB_SIZE,
    GRID_MARGIN_PX,
    GRID_MIN_TILE_PX,
    GRID_SPACING_PX,
    KEY_NAMES,
)
from app.views.image_tasks import ImageTaskRunner
from app.views.widgets.photo_tile import PhotoTile
from core.services.selection_service import Modifiers


def to_modifiers(qt_modifiers: Any) -> Modifiers:
    """Translate Qt keyboard modifiers to gallery click modifiers."""
    result = Modifiers.NONE
    if qt_modifiers & Qt.ShiftModifier:
        result |= Modifiers.SHIFT
    if qt_modifiers & Qt.ControlModifier:
        result |= Modifiers.CTRL
    if qt_modifiers & Qt.MetaModifier:
        result |= Modifiers.META
    return result


def key_name(event: QKeyEvent) -> str:
    return KEY_NAMES.get(int(event.key()), event.text())


class GroupHeader(QWidget):
    """Section header: time span, location, count and a select-all toggle."""

    def __init__(self, section: GroupVM, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        row = QHBoxLayout(self)
        row.setContentsMargins(0, 8, 0, 2)
        title = QLabel(f"<b>{section.title}</b>")
        row.addWidget(title)
        if section.location:
            row.addWidget(QLabel(section.location))
        row.addWidget(QLabel(section.count_label))
        row.addStretch(1)
        self.select_all = QCheckBox("Select all")
        self.select_all.setFocusPolicy(Qt.NoFocus)
        self.select_all.setChecked(section.is_fully_selected)
        row.addWidget(self.select_all)


class GalleryGrid(QScrollArea):
    """Grid of tiles split into group sections.

    Column count comes from the live viewport width and is passed to the
    view-model on every key press.
    """

    def __init__(
        self,
        vm: MainVM,
        runner: ImageTaskRunner,
        thumb_size: int | None = None,
        min_tile_px: int | None = None,
        spacing_px: int | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._vm = vm
        self._runner = runner
        self._thumb_size = int(thumb_size or DEFAULT_THUMB_SIZE)
        self._min_tile = max(48, int(min_tile_px or GRID_MIN_TILE_PX))
        self._spacing = max(0, int(spacing_px if spacing_px is not None else GRID_SPACING_PX))

        self.setWidgetResizable(True)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAsNeeded)
        self.setFocusPolicy(Qt.StrongFocus)

        self._tiles: dict[int, PhotoTile] = {}
        self._headers: dict[int, GroupHeader] = {}
        self._labels: dict[str, PhotoTile] = {}
        self._columns = 0

        # Coalesce bursts of resize events into one relayout
        self._relayout_timer = QTimer(self)
        self._relayout_timer.setSingleShot(True)
        self._relayout_timer.setInterval(80)
        self._relayout_timer.timeout.connect(self._on_resized)

        vm.subscribe(self._on_vm_changed)
        self.rebuild()

    # Geometry
    def columns(self) -> int:
        width = max(1, self.viewport().width() - 2 * GRID_MARGIN_PX)
        return max(1, (width + self._spacing) // (self._min_tile + self._spacing))

    def _tile_side(self, cols: int) -> int:
        width = max(1, self.viewport().width() - 2 * GRID_MARGIN_PX)
        cell = (width - self._spacing * (cols - 1)) // cols
        return max(self._min_tile - 8, min(cell - 8, self._thumb_size))

    # Building
    def rebuild(self) -> None:
        self._tiles.clear()
        self._headers.clear()
        self._labels.clear()
        container = QWidget()
        root = QVBoxLayout(container)
        root.setContentsMargins(GRID_MARGIN_PX, GRID_MARGIN_PX, GRID_MARGIN_PX, GRID_MARGIN_PX)
        root.setSpacing(4)

        if not self._vm.photos:
            title, description = self._vm.empty_state
            empty = QLabel(f"<h3>{title}</h3><p>{description}</p>")
            empty.setAlignment(Qt.AlignCenter)
            root.addWidget(empty, 1)
            self.setWidget(container)
            return

        cols = self.columns()
        side = self._tile_side(cols)
        self._columns = cols
        for section in self._vm.sections():
            if section.group_index is not None:
                header = GroupHeader(section)
                group_index = section.group_index
                header.select_all.clicked.connect(
                    lambda _checked=False, g=group_index: self._vm.toggle_group(g)
                )
                self._headers[group_index] = header
                root.addWidget(header)
            grid = QGridLayout()
            grid.setSpacing(self._spacing)
            for i, photo_vm in enumerate(section.items):
                r, c = divmod(i, cols)
                tile = PhotoTile(photo_vm, side)
                tile.clicked.connect(self._on_tile_clicked)
                tile.doubleClicked.connect(self._vm.activate)
                tile.burstToggled.connect(self._vm.toggle_burst)
                tile.undoRequested.connect(self._vm.undo)
                grid.addWidget(tile, r, c, Qt.AlignLeft | Qt.AlignTop)
                self._tiles[photo_vm.index] = tile
                token = self._runner.request_grid_thumbnail(photo_vm.key, side)
                self._labels[token] = tile
            grid.setColumnStretch(cols, 1)
            root.addLayout(grid)
        root.addStretch(1)
        self.setWidget(container)
        self._scroll_to_current()

    def refresh_state(self) -> None:
        """Restyle tiles and headers without rebuilding the grid."""
        selected = self._vm.selected_indices
        for index, tile in self._tiles.items():
            tile.apply_state(index in selected, self._vm.is_fading_index(index))
        for group_index, header in self._headers.items():
            header.select_all.setChecked(self._vm.engine.group_fully_selected(group_index))
        self._scroll_to_current()

    def _scroll_to_current(self) -> None:
        current = self._vm.engine.current
        tile = self._tiles.get(current) if current is not None else None
        if tile is not None:
            self.ensureWidgetVisible(tile, 0, GRID_MARGIN_PX * 4)

    # View-model events
    def _on_vm_changed(self, topic: str) -> None:
        if topic == "page":
            # Deferred: the emitting tile may be the one being replaced
            QTimer.singleShot(0, self.rebuild)
        elif topic in ("selection", "photos"):
            self.refresh_state()

    def on_image_loaded(self, token: str, path: str, image: Any) -> None:
        tile = self._labels.get(token)
        if tile is None:
            return
        if image is None:
            logger.debug("Thumbnail missing for {}", path)
            tile.set_image(None)
            return
        tile.set_image(QPixmap.fromImage(image))

    # Input
    def _on_tile_clicked(self, index: int, qt_modifiers: Any) -> None:
        self.setFocus(Qt.MouseFocusReason)
        self._vm.click(index, to_modifiers(qt_modifiers))

    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        name = key_name(event)
        if name and self._vm.handle_key(name, self.columns()):
            event.accept()
            return
        super().keyPressEvent(event)

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self._relayout_timer.start()

    def _on_resized(self) -> None:
        if self._vm.photos and self.columns() != self._columns:
            self.rebuild()
