"""Single gallery tile: thumbnail, caption, burst badge and undo overlay."""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QMouseEvent, QPixmap
from PySide6.QtWidgets import (
    QFrame,
    QGraphicsOpacityEffect,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from app.viewmodels.photo_vm import PhotoVM
from app.views.constants import TILE_FADING_OPACITY, TILE_IDLE_BORDER, TILE_SELECTED_BORDER


class PhotoTile(QFrame):
    """Visible tile for one photo or one collapsed burst.

    Emits flat indices and keys only; all selection decisions are made by
    the view-model.
    """

    clicked = Signal(int, object)  # index, Qt.KeyboardModifiers
    doubleClicked = Signal(int)
    burstToggled = Signal(str)
    undoRequested = Signal(str)

    def __init__(self, vm: PhotoVM, side: int, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._vm = vm
        self.setFrameShape(QFrame.NoFrame)
        self.setFocusPolicy(Qt.NoFocus)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(2, 2, 2, 2)
        layout.setSpacing(2)

        self.image_label = QLabel("Loading…")
        self.image_label.setFixedSize(side, side)
        self.image_label.setAlignment(Qt.AlignCenter)
        if vm.is_video:
            self.image_label.setStyleSheet("background-color: black; color: white;")
        layout.addWidget(self.image_label)

        footer = QHBoxLayout()
        footer.setContentsMargins(0, 0, 0, 0)
        caption = vm.file_name
        if vm.stars:
            caption = f"{caption}  {vm.stars}"
        self.caption = QLabel(caption)
        self.caption.setToolTip(vm.folder_path)
        footer.addWidget(self.caption, 1)

        self.burst_button: QToolButton | None = None
        if vm.item.burst_id is not None:
            self.burst_button = QToolButton()
            self.burst_button.setText(vm.burst_label)
            self.burst_button.setToolTip("Collapse burst" if not vm.is_stack else "Expand burst")
            self.burst_button.clicked.connect(lambda: self.burstToggled.emit(vm.item.burst_id))
            footer.addWidget(self.burst_button)
        layout.addLayout(footer)

        self.undo_button = QPushButton("Undo")
        self.undo_button.clicked.connect(lambda: self.undoRequested.emit(vm.key))
        layout.addWidget(self.undo_button)

        self._opacity = QGraphicsOpacityEffect(self)
        self.setGraphicsEffect(self._opacity)
        self.apply_state(vm.is_selected, vm.is_fading)

    @property
    def index(self) -> int:
        return self._vm.index

    @property
    def path(self) -> str:
        return self._vm.key

    def apply_state(self, is_selected: bool, is_fading: bool) -> None:
        border = TILE_SELECTED_BORDER if is_selected else TILE_IDLE_BORDER
        self.setStyleSheet(f"PhotoTile {{ border: 3px solid {border}; border-radius: 4px; }}")
        self._opacity.setOpacity(TILE_FADING_OPACITY if is_fading else 1.0)
        self.undo_button.setVisible(is_fading)
        flag = self._vm.flag
        self.caption.setStyleSheet("color: #c0392b;" if flag == "rejected" else "")

    def set_image(self, pm: QPixmap | None) -> None:
        if pm is None or pm.isNull():
            self.image_label.setText("(failed)")
            return
        self.image_label.setPixmap(
            pm.scaled(
                self.image_label.width(),
                self.image_label.height(),
                Qt.KeepAspectRatio,
                Qt.SmoothTransformation,
            )
        )

    # Qt events
    def mousePressEvent(self, event: QMouseEvent) -> None:  # type: ignore[override]
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self._vm.index, event.modifiers())
        super().mousePressEvent(event)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:  # type: ignore[override]
        # The base handler would deliver a second press and re-toggle the selection
        if event.button() == Qt.LeftButton:
            self.doubleClicked.emit(self._vm.index)
            event.accept()
            return
        super().mouseDoubleClickEvent(event)
