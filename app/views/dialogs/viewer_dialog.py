"""Full-screen photo viewer bound to the page session's `ViewerVM`."""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent, QPixmap
from PySide6.QtWidgets import QDialog, QLabel, QScrollArea, QVBoxLayout, QWidget

from app.viewmodels.main_vm import MainVM
from app.views.image_tasks import ImageTaskRunner
from app.views.widgets.gallery_grid import key_name
from core.models import MAX_RATING


class ViewerDialog(QDialog):
    """Shows one photo at a time; keys are routed to `MainVM.viewer_key`."""

    def __init__(self, vm: MainVM, runner: ImageTaskRunner, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._vm = vm
        self._runner = runner
        self._token: str | None = None
        self._pm: QPixmap | None = None

        self.setWindowTitle("Viewer")
        self.setModal(True)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._area = QScrollArea()
        self._area.setAlignment(Qt.AlignCenter)
        self._area.setWidgetResizable(True)
        self._image = QLabel("Loading…")
        self._image.setAlignment(Qt.AlignCenter)
        self._area.setWidget(self._image)
        layout.addWidget(self._area, 1)

        self._info = QLabel()
        self._info.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._info)

        self._show_current()

    def _show_current(self) -> None:
        viewer = self._vm.viewer
        photo = viewer.current_photo if viewer is not None else None
        if photo is None:
            self.accept()
            return
        stars = "★" * photo.rating + "☆" * (MAX_RATING - photo.rating)
        flag = "Rejected" if photo.is_rejected else ("Picked" if photo.is_picked else "")
        position = f"{viewer.index + 1} / {len(viewer.photos)}"
        fading = "  (removing…)" if self._vm.fades.is_fading(photo.key) else ""
        self._info.setText(f"{photo.file_path}   {stars}   {flag}   {position}{fading}")
        self._image.setText("Loading…")
        self._pm = None
        self._token = self._runner.request_preview(photo.file_path, 0)
        neighbours = (viewer.index - 1, viewer.index + 1)
        self._runner.prefetch_previews(
            viewer.photos[i].file_path for i in neighbours if 0 <= i < len(viewer.photos)
        )

    def refresh(self) -> None:
        if self._vm.viewer is None:
            self.accept()
            return
        self._show_current()

    def on_image_loaded(self, token: str, path: str, image: Any) -> None:
        if token != self._token:
            return
        if image is None:
            self._image.setText("(failed)")
            return
        self._pm = QPixmap.fromImage(image)
        self._apply_fit()

    def _apply_fit(self) -> None:
        if self._pm is None or self._pm.isNull():
            return
        viewer = self._vm.viewer
        if viewer is not None and viewer.is_zoomed:
            self._image.setPixmap(self._pm)
            return
        vp = self._area.viewport()
        self._image.setPixmap(
            self._pm.scaled(vp.width(), vp.height(), Qt.KeepAspectRatio, Qt.SmoothTransformation)
        )

    # Qt events
    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        name = key_name(event)
        if name and self._vm.viewer_key(name):
            event.accept()
            return
        super().keyPressEvent(event)

    def mouseDoubleClickEvent(self, event) -> None:  # type: ignore[override]
        if self._vm.viewer is not None:
            self._vm.viewer.toggle_zoom()
            self._apply_fit()
        super().mouseDoubleClickEvent(event)

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self._apply_fit()

    def reject(self) -> None:  # type: ignore[override]
        if self._vm.viewer is not None:
            self._vm.close_viewer()
        super().reject()
