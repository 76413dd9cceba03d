"""FilterMenu: the Filter menu bound to the page session's filters."""

from __future__ import annotations

from dataclasses import replace

from PySide6.QtGui import QAction, QActionGroup
from PySide6.QtWidgets import QMenu, QWidget
from loguru import logger

from app.viewmodels.main_vm import MainVM
from core.models import MAX_RATING, MediaType, Orientation

MEDIA_TYPE_LABELS = {
    MediaType.ALL: "All",
    MediaType.PHOTOS: "Photos only",
    MediaType.VIDEOS: "Videos only",
}

ORIENTATION_LABELS = {
    Orientation.ALL: "All",
    Orientation.LANDSCAPE: "Landscape",
    Orientation.PORTRAIT: "Portrait",
    Orientation.SQUARE: "Square",
}

# PhotoFilters field (same name on FilterOptions) -> submenu title
VALUE_MENUS = {
    "years": "Year",
    "camera_makes": "Camera Make",
    "camera_models": "Camera Model",
    "countries": "Country",
    "states": "State",
    "cities": "City",
    "file_formats": "File Format",
}


def toggled(values: tuple, value) -> tuple:
    """Return `values` with `value` added or removed, keeping order."""
    if value in values:
        return tuple(v for v in values if v != value)
    return (*values, value)


class FilterMenu(QMenu):
    """Checkable filter choices; value lists are rebuilt each time the menu opens."""

    def __init__(self, vm: MainVM, parent: QWidget | None = None) -> None:
        super().__init__("Filter", parent)
        self._vm = vm
        self._submenus: list[QMenu] = []
        self.aboutToShow.connect(self.rebuild)
        self.rebuild()

    def refresh_title(self) -> None:
        count = self._vm.filters.active_count
        self.setTitle(f"Filter ({count})" if count else "Filter")

    def _apply(self, **changes) -> None:
        filters = replace(self._vm.filters, **changes)
        logger.debug("Filter change: {}", changes)
        self._vm.set_filters(filters)

    def _exclusive(self, title: str, labels: dict, current, field: str) -> None:
        menu = self.addMenu(title)
        self._submenus.append(menu)
        group = QActionGroup(menu)
        group.setExclusive(True)
        for value, label in labels.items():
            action = menu.addAction(label)
            action.setCheckable(True)
            action.setChecked(value is current)
            group.addAction(action)
            action.triggered.connect(lambda _=False, v=value: self._apply(**{field: v}))

    def _checklist(self, title: str, field: str, choices: list, labels=None) -> None:
        menu = self.addMenu(title)
        self._submenus.append(menu)
        selected = getattr(self._vm.filters, field)
        if not choices:
            empty = menu.addAction("(none)")
            empty.setEnabled(False)
            return
        for value in choices:
            action: QAction = menu.addAction(labels(value) if labels else str(value))
            action.setCheckable(True)
            action.setChecked(value in selected)
            action.triggered.connect(
                lambda _=False, v=value: self._apply(
                    **{field: toggled(getattr(self._vm.filters, field), v)}
                )
            )

    def rebuild(self) -> None:
        self.clear()
        for menu in self._submenus:
            menu.deleteLater()
        self._submenus = []
        filters = self._vm.filters
        self.refresh_title()

        self._exclusive("Media Type", MEDIA_TYPE_LABELS, filters.media_type, "media_type")
        self._exclusive("Orientation", ORIENTATION_LABELS, filters.orientation, "orientation")
        self._checklist(
            "Rating",
            "ratings",
            list(range(MAX_RATING + 1)),
            labels=lambda r: "Unrated" if r == 0 else "★" * r,
        )

        options = self._vm.filter_options()
        for field, title in VALUE_MENUS.items():
            self._checklist(title, field, getattr(options, field))

        self.addSeparator()
        clear = self.addAction("Clear Filters")
        clear.setEnabled(filters.is_active)
        clear.triggered.connect(self._vm.clear_filters)
