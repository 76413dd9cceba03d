"""MenuController: Manages menu creation and action connections."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtGui import QAction, QActionGroup, QKeySequence
from PySide6.QtWidgets import QMainWindow, QMenu, QMenuBar

from app.views.constants import VIEW_MODE_TITLES
from core.models import MAX_RATING, ViewMode


class MenuController:
    """Manages main window menu creation and action connections.

    Photo actions carry no keyboard shortcuts of their own; the grid forwards
    key presses to the view-model, which owns the shortcut table.
    """

    def __init__(self, main_window: QMainWindow) -> None:
        self.window = main_window
        self.actions: dict[str, QAction] = {}
        self._mode_group: QActionGroup | None = None

    def setup_menus(self, filter_menu: QMenu | None = None) -> dict[str, QAction]:
        """Create all menus and return action references.

        Args:
            filter_menu: Optional Filter menu placed after the View menu

        Returns:
            Dictionary mapping action names to QAction instances
        """
        menubar = QMenuBar(self.window)

        # File Menu
        file_menu = menubar.addMenu("File")
        self.actions["reload"] = file_menu.addAction("Reload")
        self.actions["reload"].setShortcut(QKeySequence.Refresh)
        file_menu.addSeparator()
        self.actions["exit"] = file_menu.addAction("Exit")

        # View Menu
        view_menu = menubar.addMenu("View")
        self._mode_group = QActionGroup(self.window)
        self._mode_group.setExclusive(True)
        for mode in ViewMode:
            action = view_menu.addAction(VIEW_MODE_TITLES.get(mode.value, mode.value.title()))
            action.setCheckable(True)
            action.setData(mode.value)
            self._mode_group.addAction(action)
            self.actions[f"mode_{mode.value}"] = action

        if filter_menu is not None:
            menubar.addMenu(filter_menu)

        # Photo Menu
        photo_menu = menubar.addMenu("Photo")
        self.actions["pick"] = photo_menu.addAction("Pick\tP")
        self.actions["reject"] = photo_menu.addAction("Reject\tX")
        self.actions["unflag"] = photo_menu.addAction("Unflag\tU")
        rate_menu = photo_menu.addMenu("Rate")
        for stars in range(1, MAX_RATING + 1):
            self.actions[f"rate_{stars}"] = rate_menu.addAction(f"{'★' * stars}\t{stars}")

        # Go Menu
        go_menu = menubar.addMenu("Go")
        self.actions["prev_page"] = go_menu.addAction("Previous Page\tK")
        self.actions["next_page"] = go_menu.addAction("Next Page\tJ")

        # Log Menu
        log_menu = menubar.addMenu("Log")
        self.actions["open_latest_log"] = log_menu.addAction("Open Latest Log")
        log_menu.addSeparator()
        self.actions["open_log_directory"] = log_menu.addAction("Open Log Directory")

        self.window.setMenuBar(menubar)
        return self.actions

    def connect_actions(self, handlers: dict[str, Callable]) -> None:
        """Connect menu actions to their handler methods.

        Args:
            handlers: Dictionary mapping action names to handler callables
        """
        for name, action in self.actions.items():
            if name.startswith("mode_"):
                continue
            handler = handlers.get(name)
            if handler is not None:
                action.triggered.connect(handler)
        if "exit" not in handlers:
            self.actions["exit"].triggered.connect(self.window.close)

        on_mode = handlers.get("mode")
        if on_mode is not None and self._mode_group is not None:
            self._mode_group.triggered.connect(lambda a: on_mode(ViewMode(a.data())))

    def set_mode(self, mode: ViewMode) -> None:
        action = self.actions.get(f"mode_{mode.value}")
        if action is not None:
            action.setChecked(True)

    def get_action(self, name: str) -> QAction | None:
        return self.actions.get(name)

    def enable_action(self, name: str, enabled: bool = True) -> None:
        """Enable or disable a specific action.

        Args:
            name: Action name
            enabled: Whether to enable the action
        """
        action = self.actions.get(name)
        if action:
            action.setEnabled(enabled)
