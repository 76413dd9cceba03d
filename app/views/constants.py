"""
UI/view constants centralized for reuse across view modules.
"""

from __future__ import annotations

from PySide6.QtCore import Qt

# Grid defaults (overridable by settings.json)
DEFAULT_THUMB_SIZE: int = 512
GRID_MIN_TILE_PX: int = 160
GRID_SPACING_PX: int = 6
GRID_MARGIN_PX: int = 8

# Tile styling
TILE_SELECTED_BORDER: str = "#3d8bfd"
TILE_IDLE_BORDER: str = "transparent"
TILE_FADING_OPACITY: float = 0.35

# Qt key -> gallery key name
KEY_NAMES: dict[int, str] = {
    int(Qt.Key_Left): "ArrowLeft",
    int(Qt.Key_Right): "ArrowRight",
    int(Qt.Key_Up): "ArrowUp",
    int(Qt.Key_Down): "ArrowDown",
    int(Qt.Key_Return): "Enter",
    int(Qt.Key_Enter): "Enter",
    int(Qt.Key_Space): " ",
    int(Qt.Key_Escape): "Escape",
}

VIEW_MODE_TITLES: dict[str, str] = {
    "library": "Library",
    "curate": "Curate",
    "trash": "Trash",
    "album": "Album",
}
