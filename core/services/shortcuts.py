"""Keyboard shortcut table shared by the grid and the full-screen viewer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from core.models import CurateAction


class Shortcut(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    OPEN = "open"
    CLOSE = "close"
    CURATE = "curate"
    NEXT_PAGE = "next_page"
    PREV_PAGE = "prev_page"


@dataclass(frozen=True)
class KeyBinding:
    """A parsed key press.

    Attributes:
        shortcut: The abstract shortcut.
        action: Curation action for `Shortcut.CURATE`.
        rating: Star rating for `CurateAction.RATE`.
    """

    shortcut: Shortcut
    action: CurateAction | None = None
    rating: int | None = None


_KEYS: dict[str, KeyBinding] = {
    "arrowleft": KeyBinding(Shortcut.LEFT),
    "left": KeyBinding(Shortcut.LEFT),
    "arrowright": KeyBinding(Shortcut.RIGHT),
    "right": KeyBinding(Shortcut.RIGHT),
    "arrowup": KeyBinding(Shortcut.UP),
    "up": KeyBinding(Shortcut.UP),
    "arrowdown": KeyBinding(Shortcut.DOWN),
    "down": KeyBinding(Shortcut.DOWN),
    "enter": KeyBinding(Shortcut.OPEN),
    "return": KeyBinding(Shortcut.OPEN),
    " ": KeyBinding(Shortcut.OPEN),
    "space": KeyBinding(Shortcut.OPEN),
    "escape": KeyBinding(Shortcut.CLOSE),
    "p": KeyBinding(Shortcut.CURATE, CurateAction.PICK),
    "x": KeyBinding(Shortcut.CURATE, CurateAction.REJECT),
    "u": KeyBinding(Shortcut.CURATE, CurateAction.UNFLAG),
    "j": KeyBinding(Shortcut.NEXT_PAGE),
    "k": KeyBinding(Shortcut.PREV_PAGE),
}
for _stars in range(1, 6):
    _KEYS[str(_stars)] = KeyBinding(Shortcut.CURATE, CurateAction.RATE, _stars)


def parse_shortcut(key: str) -> KeyBinding | None:
    """Map a key name (e.g. "ArrowDown", "P", "3") to its binding."""
    if not key:
        return None
    name = key if key == " " else key.strip().lower()
    return _KEYS.get(name)
