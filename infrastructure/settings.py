"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from loguru import logger

DEFAULTS: dict[str, Any] = {
    "library": {"path": "library.json", "page_size": 100},
    "view": {"default_mode": "curate"},
    "curation": {"fade_ms": 3000},
    "grouping": {
        "enabled": True,
        "time_gap_minutes": 120,
        "max_duration_hours": 12,
        "location_radius_km": 1.0,
    },
    "bursts": {"enabled": True, "time_threshold_seconds": 3, "dhash_threshold": 4},
    "grid": {"min_tile_px": 160, "spacing_px": 6},
    "thumbnail_size": 512,
    "thumbnail_mem_cache": 2048,
    "logging": {"level": "INFO", "dir": None},
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access.

    Values in the file override the built-in defaults; a missing file means
    the defaults are used as-is.
    """

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        self._data: dict[str, Any] = copy.deepcopy(DEFAULTS)
        if not self._path.exists():
            logger.info("settings.json not found at {}; using defaults", self._path)
            return
        with self._path.open("r", encoding="utf-8") as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise ValueError(f"settings.json must contain an object: {self._path}")
        _merge(self._data, loaded)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def resolve_path(self, key: str, default: str | None = None) -> Path | None:
        """Return a path setting, relative paths resolved against the settings file."""
        value = self.get(key, default)
        if not value:
            return None
        path = Path(str(value)).expanduser()
        if not path.is_absolute():
            path = self._path.parent / path
        return path
