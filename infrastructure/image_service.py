"""Image loading, thumbnailing, and caching utilities.

Qt decodes the common formats; Pillow (with the pillow-heif opener
registered) handles HEIC/HEIF and anything Qt cannot read. Decoded images
are kept in a memory LRU and a JPEG disk cache keyed by path, mtime and size.
"""

from __future__ import annotations

from collections import OrderedDict
import hashlib
import os
from pathlib import Path
from typing import Any

from PIL import Image, ImageOps
from PySide6.QtCore import QSize, Qt
from PySide6.QtGui import QColor, QImage, QImageReader
from loguru import logger
from pillow_heif import register_heif_opener

register_heif_opener()

_PILLOW_FIRST = {".heic", ".heif"}
PLACEHOLDER_SIDE = 64
PLACEHOLDER_GREY = 220


def _compute_cache_key(path: str, size_key: int) -> str:
    """Compute a stable cache key from path, mtime, size, and requested side."""
    try:
        st = os.stat(path)
        sig = f"{path}|{int(st.st_mtime_ns)}|{int(st.st_size)}|{int(size_key)}".encode(
            "utf-8", errors="ignore"
        )
    except OSError:
        sig = f"{path}|0|0|{int(size_key)}".encode("utf-8", errors="ignore")
    return hashlib.sha1(sig).hexdigest()


def default_cache_dir() -> Path:
    if os.name == "nt":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    else:
        base = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    return base / "PhotoGallery" / "thumbs"


class LRUCache:
    """Small ordered-dict LRU keyed by string."""

    def __init__(self, capacity: int) -> None:
        self._cap = max(1, int(capacity or 1))
        self._data: OrderedDict[str, Any] = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def get(self, key: str) -> Any | None:
        """Return the cached value for key, moving it to the MRU position."""
        if key not in self._data:
            return None
        self._data.move_to_end(key)
        return self._data[key]

    def put(self, key: str, value: Any) -> None:
        """Insert or update `key`, evicting LRU entries when over capacity."""
        self._data[key] = value
        self._data.move_to_end(key)
        while len(self._data) > self._cap:
            self._data.popitem(last=False)


class ImageService:
    """Thumbnail/preview loader with memory and disk caches."""

    def __init__(self, settings: object | None = None) -> None:
        mem_cap = 512
        disk_dir: Path = default_cache_dir()
        if settings is not None:
            try:
                mem_cap = int(settings.get("thumbnail_mem_cache", 512) or 512)  # type: ignore[attr-defined]
            except (ValueError, TypeError):
                mem_cap = 512
            raw_dir = settings.get("thumbnail_disk_cache_dir", None)  # type: ignore[attr-defined]
            if isinstance(raw_dir, str) and raw_dir:
                disk_dir = Path(os.path.expandvars(raw_dir)).expanduser()
        self._disk_path = disk_dir
        self._disk_path.mkdir(parents=True, exist_ok=True)
        self._mem_cache = LRUCache(mem_cap)

    # Public API
    def get_thumbnail(self, path: str, size: int) -> QImage:
        """Return thumbnail image for `path` with max side `size`."""
        return self._get_image(path, size)

    def get_preview(self, path: str, max_side: int) -> QImage:
        """Return preview image for `path` bounded by `max_side` (0 = full size)."""
        return self._get_image(path, max_side)

    # Internal helpers
    def _get_image(self, path: str, requested_side: int) -> QImage:
        key = _compute_cache_key(path, requested_side)
        img = self._mem_cache.get(key)
        if img is not None and not img.isNull():
            return img

        disk_file = self._disk_path / f"{key}.jpg"
        if disk_file.exists():
            img = QImage(str(disk_file))
            if not img.isNull():
                self._mem_cache.put(key, img)
                return img

        img = self._load_from_source(path, requested_side)
        if img is None or img.isNull():
            # Placeholders are not cached so a later read can succeed
            img = QImage(PLACEHOLDER_SIDE, PLACEHOLDER_SIDE, QImage.Format_ARGB32)
            img.fill(QColor(PLACEHOLDER_GREY, PLACEHOLDER_GREY, PLACEHOLDER_GREY))
            return img

        if requested_side:
            if not img.convertToFormat(QImage.Format_RGB32).save(str(disk_file), "JPEG", 85):
                logger.debug("Save disk cache failed for {}", disk_file)
        self._mem_cache.put(key, img)
        return img

    def _load_from_source(self, path: str, requested_side: int) -> QImage | None:
        """Try Pillow first for HEIC/HEIF, otherwise Qt's reader then Pillow."""
        ext = Path(path).suffix.lower()
        if ext in _PILLOW_FIRST:
            return self._load_via_pillow(path, requested_side)
        img = self._load_via_qt(path, requested_side)
        if img is not None and not img.isNull():
            return img
        return self._load_via_pillow(path, requested_side)

    def _load_via_qt(self, path: str, requested_side: int) -> QImage | None:
        reader = QImageReader(path)
        reader.setAutoTransform(True)
        if requested_side and requested_side > 0 and reader.size().isValid():
            orig = reader.size()
            w, h = orig.width(), orig.height()
            if w > 0 and h > 0:
                if w >= h:
                    nw = min(requested_side, w)
                    nh = int(h * (nw / max(1, w)))
                else:
                    nh = min(requested_side, h)
                    nw = int(w * (nh / max(1, h)))
                reader.setScaledSize(QSize(nw, nh))
        img = reader.read()
        if img is None or img.isNull():
            logger.debug("QImageReader failed for {}: {}", path, reader.errorString())
            return None
        if requested_side and requested_side > 0:
            img = img.scaled(
                requested_side, requested_side, Qt.KeepAspectRatio, Qt.SmoothTransformation
            )
        return img

    def _load_via_pillow(self, path: str, requested_side: int) -> QImage | None:
        try:
            with Image.open(path) as im:
                im = ImageOps.exif_transpose(im)
                if requested_side and requested_side > 0:
                    im.thumbnail((requested_side, requested_side), Image.Resampling.LANCZOS)
                return pil_to_qimage(im)
        except (OSError, ValueError) as ex:
            logger.debug("Pillow load failed for {}: {}", path, ex)
            return None


def pil_to_qimage(pil_img: Any) -> QImage | None:
    """Convert a Pillow image to `QImage` and detach from the source buffer."""
    if pil_img.mode not in ("RGBA", "RGB"):
        pil_img = pil_img.convert("RGBA")
    if pil_img.mode == "RGB":
        data = pil_img.tobytes("raw", "RGB")
        qimg = QImage(data, pil_img.width, pil_img.height, pil_img.width * 3, QImage.Format_RGB888)
    else:
        data = pil_img.tobytes("raw", "RGBA")
        qimg = QImage(
            data, pil_img.width, pil_img.height, pil_img.width * 4, QImage.Format_RGBA8888
        )
    if qimg.isNull():
        return None
    return qimg.copy()
