"""JSON persistence for the local photo library.

The library file holds one object with a `photos` array. Each entry carries
the curation flags plus the display metadata used for grouping:

    {"photos": [{"file_path": "...", "date_time": "2024-05-01T09:05:00",
                 "rating": 0, "is_curated": false, "is_trashed": false, ...}]}

The repository serves both the page-fetch and the curation ports. Curation
runs on worker threads, so every read and write goes through one lock, and
writes replace the file atomically.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
import json
import os
from pathlib import Path
import tempfile
import threading
from typing import Any

from loguru import logger

from core.models import MAX_RATING, FilterOptions, Photo, PhotoFilters, PhotoPage, ViewMode
from core.rules.fade_rules import belongs_to_view
from core.services.grouping_service import (
    BURST_DHASH_THRESHOLD,
    BURST_TIME_THRESHOLD_SECONDS,
    LOCATION_RADIUS_KM,
    MAX_GROUP_DURATION_HOURS,
    TIME_GAP_THRESHOLD_MINUTES,
    detect_bursts,
    detect_groups,
)
from core.services.interfaces import CurationError, PageFetchError
from infrastructure.utils import format_photo_datetime, is_video_file, parse_photo_datetime


def _parse_bool(value: Any) -> bool:
    """Accept JSON booleans as well as 1/0 and "true"/"false" strings."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes"}


def _parse_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _file_format(row: dict[str, Any], file_path: str) -> str | None:
    """Stored format, else the lowercase file extension."""
    value = row.get("file_format")
    if value:
        return str(value).strip().lower()
    suffix = Path(file_path).suffix.lstrip(".").lower()
    return suffix or None


def photo_from_dict(row: dict[str, Any]) -> Photo:
    """Build a `Photo` from one library entry; raises ValueError without a path."""
    file_path = str(row.get("file_path") or "").strip()
    if not file_path:
        raise ValueError("entry has no file_path")
    size = _parse_int(row.get("file_size_bytes"))
    rating = _parse_int(row.get("rating"))
    is_video = row.get("is_video")
    return Photo(
        file_path=file_path,
        is_video=_parse_bool(is_video) if is_video is not None else is_video_file(file_path),
        rating=rating,
        is_curated=_parse_bool(row.get("is_curated", False)),
        is_trashed=_parse_bool(row.get("is_trashed", False)),
        date_time=parse_photo_datetime(row.get("date_time")),
        file_size_bytes=size,
        latitude=_parse_float(row.get("latitude")),
        longitude=_parse_float(row.get("longitude")),
        city=row.get("city") or None,
        state=row.get("state") or None,
        country_code=row.get("country_code") or None,
        dhash=row.get("dhash") or None,
        width=_parse_int(row.get("width")),
        height=_parse_int(row.get("height")),
        camera_make=row.get("camera_make") or None,
        camera_model=row.get("camera_model") or None,
        file_format=_file_format(row, file_path),
    )


def photo_to_dict(photo: Photo) -> dict[str, Any]:
    return {
        "file_path": photo.file_path,
        "is_video": photo.is_video,
        "rating": photo.rating,
        "is_curated": photo.is_curated,
        "is_trashed": photo.is_trashed,
        "date_time": format_photo_datetime(photo.date_time),
        "file_size_bytes": photo.file_size_bytes,
        "latitude": photo.latitude,
        "longitude": photo.longitude,
        "city": photo.city,
        "state": photo.state,
        "country_code": photo.country_code,
        "dhash": photo.dhash,
        "width": photo.width,
        "height": photo.height,
        "camera_make": photo.camera_make,
        "camera_model": photo.camera_model,
        "file_format": photo.file_format,
    }


class JsonLibraryRepository:
    """Load, page and curate photo records stored in a JSON library file."""

    def __init__(
        self,
        library_path: str | Path,
        *,
        group_photos: bool = True,
        detect_burst_runs: bool = True,
        time_gap_minutes: float = TIME_GAP_THRESHOLD_MINUTES,
        max_duration_hours: float = MAX_GROUP_DURATION_HOURS,
        location_radius_km: float = LOCATION_RADIUS_KM,
        burst_time_threshold_seconds: float = BURST_TIME_THRESHOLD_SECONDS,
        burst_dhash_threshold: int = BURST_DHASH_THRESHOLD,
    ) -> None:
        self._path = Path(library_path)
        self._lock = threading.Lock()
        self._group_photos = group_photos
        self._detect_bursts = detect_burst_runs
        self._time_gap_minutes = time_gap_minutes
        self._max_duration_hours = max_duration_hours
        self._location_radius_km = location_radius_km
        self._burst_seconds = burst_time_threshold_seconds
        self._burst_dhash = burst_dhash_threshold

    @classmethod
    def from_settings(cls, settings: Any, library_path: str | Path) -> JsonLibraryRepository:
        """Create a repository using the `grouping.*` and `bursts.*` settings."""
        return cls(
            library_path,
            group_photos=bool(settings.get("grouping.enabled", True)),
            detect_burst_runs=bool(settings.get("bursts.enabled", True)),
            time_gap_minutes=float(
                settings.get("grouping.time_gap_minutes", TIME_GAP_THRESHOLD_MINUTES)
            ),
            max_duration_hours=float(
                settings.get("grouping.max_duration_hours", MAX_GROUP_DURATION_HOURS)
            ),
            location_radius_km=float(
                settings.get("grouping.location_radius_km", LOCATION_RADIUS_KM)
            ),
            burst_time_threshold_seconds=float(
                settings.get("bursts.time_threshold_seconds", BURST_TIME_THRESHOLD_SECONDS)
            ),
            burst_dhash_threshold=int(settings.get("bursts.dhash_threshold", BURST_DHASH_THRESHOLD)),
        )

    @property
    def path(self) -> Path:
        return self._path

    # Load / save
    def load(self) -> list[Photo]:
        """Return every photo in the library, oldest first.

        A missing file is an empty library. Entries that cannot be parsed are
        logged and skipped.
        """
        with self._lock:
            return self._load_unlocked()

    def save(self, photos: Iterable[Photo]) -> None:
        with self._lock:
            self._save_unlocked(list(photos))

    def _load_unlocked(self) -> list[Photo]:
        if not self._path.exists():
            logger.info("Library file not found, starting empty: {}", self._path)
            return []
        with self._path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        rows = (data.get("photos") or []) if isinstance(data, dict) else data
        if not isinstance(rows, list):
            raise ValueError(f"expected a list of photos, got {type(rows).__name__}")
        photos: list[Photo] = []
        for row in rows:
            try:
                photos.append(photo_from_dict(row))
            except (ValueError, TypeError, AttributeError) as ex:
                logger.error("Library row error: {} | row={}", ex, row)
        # Undated photos sort last; ties keep file order
        photos.sort(key=lambda p: (p.date_time is None, p.date_time or datetime.min))
        return photos

    def _save_unlocked(self, photos: list[Photo]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"photos": [photo_to_dict(p) for p in photos]}
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=str(self._path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except OSError:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    # Page fetch port
    def fetch_page(
        self,
        mode: ViewMode,
        offset: int,
        limit: int,
        with_groups: bool = True,
        filters: PhotoFilters | None = None,
    ) -> PhotoPage:
        """Return one page of the photos that belong to `mode` and match `filters`."""
        try:
            photos = self.load()
        except (OSError, ValueError) as ex:
            raise PageFetchError(f"cannot read library {self._path}: {ex}") from ex

        listed = [
            p
            for p in photos
            if belongs_to_view(mode, p.is_curated, p.is_trashed)
            and (filters is None or filters.matches(p))
        ]
        total = len(listed)
        limit = max(1, int(limit))
        offset = max(0, int(offset))
        page_photos = listed[offset : offset + limit]

        groups = []
        bursts = []
        if with_groups and page_photos:
            if self._group_photos:
                groups = detect_groups(
                    page_photos,
                    time_gap_minutes=self._time_gap_minutes,
                    max_duration_hours=self._max_duration_hours,
                    location_radius_km=self._location_radius_km,
                )
            if self._detect_bursts:
                bursts = detect_bursts(
                    page_photos,
                    time_threshold_seconds=self._burst_seconds,
                    dhash_threshold=self._burst_dhash,
                )

        logger.debug(
            "fetch_page mode={} offset={} limit={} filters={} -> {} of {}",
            mode.value,
            offset,
            limit,
            filters.active_count if filters is not None else 0,
            len(page_photos),
            total,
        )
        return PhotoPage(
            photos=page_photos,
            groups=groups,
            bursts=bursts,
            offset=offset,
            limit=limit,
            total_records=total,
            page_start_record=offset + 1 if page_photos else 0,
            page_end_record=offset + len(page_photos),
        )

    def filter_options(self) -> FilterOptions:
        """Distinct filterable values across the whole library."""
        try:
            photos = self.load()
        except (OSError, ValueError) as ex:
            raise PageFetchError(f"cannot read library {self._path}: {ex}") from ex
        return FilterOptions.from_photos(photos)

    # Curation port
    def curate(self, photo_key: str, is_curated: bool, is_trashed: bool, rating: int) -> None:
        """Persist the curation flags of one photo; raises CurationError on failure."""
        with self._lock:
            try:
                photos = self._load_unlocked()
            except (OSError, ValueError) as ex:
                raise CurationError(f"cannot read library {self._path}: {ex}") from ex
            for photo in photos:
                if photo.key == photo_key:
                    photo.is_curated = bool(is_curated)
                    photo.is_trashed = bool(is_trashed)
                    photo.rating = max(0, min(MAX_RATING, int(rating)))
                    break
            else:
                raise CurationError(f"photo not found: {photo_key}")
            try:
                self._save_unlocked(photos)
            except OSError as ex:
                raise CurationError(f"cannot write library {self._path}: {ex}") from ex
        logger.info(
            "Saved curation for {}: curated={} trashed={} rating={}",
            photo_key,
            is_curated,
            is_trashed,
            rating,
        )
