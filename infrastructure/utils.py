"""Utilities for date parsing/formatting and media type detection.

This module centralizes the small parsing and formatting rules used by the
repository and the view-models. Parsing is best-effort and will not raise;
callers should expect `None` when a value is not usable.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from loguru import logger

VIDEO_EXTENSIONS = {
    ".mp4",
    ".mov",
    ".avi",
    ".mkv",
    ".wmv",
    ".flv",
    ".webm",
    ".m4v",
    ".mpg",
    ".mpeg",
}

_DT_FORMATS = (
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y:%m:%d %H:%M:%S",
    "%Y-%m-%d",
)


def is_video_file(path: str) -> bool:
    """Check if a file path is a video based on its extension."""
    return Path(path).suffix.lower() in VIDEO_EXTENSIONS


def parse_photo_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 or EXIF-style timestamp; return None on failure."""
    if not value:
        return None
    text = str(value).strip()
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return dt.replace(tzinfo=None)
    except ValueError:
        pass
    for fmt in _DT_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    logger.debug("Unparseable datetime: {}", value)
    return None


def format_photo_datetime(dt: datetime | None) -> str | None:
    """Format a datetime for storage; None when missing."""
    return dt.strftime("%Y-%m-%dT%H:%M:%S") if dt else None


def _format_time(dt: datetime) -> str:
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{hour}:{dt.minute:02d} {suffix}"


def _format_date(dt: datetime) -> str:
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"


def format_session_date(start: datetime | None, end: datetime | None) -> str:
    """Format a group's time span for its header.

    Same day and same minute: "May 1, 2024 • 9:05 AM".
    Same day: "May 1, 2024 • 9:05 AM - 11:40 AM".
    Otherwise: "May 1, 2024 - May 3, 2024".
    """
    if start is None and end is None:
        return "Undated"
    start = start or end
    end = end or start
    assert start is not None and end is not None  # for type checkers
    if start.date() == end.date():
        start_time, end_time = _format_time(start), _format_time(end)
        if start_time == end_time:
            return f"{_format_date(start)} • {start_time}"
        return f"{_format_date(start)} • {start_time} - {end_time}"
    return f"{_format_date(start)} - {_format_date(end)}"


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return e.g. "1 photo" / "3 photos"."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"
