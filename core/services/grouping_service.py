"""Detect time/location groups and bursts over an ordered photo list.

Both detectors keep the overlay invariants: groups partition the whole list
(`sum(photo_count) == len(photos)`), and bursts are contiguous, disjoint
runs of two or more photos.
"""

from __future__ import annotations

from collections.abc import Sequence
import math

from loguru import logger

from core.models import Burst, Group, Photo

TIME_GAP_THRESHOLD_MINUTES = 120
MAX_GROUP_DURATION_HOURS = 12
LOCATION_RADIUS_KM = 1.0
BURST_TIME_THRESHOLD_SECONDS = 3
BURST_DHASH_THRESHOLD = 4

_EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return _EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def hamming_distance(dhash1: str, dhash2: str) -> int:
    """Bit distance between two hex dhash strings; raises ValueError on bad input."""
    return bin(int(dhash1, 16) ^ int(dhash2, 16)).count("1")


def format_location(photo: Photo) -> str | None:
    parts = [p for p in (photo.city, photo.state, photo.country_code) if p]
    return ", ".join(parts) if parts else None


def _has_coords(photo: Photo) -> bool:
    return photo.latitude is not None and photo.longitude is not None


def _new_group(group_id: int, photo: Photo) -> Group:
    return Group(
        photo_count=1,
        group_id=group_id,
        start_time=photo.date_time,
        end_time=photo.date_time,
        location=format_location(photo),
        total_size=int(photo.file_size_bytes or 0),
    )


def detect_groups(
    photos: Sequence[Photo],
    time_gap_minutes: float = TIME_GAP_THRESHOLD_MINUTES,
    max_duration_hours: float = MAX_GROUP_DURATION_HOURS,
    location_radius_km: float = LOCATION_RADIUS_KM,
) -> list[Group]:
    """Partition `photos` into contiguous groups.

    A new group starts when the gap to the previous dated photo exceeds
    `time_gap_minutes`, the group would span more than `max_duration_hours`,
    or the photo lies farther than `location_radius_km` from the group's
    first located photo. Undated photos join the current group.
    """
    groups: list[Group] = []
    current: Group | None = None
    origin: tuple[float, float] | None = None
    last_time = None

    for photo in photos:
        t = photo.date_time
        if current is None:
            current = _new_group(len(groups) + 1, photo)
            origin = (photo.latitude, photo.longitude) if _has_coords(photo) else None
            last_time = t
            continue

        split = False
        if t is not None and last_time is not None:
            gap_minutes = abs((t - last_time).total_seconds()) / 60
            if gap_minutes > time_gap_minutes:
                split = True
            elif current.start_time is not None:
                span_hours = abs((t - current.start_time).total_seconds()) / 3600
                split = span_hours > max_duration_hours
        if not split and origin is not None and _has_coords(photo):
            distance = haversine_km(origin[0], origin[1], photo.latitude, photo.longitude)
            split = distance > location_radius_km

        if split:
            groups.append(current)
            current = _new_group(len(groups) + 1, photo)
            origin = (photo.latitude, photo.longitude) if _has_coords(photo) else None
            last_time = t
            continue

        current.photo_count += 1
        current.total_size += int(photo.file_size_bytes or 0)
        if t is not None:
            if current.start_time is None or t < current.start_time:
                current.start_time = t
            if current.end_time is None or t > current.end_time:
                current.end_time = t
            last_time = t
        if origin is None and _has_coords(photo):
            origin = (photo.latitude, photo.longitude)
        if current.location is None:
            current.location = format_location(photo)

    if current is not None:
        groups.append(current)
    return groups


def detect_bursts(
    photos: Sequence[Photo],
    time_threshold_seconds: float = BURST_TIME_THRESHOLD_SECONDS,
    dhash_threshold: int = BURST_DHASH_THRESHOLD,
) -> list[Burst]:
    """Find runs of near-duplicate shots taken in rapid succession.

    Starting from each photo with a dhash and a time, following photos join
    while they stay within `time_threshold_seconds` of the first shot and
    within `dhash_threshold` bits of its hash. The run stops at the first
    photo that does not qualify.
    """
    bursts: list[Burst] = []
    i = 0
    n = len(photos)
    while i < n:
        base = photos[i]
        if base.dhash is None or base.date_time is None:
            i += 1
            continue
        j = i + 1
        while j < n:
            other = photos[j]
            if other.dhash is None or other.date_time is None:
                break
            if abs((other.date_time - base.date_time).total_seconds()) > time_threshold_seconds:
                break
            try:
                distance = hamming_distance(base.dhash, other.dhash)
            except ValueError as ex:
                logger.debug("Bad dhash for {}: {}", other.file_path, ex)
                break
            if distance > dhash_threshold:
                break
            j += 1
        if j - i >= 2:
            bursts.append(
                Burst(burst_id=f"burst-{len(bursts) + 1}", start_index=i, count=j - i)
            )
        i = j
    return bursts
