"""Core domain models for gallery pages, photos, groups and bursts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

MAX_RATING = 5


@dataclass
class Photo:
    """A single photo row as delivered by a page fetch.

    `file_path` is the stable key. Only the curation fields (`is_curated`,
    `is_trashed`, `rating`) change during a session.
    """

    file_path: str
    is_video: bool = False
    rating: int = 0
    is_curated: bool = False
    is_trashed: bool = False
    date_time: datetime | None = None
    file_size_bytes: int = 0
    latitude: float | None = None
    longitude: float | None = None
    city: str | None = None
    state: str | None = None
    country_code: str | None = None
    dhash: str | None = None
    width: int = 0
    height: int = 0
    camera_make: str | None = None
    camera_model: str | None = None
    file_format: str | None = None

    def __post_init__(self) -> None:
        self.rating = max(0, min(MAX_RATING, int(self.rating or 0)))

    @property
    def key(self) -> str:
        return self.file_path

    @property
    def is_picked(self) -> bool:
        return self.is_curated and not self.is_trashed

    @property
    def is_rejected(self) -> bool:
        return self.is_trashed


@dataclass
class Group:
    """A contiguous run of photos sharing a time/location cluster."""

    photo_count: int
    group_id: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    location: str | None = None
    total_size: int = 0


@dataclass
class Burst:
    """A contiguous run of near-duplicate shots collapsible to one tile."""

    burst_id: str
    start_index: int
    count: int
    cover_index: int | None = None

    def __post_init__(self) -> None:
        if self.cover_index is None:
            self.cover_index = self.start_index

    @property
    def end_index(self) -> int:
        """Exclusive end of the burst range."""
        return self.start_index + self.count


@dataclass
class PhotoPage:
    """One page of photos plus the optional grouping/burst overlays."""

    photos: list[Photo] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
    bursts: list[Burst] = field(default_factory=list)
    offset: int = 0
    limit: int = 100
    total_records: int = 0
    page_start_record: int = 0
    page_end_record: int = 0

    @property
    def has_prev(self) -> bool:
        return self.offset > 0

    @property
    def has_next(self) -> bool:
        return self.page_end_record < self.total_records


class ViewMode(str, Enum):
    """Which slice of the library a page shows."""

    LIBRARY = "library"
    CURATE = "curate"
    TRASH = "trash"
    ALBUM = "album"


class CurateAction(str, Enum):
    PICK = "pick"
    REJECT = "reject"
    UNFLAG = "unflag"
    RATE = "rate"


class MediaType(str, Enum):
    ALL = "all"
    PHOTOS = "photos"
    VIDEOS = "videos"


class Orientation(str, Enum):
    ALL = "all"
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARE = "square"


def photo_orientation(photo: Photo) -> Orientation | None:
    """Orientation from the stored dimensions; None when they are unknown."""
    if photo.width <= 0 or photo.height <= 0:
        return None
    if photo.width > photo.height:
        return Orientation.LANDSCAPE
    if photo.width < photo.height:
        return Orientation.PORTRAIT
    return Orientation.SQUARE


@dataclass(frozen=True)
class PhotoFilters:
    """Narrows a view to photos matching every active criterion.

    Values inside one criterion are alternatives (any may match); separate
    criteria must all match. Empty tuples and `ALL` leave a criterion off.
    """

    ratings: tuple[int, ...] = ()
    media_type: MediaType = MediaType.ALL
    orientation: Orientation = Orientation.ALL
    years: tuple[int, ...] = ()
    camera_makes: tuple[str, ...] = ()
    camera_models: tuple[str, ...] = ()
    countries: tuple[str, ...] = ()
    states: tuple[str, ...] = ()
    cities: tuple[str, ...] = ()
    file_formats: tuple[str, ...] = ()

    @property
    def active_count(self) -> int:
        """Number of chosen values, as shown on the filter badge."""
        count = sum(
            len(values)
            for values in (
                self.ratings,
                self.years,
                self.camera_makes,
                self.camera_models,
                self.countries,
                self.states,
                self.cities,
                self.file_formats,
            )
        )
        if self.media_type is not MediaType.ALL:
            count += 1
        if self.orientation is not Orientation.ALL:
            count += 1
        return count

    @property
    def is_active(self) -> bool:
        return self.active_count > 0

    def matches(self, photo: Photo) -> bool:
        if self.ratings and photo.rating not in self.ratings:
            return False
        if self.media_type is MediaType.PHOTOS and photo.is_video:
            return False
        if self.media_type is MediaType.VIDEOS and not photo.is_video:
            return False
        if self.orientation is not Orientation.ALL:
            if photo_orientation(photo) is not self.orientation:
                return False
        if self.years and (photo.date_time is None or photo.date_time.year not in self.years):
            return False
        checks = (
            (self.camera_makes, photo.camera_make),
            (self.camera_models, photo.camera_model),
            (self.countries, photo.country_code),
            (self.states, photo.state),
            (self.cities, photo.city),
            (self.file_formats, photo.file_format),
        )
        return all(not wanted or value in wanted for wanted, value in checks)


NO_FILTERS = PhotoFilters()


@dataclass
class FilterOptions:
    """Distinct values available to each filter, for building filter menus."""

    camera_makes: list[str] = field(default_factory=list)
    camera_models: list[str] = field(default_factory=list)
    countries: list[str] = field(default_factory=list)
    states: list[str] = field(default_factory=list)
    cities: list[str] = field(default_factory=list)
    file_formats: list[str] = field(default_factory=list)
    years: list[int] = field(default_factory=list)

    @classmethod
    def from_photos(cls, photos: list[Photo]) -> FilterOptions:
        """Collect sorted distinct values; years are newest first."""

        def distinct(values) -> list[str]:
            return sorted({v for v in values if v})

        return cls(
            camera_makes=distinct(p.camera_make for p in photos),
            camera_models=distinct(p.camera_model for p in photos),
            countries=distinct(p.country_code for p in photos),
            states=distinct(p.state for p in photos),
            cities=distinct(p.city for p in photos),
            file_formats=distinct(p.file_format for p in photos),
            years=sorted({p.date_time.year for p in photos if p.date_time}, reverse=True),
        )


@dataclass(frozen=True)
class GalleryCapabilities:
    """Describes which gallery behaviors a view enables."""

    has_groups: bool = True
    has_bursts: bool = True
    is_single_select: bool = False


@dataclass(frozen=True)
class ViewConfig:
    """Per-view page configuration."""

    mode: ViewMode
    capabilities: GalleryCapabilities
    initial_selected_index: int | None = None
    empty_title: str = ""
    empty_description: str = ""


VIEW_CONFIGS: dict[ViewMode, ViewConfig] = {
    ViewMode.LIBRARY: ViewConfig(
        mode=ViewMode.LIBRARY,
        capabilities=GalleryCapabilities(has_groups=True, has_bursts=True),
        empty_title="No photos yet",
        empty_description="Picked photos will appear here.",
    ),
    ViewMode.CURATE: ViewConfig(
        mode=ViewMode.CURATE,
        capabilities=GalleryCapabilities(has_groups=True, has_bursts=True),
        initial_selected_index=0,
        empty_title="Nothing to review",
        empty_description="New imports will appear here for curation.",
    ),
    ViewMode.TRASH: ViewConfig(
        mode=ViewMode.TRASH,
        capabilities=GalleryCapabilities(has_groups=False, has_bursts=False),
        empty_title="Nothing here",
        empty_description="Rejected photos will appear here.",
    ),
    ViewMode.ALBUM: ViewConfig(
        mode=ViewMode.ALBUM,
        capabilities=GalleryCapabilities(has_groups=False, has_bursts=False),
        empty_title="Album is empty",
        empty_description="Add photos from the library.",
    ),
}


def curation_fields(
    action: CurateAction, current_rating: int = 0, rating: int | None = None
) -> tuple[bool, bool, int]:
    """Return `(is_curated, is_trashed, rating)` for a curation action.

    Picking keeps the photo's current rating; rating implies a pick.
    """
    if action is CurateAction.PICK:
        return True, False, current_rating
    if action is CurateAction.REJECT:
        return True, True, 0
    if action is CurateAction.UNFLAG:
        return False, False, 0
    value = max(0, min(MAX_RATING, int(rating or 0)))
    return True, False, value
