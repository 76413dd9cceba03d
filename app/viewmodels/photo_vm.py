"""Lightweight view model wrapper around `Photo`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from core.models import MAX_RATING, Photo
from core.services.index_mapper import RenderItem, RenderKind
from infrastructure.utils import is_video_file


@dataclass
class PhotoVM:
    """Expose convenient properties for one rendered tile."""

    record: Photo
    item: RenderItem
    is_selected: bool = False
    is_fading: bool = False

    @property
    def index(self) -> int:
        return self.item.index

    @property
    def key(self) -> str:
        return self.record.key

    @property
    def file_name(self) -> str:
        """Base name of the file path."""
        return Path(self.record.file_path).name

    @property
    def folder_path(self) -> str:
        return str(Path(self.record.file_path).parent)

    @property
    def is_video(self) -> bool:
        return bool(self.record.is_video) or is_video_file(self.record.file_path)

    @property
    def is_stack(self) -> bool:
        """True if the tile stands for a collapsed burst."""
        return self.item.kind is RenderKind.STACK

    @property
    def burst_label(self) -> str:
        """Badge text: burst size on a stack, "n/m" on an expanded member."""
        if self.item.kind is RenderKind.STACK:
            return str(self.item.burst_count)
        if self.item.kind is RenderKind.BURST_MEMBER:
            return f"{self.item.position_in_burst}/{self.item.burst_count}"
        return ""

    @property
    def stars(self) -> str:
        rating = int(self.record.rating or 0)
        return "★" * rating + "☆" * (MAX_RATING - rating) if rating else ""

    @property
    def flag(self) -> str:
        if self.record.is_rejected:
            return "rejected"
        if self.record.is_picked:
            return "picked"
        return ""
