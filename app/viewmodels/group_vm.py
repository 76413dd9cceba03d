from __future__ import annotations

from dataclasses import dataclass, field

from app.viewmodels.photo_vm import PhotoVM
from core.models import Group
from infrastructure.utils import format_session_date, pluralize


@dataclass
class GroupVM:
    """One on-screen section: a group header (or none) and its tiles."""

    group_index: int | None
    start: int
    end: int
    group: Group | None = None
    items: list[PhotoVM] = field(default_factory=list)
    is_fully_selected: bool = False

    @property
    def title(self) -> str:
        if self.group is None:
            return ""
        return format_session_date(self.group.start_time, self.group.end_time)

    @property
    def count_label(self) -> str:
        return pluralize(self.end - self.start, "photo")

    @property
    def location(self) -> str:
        return (self.group.location or "") if self.group is not None else ""
