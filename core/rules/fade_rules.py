"""Fade policy: whether a successful curation removes a photo from the view."""

from __future__ import annotations

from core.models import CurateAction, ViewMode


def belongs_to_view(mode: ViewMode, is_curated: bool, is_trashed: bool) -> bool:
    """Return True when a photo with these flags is part of `mode`'s listing."""
    if mode is ViewMode.CURATE:
        return not is_curated and not is_trashed
    if mode is ViewMode.LIBRARY:
        return is_curated and not is_trashed
    if mode is ViewMode.TRASH:
        return is_trashed
    return not is_trashed


def should_fade(mode: ViewMode, action: CurateAction, is_curated: bool, is_trashed: bool) -> bool:
    """Decide whether the photo fades out (with undo) after `action` succeeds.

    Rejecting always fades. Any other action fades only when the photo's new
    state no longer belongs to the view.
    """
    if action is CurateAction.REJECT:
        return True
    return not belongs_to_view(mode, is_curated, is_trashed)
