"""Tests for view membership and the fade decision."""

import pytest

from core.models import CurateAction, ViewMode, curation_fields
from core.rules.fade_rules import belongs_to_view, should_fade


@pytest.mark.parametrize(
    "mode,is_curated,is_trashed,expected",
    [
        (ViewMode.CURATE, False, False, True),
        (ViewMode.CURATE, True, False, False),
        (ViewMode.CURATE, True, True, False),
        (ViewMode.LIBRARY, True, False, True),
        (ViewMode.LIBRARY, False, False, False),
        (ViewMode.LIBRARY, True, True, False),
        (ViewMode.TRASH, True, True, True),
        (ViewMode.TRASH, True, False, False),
        (ViewMode.ALBUM, False, False, True),
        (ViewMode.ALBUM, True, True, False),
    ],
)
def test_belongs_to_view(mode, is_curated, is_trashed, expected):
    assert belongs_to_view(mode, is_curated, is_trashed) is expected


@pytest.mark.parametrize("mode", list(ViewMode))
def test_reject_always_fades(mode):
    assert should_fade(mode, CurateAction.REJECT, True, True)


def test_pick_fades_from_curate_but_not_library():
    fields = curation_fields(CurateAction.PICK)
    assert should_fade(ViewMode.CURATE, CurateAction.PICK, *fields[:2])
    assert not should_fade(ViewMode.LIBRARY, CurateAction.PICK, *fields[:2])


def test_unflag_fades_from_library_and_trash():
    is_curated, is_trashed, _ = curation_fields(CurateAction.UNFLAG)
    assert should_fade(ViewMode.LIBRARY, CurateAction.UNFLAG, is_curated, is_trashed)
    assert should_fade(ViewMode.TRASH, CurateAction.UNFLAG, is_curated, is_trashed)
    assert not should_fade(ViewMode.CURATE, CurateAction.UNFLAG, is_curated, is_trashed)


def test_rating_in_library_keeps_photo():
    is_curated, is_trashed, _ = curation_fields(CurateAction.RATE, rating=4)
    assert not should_fade(ViewMode.LIBRARY, CurateAction.RATE, is_curated, is_trashed)


class TestCurationFields:
    def test_pick_keeps_rating(self):
        assert curation_fields(CurateAction.PICK, current_rating=3) == (True, False, 3)

    def test_reject_clears_rating(self):
        assert curation_fields(CurateAction.REJECT, current_rating=3) == (True, True, 0)

    def test_unflag_resets(self):
        assert curation_fields(CurateAction.UNFLAG, current_rating=5) == (False, False, 0)

    @pytest.mark.parametrize("rating,expected", [(3, 3), (9, 5), (-1, 0), (None, 0)])
    def test_rate_is_clamped(self, rating, expected):
        assert curation_fields(CurateAction.RATE, rating=rating) == (True, False, expected)
