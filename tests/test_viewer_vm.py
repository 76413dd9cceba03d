import pytest

from app.viewmodels.viewer_vm import ViewerVM
from core.models import CurateAction, Photo


@pytest.fixture
def curated():
    return []


@pytest.fixture
def viewer(photo_factory, curated):
    def on_curate(key, action, rating):
        curated.append((key, action, rating))

    return ViewerVM(photo_factory(4), 1, on_curate=on_curate)


def test_opens_at_clamped_index(photo_factory):
    v = ViewerVM(photo_factory(3), 10, on_curate=lambda *a: None)
    assert v.index == 2
    assert v.is_open


def test_empty_list_never_opens():
    v = ViewerVM([], 0, on_curate=lambda *a: None)
    assert not v.is_open
    assert v.current_photo is None


def test_arrows_move_within_bounds(viewer):
    viewer.handle_key("ArrowLeft")
    viewer.handle_key("ArrowLeft")
    assert viewer.index == 0
    for _ in range(5):
        viewer.handle_key("ArrowRight")
    assert viewer.index == 3


def test_escape_closes(viewer):
    assert viewer.handle_key("Escape") is True
    assert not viewer.is_open
    assert viewer.handle_key("ArrowRight") is False


def test_curate_key_routes_and_advances(viewer, curated):
    viewer.handle_key("3")
    assert curated == [("/photos/img_001.jpg", CurateAction.RATE, 3)]
    assert viewer.index == 2


class TestCurateResult:
    def test_last_photo_closes_once_curation_succeeds(self, viewer, curated):
        viewer.index = 3
        viewer.handle_key("p")
        assert curated[-1][1] is CurateAction.PICK
        assert viewer.is_open
        viewer.on_curate_result("/photos/img_003.jpg", success=True)
        assert not viewer.is_open

    def test_last_photo_stays_open_when_curation_fails(self, viewer):
        viewer.index = 3
        viewer.handle_key("x")
        viewer.on_curate_result("/photos/img_003.jpg", success=False)
        assert viewer.is_open
        assert viewer.index == 3

    def test_failure_steps_back_to_curated_photo(self, viewer):
        viewer.handle_key("x")
        assert viewer.index == 2
        viewer.on_curate_result("/photos/img_001.jpg", success=False)
        assert viewer.index == 1

    def test_failure_after_moving_on_keeps_position(self, viewer):
        viewer.handle_key("x")
        viewer.handle_key("ArrowRight")
        viewer.on_curate_result("/photos/img_001.jpg", success=False)
        assert viewer.index == 3

    def test_success_keeps_advance(self, viewer):
        viewer.handle_key("p")
        viewer.on_curate_result("/photos/img_001.jpg", success=True)
        assert viewer.index == 2
        assert viewer.is_open

    def test_unknown_result_is_ignored(self, viewer):
        viewer.on_curate_result("/photos/img_000.jpg", success=False)
        assert viewer.index == 1


def test_synchronous_failure_leaves_viewer_on_photo(photo_factory):
    holder = {}

    def on_curate(key, action, rating):
        holder["viewer"].on_curate_result(key, success=False)

    v = ViewerVM(photo_factory(3), 0, on_curate=on_curate)
    holder["viewer"] = v
    v.handle_key("p")
    assert v.index == 0


def test_fading_photo_ignores_curation(photo_factory, curated):
    v = ViewerVM(
        photo_factory(3),
        0,
        on_curate=lambda *a: curated.append(a),
        is_fading=lambda key: key.endswith("000.jpg"),
    )
    assert v.handle_key("x") is True
    assert curated == []
    assert v.index == 0


def test_zoom_resets_on_navigation(viewer):
    viewer.toggle_zoom()
    assert viewer.is_zoomed
    viewer.go_next()
    assert not viewer.is_zoomed


def test_zoom_is_disabled_for_videos():
    v = ViewerVM([Photo(file_path="/clips/a.mp4", is_video=True)], 0, on_curate=lambda *a: None)
    v.toggle_zoom()
    assert not v.is_zoomed


class TestPhotoRemoved:
    def test_earlier_removal_keeps_current_photo(self, viewer):
        current = viewer.current_photo
        del viewer.photos[0]
        viewer.on_photo_removed(0)
        assert viewer.current_photo is current

    def test_removing_current_shows_next(self, viewer):
        del viewer.photos[1]
        viewer.on_photo_removed(1)
        assert viewer.current_photo.file_path == "/photos/img_002.jpg"

    def test_removing_last_remaining_closes(self, photo_factory):
        v = ViewerVM(photo_factory(1), 0, on_curate=lambda *a: None)
        del v.photos[0]
        v.on_photo_removed(0)
        assert not v.is_open
