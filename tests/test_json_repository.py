"""Tests for the JSON library repository (page fetch and curation ports)."""

import json

import pytest

from core.models import MediaType, Orientation, PhotoFilters, ViewMode
from core.services.interfaces import CurationError, PageFetchError
from infrastructure.json_repository import JsonLibraryRepository, photo_from_dict


def _row(i, minutes=0, **kwargs):
    row = {
        "file_path": f"/photos/img_{i:03d}.jpg",
        "date_time": f"2024-05-01T09:{minutes:02d}:00",
    }
    row.update(kwargs)
    return row


@pytest.fixture
def library(tmp_path):
    path = tmp_path / "library.json"
    rows = [_row(i, minutes=i) for i in range(5)]
    rows.append(_row(5, minutes=10, is_curated=True))
    rows.append(_row(6, minutes=11, is_curated=True, is_trashed=True))
    path.write_text(json.dumps({"photos": rows}), encoding="utf-8")
    return path


@pytest.fixture
def repo(library):
    return JsonLibraryRepository(library)


def _paths(page):
    return [p.file_path for p in page.photos]


class TestFetchPage:
    def test_curate_view_lists_unreviewed(self, repo):
        page = repo.fetch_page(ViewMode.CURATE, 0, 100)
        assert len(page.photos) == 5
        assert page.total_records == 5
        assert (page.page_start_record, page.page_end_record) == (1, 5)

    def test_library_and_trash_views(self, repo):
        assert _paths(repo.fetch_page(ViewMode.LIBRARY, 0, 100)) == ["/photos/img_005.jpg"]
        assert _paths(repo.fetch_page(ViewMode.TRASH, 0, 100)) == ["/photos/img_006.jpg"]
        assert len(repo.fetch_page(ViewMode.ALBUM, 0, 100).photos) == 6

    def test_pagination(self, repo):
        page = repo.fetch_page(ViewMode.CURATE, 2, 2)
        assert _paths(page) == ["/photos/img_002.jpg", "/photos/img_003.jpg"]
        assert page.has_prev and page.has_next
        last = repo.fetch_page(ViewMode.CURATE, 4, 2)
        assert not last.has_next

    def test_offset_past_end_is_empty(self, repo):
        page = repo.fetch_page(ViewMode.CURATE, 50, 10)
        assert page.photos == []
        assert page.page_start_record == 0

    def test_overlays_partition_the_page(self, repo):
        page = repo.fetch_page(ViewMode.CURATE, 0, 100)
        assert sum(g.photo_count for g in page.groups) == len(page.photos)

    def test_overlays_skipped_when_not_requested(self, repo):
        page = repo.fetch_page(ViewMode.CURATE, 0, 100, with_groups=False)
        assert page.groups == [] and page.bursts == []

    def test_bursts_detected(self, tmp_path):
        path = tmp_path / "library.json"
        rows = [
            {"file_path": f"/b/{i}.jpg", "date_time": f"2024-05-01T09:00:0{i}", "dhash": "ff"}
            for i in range(3)
        ]
        path.write_text(json.dumps({"photos": rows}), encoding="utf-8")
        page = JsonLibraryRepository(path).fetch_page(ViewMode.CURATE, 0, 10)
        assert [(b.start_index, b.count) for b in page.bursts] == [(0, 3)]

    def test_missing_file_is_empty_library(self, tmp_path):
        page = JsonLibraryRepository(tmp_path / "none.json").fetch_page(ViewMode.CURATE, 0, 10)
        assert page.photos == []
        assert page.total_records == 0

    def test_corrupt_file_raises_fetch_error(self, tmp_path):
        path = tmp_path / "library.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PageFetchError):
            JsonLibraryRepository(path).fetch_page(ViewMode.CURATE, 0, 10)

    @pytest.mark.parametrize("content", ["42", '"photos"', "true", "null", '{"photos": 7}'])
    def test_non_list_library_raises_fetch_error(self, tmp_path, content):
        path = tmp_path / "library.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(PageFetchError):
            JsonLibraryRepository(path).fetch_page(ViewMode.CURATE, 0, 10)

    def test_bare_list_library_is_accepted(self, tmp_path):
        path = tmp_path / "library.json"
        path.write_text(json.dumps([_row(0), _row(1, minutes=1)]), encoding="utf-8")
        assert len(JsonLibraryRepository(path).fetch_page(ViewMode.CURATE, 0, 10).photos) == 2


def _filtered(repo, **criteria):
    return repo.fetch_page(ViewMode.CURATE, 0, 10, filters=PhotoFilters(**criteria))


class TestFilters:
    @pytest.fixture
    def repo(self, tmp_path):
        rows = [
            _row(0, 0, width=4000, height=3000, camera_make="Canon", country_code="US"),
            _row(1, 1, width=3000, height=4000, camera_make="Canon", country_code="FR"),
            _row(2, 2, width=1000, height=1000, camera_make="Sony", rating=5),
            {"file_path": "/v/clip.mov", "date_time": "2023-01-01T10:00:00"},
            _row(4, 4, width=4000, height=3000, camera_make="Sony", file_format="HEIC"),
        ]
        path = tmp_path / "library.json"
        path.write_text(json.dumps({"photos": rows}), encoding="utf-8")
        return JsonLibraryRepository(path)

    def test_values_within_one_filter_are_alternatives(self, repo):
        filters = PhotoFilters(countries=("US", "FR"))
        page = repo.fetch_page(ViewMode.CURATE, 0, 10, filters=filters)
        assert _paths(page) == ["/photos/img_000.jpg", "/photos/img_001.jpg"]

    def test_separate_filters_must_all_match(self, repo):
        filters = PhotoFilters(camera_makes=("Sony",), orientation=Orientation.LANDSCAPE)
        page = repo.fetch_page(ViewMode.CURATE, 0, 10, filters=filters)
        assert _paths(page) == ["/photos/img_004.jpg"]
        assert page.total_records == 1

    def test_media_type_and_year(self, repo):
        videos = _filtered(repo, media_type=MediaType.VIDEOS)
        assert _paths(videos) == ["/v/clip.mov"]
        dated = _filtered(repo, years=(2024,))
        assert len(dated.photos) == 4

    def test_file_format_defaults_to_extension(self, repo):
        page = _filtered(repo, file_formats=("heic",))
        assert _paths(page) == ["/photos/img_004.jpg"]
        jpgs = _filtered(repo, file_formats=("jpg",))
        assert len(jpgs.photos) == 3

    def test_paging_and_overlays_use_filtered_photos(self, repo):
        filters = PhotoFilters(camera_makes=("Canon", "Sony"))
        page = repo.fetch_page(ViewMode.CURATE, 1, 2, filters=filters)
        assert _paths(page) == ["/photos/img_001.jpg", "/photos/img_002.jpg"]
        assert page.total_records == 4
        assert sum(g.photo_count for g in page.groups) == 2

    def test_filter_options(self, repo):
        options = repo.filter_options()
        assert options.camera_makes == ["Canon", "Sony"]
        assert options.countries == ["FR", "US"]
        assert options.file_formats == ["heic", "jpg", "mov"]
        assert options.years == [2024, 2023]

    def test_filter_options_on_corrupt_file(self, tmp_path):
        path = tmp_path / "library.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(PageFetchError):
            JsonLibraryRepository(path).filter_options()


class TestLoad:
    def test_sorted_with_undated_last_and_bad_rows_skipped(self, tmp_path):
        path = tmp_path / "library.json"
        rows = [
            {"file_path": "/u.jpg"},
            {"file_path": ""},
            _row(2, minutes=30),
            _row(1, minutes=5),
        ]
        path.write_text(json.dumps({"photos": rows}), encoding="utf-8")
        photos = JsonLibraryRepository(path).load()
        assert [p.file_path for p in photos] == [
            "/photos/img_001.jpg",
            "/photos/img_002.jpg",
            "/u.jpg",
        ]

    def test_row_parsing(self):
        photo = photo_from_dict(
            {"file_path": "/v/clip.MP4", "rating": "9", "is_curated": "true", "latitude": "x"}
        )
        assert photo.is_video
        assert photo.rating == 5
        assert photo.is_curated
        assert photo.latitude is None
        assert photo.file_format == "mp4"
        assert (photo.width, photo.height) == (0, 0)

    def test_camera_and_dimension_fields(self):
        photo = photo_from_dict(
            {
                "file_path": "/p/a.jpg",
                "width": "6000",
                "height": 4000,
                "camera_make": "FUJIFILM",
                "camera_model": "X-T5",
                "file_format": "RAF",
            }
        )
        assert (photo.width, photo.height) == (6000, 4000)
        assert (photo.camera_make, photo.camera_model) == ("FUJIFILM", "X-T5")
        assert photo.file_format == "raf"

    def test_row_without_path_raises(self):
        with pytest.raises(ValueError):
            photo_from_dict({"rating": 1})


class TestCurate:
    def test_persists_flags(self, repo, library):
        repo.curate("/photos/img_001.jpg", True, False, 4)
        photo = next(p for p in JsonLibraryRepository(library).load() if p.key.endswith("001.jpg"))
        assert photo.is_curated and not photo.is_trashed
        assert photo.rating == 4
        assert len(repo.fetch_page(ViewMode.CURATE, 0, 100).photos) == 4
        assert not list(library.parent.glob("*.tmp"))

    def test_unknown_photo_raises(self, repo):
        with pytest.raises(CurationError):
            repo.curate("/photos/missing.jpg", True, False, 0)

    def test_unreadable_library_raises(self, tmp_path):
        path = tmp_path / "library.json"
        path.write_text("[", encoding="utf-8")
        with pytest.raises(CurationError):
            JsonLibraryRepository(path).curate("/a.jpg", True, False, 0)


def test_from_settings_reads_thresholds(tmp_path):
    settings = {"grouping.enabled": False, "bursts.dhash_threshold": 7}

    class _Settings:
        def get(self, key, default=None):
            return settings.get(key, default)

    repo = JsonLibraryRepository.from_settings(_Settings(), tmp_path / "library.json")
    assert repo.path == tmp_path / "library.json"
    assert repo._group_photos is False
    assert repo._burst_dhash == 7


def test_scalar_library_raises_curation_error(tmp_path):
    path = tmp_path / "library.json"
    path.write_text("3", encoding="utf-8")
    with pytest.raises(CurationError):
        JsonLibraryRepository(path).curate("/a.jpg", True, False, 0)
