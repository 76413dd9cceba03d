"""Tests for time/location grouping and burst detection."""

from datetime import datetime, timedelta

import pytest

from core.models import Photo
from core.services.grouping_service import (
    detect_bursts,
    detect_groups,
    format_location,
    hamming_distance,
    haversine_km,
)

T0 = datetime(2024, 5, 1, 9, 0, 0)


def _photo(i, minutes=0.0, seconds=0.0, **kwargs):
    return Photo(
        file_path=f"/photos/img_{i:03d}.jpg",
        date_time=T0 + timedelta(minutes=minutes, seconds=seconds),
        **kwargs,
    )


def _counts(groups):
    return [g.photo_count for g in groups]


class TestDetectGroups:
    def test_empty(self):
        assert detect_groups([]) == []

    def test_time_gap_starts_new_group(self):
        photos = [_photo(0, 0), _photo(1, 60), _photo(2, 200)]
        groups = detect_groups(photos)
        assert _counts(groups) == [2, 1]
        assert [g.group_id for g in groups] == [1, 2]

    def test_long_session_is_split_at_max_duration(self):
        photos = [_photo(i, i * 100) for i in range(10)]
        assert _counts(detect_groups(photos)) == [8, 2]

    def test_distance_starts_new_group(self):
        photos = [
            _photo(0, 0, latitude=0.0, longitude=0.0),
            _photo(1, 1, latitude=0.001, longitude=0.0),
            _photo(2, 2, latitude=0.1, longitude=0.0),
        ]
        assert _counts(detect_groups(photos)) == [2, 1]

    def test_undated_photos_join_current_group(self):
        photos = [_photo(0, 0), Photo(file_path="/photos/undated.jpg"), _photo(2, 1)]
        groups = detect_groups(photos)
        assert _counts(groups) == [3]
        assert groups[0].start_time == T0
        assert groups[0].end_time == T0 + timedelta(minutes=1)

    def test_undated_first_photo_takes_times_from_later_photos(self):
        photos = [Photo(file_path="/photos/undated.jpg"), _photo(1, 5)]
        groups = detect_groups(photos)
        assert _counts(groups) == [2]
        assert groups[0].start_time == T0 + timedelta(minutes=5)

    def test_groups_partition_the_list(self):
        photos = [_photo(i, i * 37) for i in range(25)]
        assert sum(_counts(detect_groups(photos))) == 25

    def test_summary_fields(self):
        photos = [
            _photo(0, 0, file_size_bytes=100, city="Taipei", country_code="TW"),
            _photo(1, 3, file_size_bytes=50),
        ]
        (group,) = detect_groups(photos)
        assert group.total_size == 150
        assert group.location == "Taipei, TW"

    def test_custom_thresholds(self):
        photos = [_photo(0, 0), _photo(1, 10)]
        assert _counts(detect_groups(photos, time_gap_minutes=5)) == [1, 1]


class TestDetectBursts:
    HASH = "00000000000000ff"

    def test_rapid_similar_shots_form_a_burst(self):
        photos = [
            _photo(0, seconds=0, dhash=self.HASH),
            _photo(1, seconds=1, dhash="00000000000000fe"),
            _photo(2, seconds=30, dhash=self.HASH),
        ]
        bursts = detect_bursts(photos)
        assert len(bursts) == 1
        assert (bursts[0].start_index, bursts[0].count) == (0, 2)
        assert bursts[0].burst_id == "burst-1"

    def test_time_window_is_measured_from_first_shot(self):
        photos = [_photo(i, seconds=i * 2, dhash=self.HASH) for i in range(3)]
        bursts = detect_bursts(photos)
        assert [(b.start_index, b.count) for b in bursts] == [(0, 2)]

    def test_dissimilar_hash_breaks_run(self):
        photos = [
            _photo(0, seconds=0, dhash=self.HASH),
            _photo(1, seconds=1, dhash="ffffffffffffff00"),
        ]
        assert detect_bursts(photos) == []

    def test_missing_hash_breaks_run(self):
        photos = [
            _photo(0, seconds=0, dhash=self.HASH),
            _photo(1, seconds=1),
            _photo(2, seconds=2, dhash=self.HASH),
        ]
        assert detect_bursts(photos) == []

    def test_bad_hash_breaks_run(self):
        photos = [_photo(0, seconds=0, dhash=self.HASH), _photo(1, seconds=1, dhash="zz")]
        assert detect_bursts(photos) == []

    def test_bursts_are_disjoint(self):
        photos = [_photo(i, seconds=i, dhash=self.HASH) for i in range(3)]
        photos += [_photo(3 + i, minutes=5, seconds=i, dhash=self.HASH) for i in range(2)]
        bursts = detect_bursts(photos)
        assert [(b.start_index, b.count) for b in bursts] == [(0, 3), (3, 2)]
        assert [b.burst_id for b in bursts] == ["burst-1", "burst-2"]


def test_haversine_one_degree_of_longitude_at_equator():
    assert haversine_km(0, 0, 0, 1) == pytest.approx(111.19, abs=0.01)


def test_hamming_distance():
    assert hamming_distance("ff", "0f") == 4
    with pytest.raises(ValueError):
        hamming_distance("zz", "00")


def test_format_location_skips_missing_parts():
    assert format_location(Photo(file_path="a", city="Kyoto", country_code="JP")) == "Kyoto, JP"
    assert format_location(Photo(file_path="a")) is None
