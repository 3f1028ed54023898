"""Tests for LocationRecord, LocationTimeline and sample generation."""

import random

import pytest

from timelinegpx import LocationRecord, LocationTimeline, generate_sample_records
from timelinegpx.models import SAMPLE_START_MS, SAMPLE_END_MS


def _timeline(*times):
    return LocationTimeline(LocationRecord(i, t, float(i), float(-i)) for i, t in enumerate(times))


class TestLocationRecord:

    def test_key(self):
        assert LocationRecord(7, 1000, 1.5, 2.5).key == (1000, 1.5, 2.5)

    def test_copy_is_independent(self):
        rec = LocationRecord(1, 1000, 1.0, 2.0)
        dup = rec.copy()
        dup.latitude = 5.0
        assert rec.latitude == 1.0
        assert dup.key == (1000, 5.0, 2.0)

    def test_one_degree_of_latitude(self):
        a = LocationRecord(1, 0, 0.0, 0.0)
        b = LocationRecord(2, 0, 1.0, 0.0)
        assert a.distance_from(b) == pytest.approx(111195, rel=1e-3)


class TestLocationTimeline:

    def test_sequence_protocol(self):
        tl = _timeline(10, 20)
        assert len(tl) == 2
        assert tl
        assert tl[-1].record_time == 20
        assert [r.record_time for r in tl] == [10, 20]
        tl.clear()
        assert not tl

    def test_append_extend(self):
        tl = LocationTimeline()
        tl.append(LocationRecord(1, 5, 0.0, 0.0))
        tl.extend([LocationRecord(2, 6, 0.0, 0.0), LocationRecord(3, 7, 0.0, 0.0)])
        assert [r.record_id for r in tl] == [1, 2, 3]

    def test_sort_by_time_is_stable(self):
        tl = _timeline(30, 10, 20, 10)
        tl.sort_by_time()
        assert [(r.record_time, r.record_id) for r in tl] == [(10, 1), (10, 3), (20, 2), (30, 0)]

    def test_between_is_inclusive(self):
        tl = _timeline(10, 20, 30, 40)
        assert [r.record_time for r in tl.between(20, 30)] == [20, 30]

    def test_between_open_bounds(self):
        tl = _timeline(10, 20, 30)
        assert [r.record_time for r in tl.between(start=20)] == [20, 30]
        assert [r.record_time for r in tl.between(end=20)] == [10, 20]
        assert len(tl.between()) == 3

    def test_latest(self):
        assert _timeline(10, 40, 20).latest().record_time == 40
        assert LocationTimeline().latest() is None

    def test_remove_duplicates_keeps_first(self):
        tl = LocationTimeline([
            LocationRecord(1, 10, 1.0, 1.0),
            LocationRecord(2, 10, 1.0, 1.0),
            LocationRecord(3, 10, 1.0, 2.0),
        ])
        tl.remove_duplicates()
        assert [r.record_id for r in tl] == [1, 3]

    def test_bounds_and_span(self):
        tl = LocationTimeline([
            LocationRecord(1, 50, 10.0, -5.0),
            LocationRecord(2, 20, -3.0, 7.0),
        ])
        assert tl.bounds() == (-3.0, -5.0, 10.0, 7.0)
        assert tl.time_span() == (20, 50)

    def test_empty_bounds_and_span(self):
        tl = LocationTimeline()
        assert tl.bounds() == (0, 0, 0, 0)
        assert tl.time_span() is None
        assert tl.total_distance() == 0.0


class TestSampleRecords:

    def test_count_ids_and_ranges(self):
        recs = generate_sample_records(250, rng=random.Random(1))
        assert len(recs) == 250
        assert [r.record_id for r in recs] == list(range(1, 251))
        for r in recs:
            assert SAMPLE_START_MS <= r.record_time <= SAMPLE_END_MS
            assert -50.0 <= r.latitude <= 50.0
            assert -50.0 <= r.longitude <= 50.0
            assert round(r.latitude * 10) == pytest.approx(r.latitude * 10)

    def test_seeded_is_reproducible(self):
        a = generate_sample_records(20, rng=random.Random(9))
        b = generate_sample_records(20, rng=random.Random(9))
        assert a == b

    def test_custom_window(self):
        recs = generate_sample_records(10, start=1000, end=1000, rng=random.Random(0))
        assert {r.record_time for r in recs} == {1000}

    def test_inverted_window(self):
        with pytest.raises(ValueError):
            generate_sample_records(1, start=2000, end=1000)
