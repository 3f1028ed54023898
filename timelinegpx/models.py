"""
timelinegpx — Location Timeline Codec
Data models: LocationRecord, LocationTimeline
"""

from __future__ import annotations
import math
import random
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple


# Debug data window of the recording app: 2023-01-01 .. 2023-08-01 UTC
SAMPLE_START_MS = 1672531200000
SAMPLE_END_MS = 1690848000000
SAMPLE_COORD_RANGE = 500  # tenths of a degree


@dataclass
class LocationRecord:
    """A single location sample: UTC epoch milliseconds plus coordinates."""
    record_id: int
    record_time: int
    latitude: float
    longitude: float

    @property
    def key(self) -> Tuple[int, float, float]:
        return (self.record_time, self.latitude, self.longitude)

    def distance_from(self, other: LocationRecord) -> float:
        """Haversine distance in meters."""
        R = 6371000  # Earth radius in meters
        lat1, lat2 = math.radians(self.latitude), math.radians(other.latitude)
        dlat = math.radians(other.latitude - self.latitude)
        dlng = math.radians(other.longitude - self.longitude)
        a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
        return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    def copy(self) -> LocationRecord:
        return LocationRecord(self.record_id, self.record_time, self.latitude, self.longitude)


class LocationTimeline:
    """Ordered collection of location records."""

    def __init__(self, records: Iterable[LocationRecord] = ()):
        self._records: List[LocationRecord] = list(records)

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index) -> LocationRecord:
        return self._records[index]

    def __iter__(self) -> Iterator[LocationRecord]:
        return iter(self._records)

    def __bool__(self) -> bool:
        return len(self._records) > 0

    def append(self, record: LocationRecord):
        self._records.append(record)

    def extend(self, records: Iterable[LocationRecord]):
        self._records.extend(records)

    def clear(self):
        self._records.clear()

    def sort_by_time(self):
        # Stable, so records sharing a timestamp keep their relative order
        self._records.sort(key=lambda r: r.record_time)

    def between(self, start: Optional[int] = None, end: Optional[int] = None) -> LocationTimeline:
        """Records with start <= record_time <= end, in timeline order. A missing bound is open."""
        return LocationTimeline(r for r in self._records
                                if (start is None or r.record_time >= start)
                                and (end is None or r.record_time <= end))

    def latest(self) -> Optional[LocationRecord]:
        if not self._records:
            return None
        return max(self._records, key=lambda r: r.record_time)

    def remove_duplicates(self):
        seen = set()
        unique = []
        for r in self._records:
            if r.key not in seen:
                seen.add(r.key)
                unique.append(r)
        self._records = unique

    def bounds(self):
        """Returns (min_lat, min_lon, max_lat, max_lon)."""
        if not self._records:
            return (0, 0, 0, 0)
        lats = [r.latitude for r in self._records]
        lons = [r.longitude for r in self._records]
        return (min(lats), min(lons), max(lats), max(lons))

    def time_span(self) -> Optional[Tuple[int, int]]:
        if not self._records:
            return None
        times = [r.record_time for r in self._records]
        return (min(times), max(times))

    def total_distance(self) -> float:
        """Total distance in meters."""
        total = 0.0
        for i in range(1, len(self._records)):
            total += self._records[i - 1].distance_from(self._records[i])
        return total


def generate_sample_records(count: int = 1000,
                            start: int = SAMPLE_START_MS,
                            end: int = SAMPLE_END_MS,
                            rng: Optional[random.Random] = None) -> List[LocationRecord]:
    """
    Random records for exercising import/export by hand. Times are uniform in
    [start, end]; coordinates fall on a 0.1 degree grid within +/-50 degrees.
    """
    if end < start:
        raise ValueError(f"Sample window ends before it starts: {start} > {end}")
    rng = rng or random.Random()
    records = []
    for i in range(count):
        lat = rng.randint(-SAMPLE_COORD_RANGE, SAMPLE_COORD_RANGE) / 10
        lon = rng.randint(-SAMPLE_COORD_RANGE, SAMPLE_COORD_RANGE) / 10
        records.append(LocationRecord(i + 1, rng.randint(start, end), lat, lon))
    return records
