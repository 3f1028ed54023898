"""
timelinegpx — GPX Waypoint Reader & Writer

Exports location records as a minimal GPX document (one <wpt> per record,
each carrying a <time>) and imports the waypoints of any GPX document back
into records. Import is tolerant: a waypoint with bad coordinates or a bad
timestamp is dropped and logged, the rest of the file still loads.
"""

from __future__ import annotations
import logging
import re
import xml.etree.ElementTree as ET
from contextlib import closing
from datetime import datetime, timedelta
from typing import BinaryIO, Callable, Iterable, List, Optional, Tuple
from xml.sax.saxutils import escape

from .models import LocationRecord, LocationTimeline

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

SOFT_NAME = "timelinegpx"
SOFT_VERSION = "1.0"
SOFT_FULL_NAME = f"{SOFT_NAME} v{SOFT_VERSION}"

EXPORT_TITLE = "Exported from Open Timeline"
TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
IMPORTED_RECORD_ID = 1  # GPX has no record ids
READ_CHUNK_SIZE = 64 * 1024


class GpxError(Exception):
    """Base class for document and stream level GPX failures."""


class GpxIOError(GpxError, OSError):
    """The underlying byte stream could not be read or written."""


class GpxMalformedError(GpxError, ValueError):
    """The document is not well-formed XML."""


class TimestampError(ValueError):
    """Text does not match the GPX timestamp pattern."""


def _io(action: str, func: Callable, *args):
    # Closed streams raise ValueError rather than OSError
    try:
        return func(*args)
    except (OSError, ValueError) as e:
        raise GpxIOError(f"GPX {action} failed: {e}") from e


# ─────────────────────────────────────────────────────────────
# Timestamps - YYYY-MM-DDTHH:MM:SSZ, always UTC
# ─────────────────────────────────────────────────────────────

_EPOCH = datetime(1970, 1, 1)
_TIME_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}Z")


def encode_timestamp(epoch_millis: int) -> str:
    """
    Format epoch milliseconds as a UTC GPX timestamp.
    Sub-second precision is truncated to the containing second. Only years
    1 to 9999 are representable; anything else raises ValueError.
    """
    try:
        dt = _EPOCH + timedelta(seconds=epoch_millis // 1000)
    except OverflowError as e:
        raise ValueError(f"Epoch milliseconds out of range: {epoch_millis}") from e
    return dt.isoformat(timespec="seconds") + "Z"


def decode_timestamp(text: str) -> int:
    """Parse a UTC GPX timestamp into epoch milliseconds."""
    if not isinstance(text, str) or not _TIME_RE.fullmatch(text):
        raise TimestampError(f"Not a GPX timestamp: {text!r}")
    try:
        dt = datetime.strptime(text, TIME_FORMAT)
    except ValueError as e:
        raise TimestampError(f"Not a GPX timestamp: {text!r} ({e})") from e
    return (dt - _EPOCH) // timedelta(seconds=1) * 1000


# ─────────────────────────────────────────────────────────────
# Export
# ─────────────────────────────────────────────────────────────

def _waypoint_line(record: LocationRecord) -> str:
    return '<wpt lat="%f" lon="%f"><time>%s</time></wpt>\n' % (
        record.latitude, record.longitude, encode_timestamp(record.record_time))


def export_gpx(records: Iterable[LocationRecord], sink: BinaryIO, title: str = EXPORT_TITLE):
    """
    Write records to sink as GPX waypoints, in input order.

    The sink is closed on return, whether or not writing succeeded. A failed
    write raises GpxIOError and leaves whatever was already written.
    """
    def _write(text: str):
        _io("write", sink.write, text.encode("utf-8"))

    written = 0
    failed = True
    try:
        _write('<?xml version="1.0"?>\n')
        _write("<gpx>\n")
        _write(f"<name>{escape(title)}</name>\n")
        for record in records:
            _write(_waypoint_line(record))
            logger.info("Writing location at time %d with lat %s and lon %s",
                        record.record_time, record.latitude, record.longitude)
            written += 1
        _write("</gpx>\n")
        _io("flush", sink.flush)
        failed = False
    finally:
        try:
            _io("close", sink.close)
        except GpxIOError as e:
            # A buffered sink retries its failed flush on close; keep the first error
            if not failed:
                raise
            logger.debug("Ignoring close failure after aborted export: %s", e)
    logger.info("Exported %d waypoints", written)


# ─────────────────────────────────────────────────────────────
# Import
# ─────────────────────────────────────────────────────────────

def _local_name(tag: str) -> str:
    return tag.rpartition("}")[2].lower()


class _WaypointReader:
    """
    Turns pull-parser events into records. One instance per import.

    Idle -> in waypoint on <wpt>, -> awaiting time text on a <time> inside
    it, and back to idle once that <time> closes or the <wpt> ends.
    """

    def __init__(self):
        self.records: List[LocationRecord] = []
        self._in_waypoint = False
        self._coords: Optional[Tuple[float, float]] = None
        self._time_elem: Optional[ET.Element] = None
        self.root: Optional[ET.Element] = None
        self._depth = 0

    def _reset(self):
        self._in_waypoint = False
        self._coords = None
        self._time_elem = None

    def start(self, elem: ET.Element):
        if self.root is None:
            self.root = elem
        self._depth += 1
        name = _local_name(elem.tag)
        if name == "wpt":
            self._reset()
            self._in_waypoint = True
            self._coords = self._parse_coords(elem)
        elif name == "time" and self._in_waypoint and self._coords and self._time_elem is None:
            self._time_elem = elem

    def end(self, elem: ET.Element):
        self._depth -= 1
        if elem is self._time_elem:
            # itertext joins every text chunk delivered for this element
            self._emit("".join(elem.itertext()))
            self._reset()
        elif _local_name(elem.tag) == "wpt":
            if self._in_waypoint and self._coords:
                logger.debug("Waypoint at %s has no time, skipped", self._coords)
            self._reset()
            elem.clear()
        if self._depth == 1:
            # Finished top-level subtree (wpt, trk, metadata, ...)
            self.root.remove(elem)

    @staticmethod
    def _parse_coords(elem: ET.Element) -> Optional[Tuple[float, float]]:
        lat, lon = elem.get("lat"), elem.get("lon")
        try:
            return float(lat), float(lon)
        except (TypeError, ValueError):
            logger.warning("Failed to import waypoint with lat=%r lon=%r", lat, lon)
            return None

    def _emit(self, text: str):
        try:
            record_time = decode_timestamp(text)
        except TimestampError:
            logger.warning("Failed to import record: %r", text)
            return
        lat, lon = self._coords
        logger.info("Retrieved location at time %d with lat %s and lon %s", record_time, lat, lon)
        self.records.append(LocationRecord(IMPORTED_RECORD_ID, record_time, lat, lon))


def _drain(parser: ET.XMLPullParser, reader: _WaypointReader):
    try:
        for event, elem in parser.read_events():
            if event == "start":
                reader.start(elem)
            else:
                reader.end(elem)
    except ET.ParseError as e:
        raise GpxMalformedError(f"GPX document is not well-formed: {e}") from e


def import_gpx(source: BinaryIO, chunk_size: int = READ_CHUNK_SIZE) -> List[LocationRecord]:
    """
    Read every importable waypoint from source, in document order.

    Malformed waypoints are skipped. Raises GpxMalformedError when the
    document itself is broken and GpxIOError when source cannot be read.
    The source is closed on return.
    """
    reader = _WaypointReader()
    parser = ET.XMLPullParser(events=("start", "end"))
    with closing(source):
        while True:
            chunk = _io("read", source.read, chunk_size)
            if not chunk:
                break
            parser.feed(chunk)
            _drain(parser, reader)
        try:
            parser.close()
        except ET.ParseError as e:
            raise GpxMalformedError(f"GPX document is not well-formed: {e}") from e
        _drain(parser, reader)
    logger.info("Imported %d waypoints", len(reader.records))
    return reader.records


# ─────────────────────────────────────────────────────────────
# Files
# ─────────────────────────────────────────────────────────────

def read_gpx(filepath: str) -> List[LocationRecord]:
    """Import the waypoints of a GPX file."""
    return import_gpx(_io("open", open, filepath, "rb"))


def write_gpx(filepath: str, records: Iterable[LocationRecord], title: str = EXPORT_TITLE):
    """Export records to a GPX file."""
    export_gpx(records, _io("open", open, filepath, "wb"), title=title)


def refine_timeline(records: Iterable[LocationRecord], sort: bool = False, dedup: bool = False,
                    start: Optional[int] = None, end: Optional[int] = None) -> LocationTimeline:
    """Window by time, then de-duplicate, then sort. Returns a new timeline."""
    timeline = LocationTimeline(records)
    if start is not None or end is not None:
        timeline = timeline.between(start, end)
    if dedup:
        timeline.remove_duplicates()
    if sort:
        timeline.sort_by_time()
    return timeline


def convert(input_path: str, output_path: str, sort: bool = False, dedup: bool = False,
            start: Optional[int] = None, end: Optional[int] = None,
            title: str = EXPORT_TITLE) -> LocationTimeline:
    """Re-export a GPX file, optionally windowed, de-duplicated and sorted by time."""
    timeline = refine_timeline(read_gpx(input_path), sort=sort, dedup=dedup, start=start, end=end)
    write_gpx(output_path, timeline, title=title)
    return timeline
