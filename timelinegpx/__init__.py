"""
timelinegpx — Location Timeline GPX Codec
==========================================
Export recorded location samples to GPX waypoints and import them back.

Quick start:
    timelineconv in.gpx out.gpx --sort --dedup   # CLI
    timelineconv --info in.gpx                    # Show file info

Library:
    from timelinegpx import read_gpx, write_gpx, export_gpx, import_gpx
    records = read_gpx("locations.gpx")
    write_gpx("copy.gpx", records)
"""

from .models import LocationRecord, LocationTimeline, generate_sample_records
from .formats import (
    export_gpx, import_gpx, read_gpx, write_gpx, convert, refine_timeline,
    encode_timestamp, decode_timestamp,
    GpxError, GpxIOError, GpxMalformedError, TimestampError,
    EXPORT_TITLE, IMPORTED_RECORD_ID,
)

__version__ = "1.0.0"
__all__ = [
    "LocationRecord", "LocationTimeline", "generate_sample_records",
    "export_gpx", "import_gpx", "read_gpx", "write_gpx", "convert", "refine_timeline",
    "encode_timestamp", "decode_timestamp",
    "GpxError", "GpxIOError", "GpxMalformedError", "TimestampError",
    "EXPORT_TITLE", "IMPORTED_RECORD_ID",
]
