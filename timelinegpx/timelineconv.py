#!/usr/bin/env python3
"""
timelinegpx — Location Timeline Converter
================================
Inspect, filter and re-export GPX location timelines.

Usage:
    timelineconv input.gpx output.gpx                     # Re-export waypoints
    timelineconv input.gpx output.gpx --sort --dedup      # Clean up while copying
    timelineconv --info input.gpx                         # Show file info only
    timelineconv input.gpx out.gpx --since 2023-03-01T00:00:00Z
    timelineconv --sample 1000 --seed 7 sample.gpx        # Write generated test data
"""

from __future__ import annotations
import argparse
import logging
import random
import sys
from typing import List, Optional

from .models import LocationTimeline, generate_sample_records
from .formats import (
    GpxError, TimestampError, EXPORT_TITLE, SOFT_FULL_NAME,
    read_gpx, write_gpx, refine_timeline, encode_timestamp, decode_timestamp,
)


def format_distance(meters: float) -> str:
    """Format distance in human-readable form."""
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{meters:.0f} m"


def show_info(timeline: LocationTimeline, source: str = ""):
    """Display information about a location timeline."""
    if source:
        print(f"\n📁 Source: {source}")
    print(f"   Records: {len(timeline)}")
    if not timeline:
        return

    first_time, last_time = timeline.time_span()
    print(f"   From:    {encode_timestamp(first_time)}")
    print(f"   To:      {encode_timestamp(last_time)}")
    min_lat, min_lon, max_lat, max_lon = timeline.bounds()
    print(f"   Bounds:  ({min_lat:.6f}, {min_lon:.6f}) → ({max_lat:.6f}, {max_lon:.6f})")
    print(f"   Distance: {format_distance(timeline.total_distance())}")

    first = timeline[0]
    last = timeline[-1]
    print(f"   First:   {encode_timestamp(first.record_time)}  {first.latitude:.6f}, {first.longitude:.6f}")
    if len(timeline) > 1:
        print(f"   Last:    {encode_timestamp(last.record_time)}  {last.latitude:.6f}, {last.longitude:.6f}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="timelineconv",
        description=f"{SOFT_FULL_NAME} — Location Timeline Converter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s in.gpx out.gpx                  Re-export waypoints
  %(prog)s --info in.gpx                   Show file information
  %(prog)s in.gpx out.gpx --sort --dedup   Sort by time, drop duplicates
  %(prog)s --sample 500 sample.gpx         Write 500 generated records
        """)

    parser.add_argument("input", nargs="?", help="Input GPX file")
    parser.add_argument("outputs", nargs="*", help="Output GPX file(s)")
    parser.add_argument("--info", action="store_true", help="Show timeline info")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every waypoint read or written")
    parser.add_argument("--sort", action="store_true", help="Sort records by time")
    parser.add_argument("--dedup", action="store_true", help="Remove duplicate records")
    parser.add_argument("--since", type=str, help="Keep records at or after this time (YYYY-MM-DDTHH:MM:SSZ)")
    parser.add_argument("--until", type=str, help="Keep records at or before this time (YYYY-MM-DDTHH:MM:SSZ)")
    parser.add_argument("--title", type=str, default=EXPORT_TITLE, help="Title written to output files")

    sample_group = parser.add_argument_group("Sample data")
    sample_group.add_argument("--sample", type=int, default=0, metavar="N",
                              help="Generate N sample records instead of reading an input file")
    sample_group.add_argument("--seed", type=int, help="Random seed for --sample")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        start = decode_timestamp(args.since) if args.since else None
        end = decode_timestamp(args.until) if args.until else None
    except TimestampError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    # With --sample every positional argument is an output
    outputs = list(args.outputs)
    if args.sample > 0:
        if args.input:
            outputs.insert(0, args.input)
        source = f"{args.sample} generated records"
        timeline = LocationTimeline(generate_sample_records(args.sample, rng=random.Random(args.seed)))
    elif args.input:
        source = args.input
        try:
            timeline = LocationTimeline(read_gpx(args.input))
        except GpxError as e:
            print(f"❌ Error reading {args.input}: {e}", file=sys.stderr)
            return 1
    else:
        parser.print_help()
        return 1

    if not timeline:
        print(f"❌ No location records found in {source}", file=sys.stderr)
        return 1

    # Apply transforms
    before = len(timeline)
    timeline = refine_timeline(timeline, sort=args.sort, dedup=args.dedup, start=start, end=end)
    if args.verbose and len(timeline) != before:
        print(f"   🔄 Kept {len(timeline)} of {before} records")

    if args.info:
        show_info(timeline, source)

    if not outputs:
        if not args.info:
            print(f"✅ Read {len(timeline)} records from {source}")
            print("   (specify output file(s) to export, or use --info for details)")
        return 0

    for output_path in outputs:
        try:
            write_gpx(output_path, timeline, title=args.title)
            print(f"✅ Exported → {output_path} ({len(timeline)} waypoints)")
        except GpxError as e:
            print(f"❌ Error writing {output_path}: {e}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
