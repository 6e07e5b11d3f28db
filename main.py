#!/usr/bin/env python3
"""
Main entry point for the driver alertness engine.
Replays recorded face detector output (JSON Lines) through the engine and
prints the driver state for every frame.
"""

import argparse
import json
import os
import sys
from typing import Any, Iterable, Iterator, List, Optional, TextIO

from driver_alertness.core.engine import DriverStateEngine
from driver_alertness.core.observation import FaceObservation, DriverState, as_observation, first_face
from driver_alertness.utils.config import Config
from driver_alertness.utils.logger import logger, log_performance_metrics


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Driver alertness classification replay")

    parser.add_argument("input", nargs="?", default="-",
                       help="JSON Lines file with one detector record per frame (default: stdin)")
    parser.add_argument("--config", "-c", type=str, default="",
                       help="JSON configuration file (optional)")
    parser.add_argument("--save-config", type=str, default="",
                       help="Write the effective configuration to this file and exit")
    parser.add_argument("--status-text", "-t", action="store_true",
                       help="Print display text instead of state names")
    parser.add_argument("--summary", "-s", action="store_true",
                       help="Print a session summary at the end")
    parser.add_argument("--verbose", "-v", action="store_true",
                       help="Enable verbose output")

    return parser.parse_args(argv)


def parse_frame(line: str) -> Optional[FaceObservation]:
    """
    Decode one JSON Lines record.

    A record is ``null``, a single face object or a list of faces (only the
    first face is used; an empty list means no driver).

    Raises:
        ValueError: on invalid JSON or invalid face values
    """
    record: Any = json.loads(line)
    if isinstance(record, list):
        record = first_face(record)
    return as_observation(record)


def read_frames(stream: TextIO) -> Iterator[tuple]:
    """Yield (line number, observation) for every non-blank line."""
    for line_number, line in enumerate(stream, start=1):
        if not line.strip():
            continue
        try:
            observation = parse_frame(line)
        except ValueError as e:
            raise ValueError(f"line {line_number}: {e}") from e
        yield line_number, observation


@log_performance_metrics
def replay(engine: DriverStateEngine, frames: Iterable[tuple], out: TextIO, status_text: bool = False) -> int:
    """Run every frame through the engine; returns the number of frames."""
    frame_count = 0
    for _, observation in frames:
        state = engine.process(observation)
        frame_count += 1
        label = state.status_text if status_text else state.value
        out.write(f"{frame_count}\t{label}\n")
    return frame_count


def print_summary(engine: DriverStateEngine, out: TextIO) -> None:
    """Print the session summary."""
    summary = engine.get_session_summary()
    total = summary['frames_processed']

    out.write("=" * 60 + "\n")
    out.write("SESSION SUMMARY\n")
    out.write("=" * 60 + "\n")
    out.write(f"Total Frames: {total}\n")
    for state in DriverState:
        count = summary['state_counts'][state.value]
        percentage = (count / total * 100) if total else 0.0
        out.write(f"  {state.value}: {count} frames ({percentage:.1f}%)\n")
    out.write(f"Average Latency: {summary['avg_latency_ms']:.3f} ms\n")
    out.write(f"Max Latency: {summary['max_latency_ms']:.3f} ms\n")
    out.write("=" * 60 + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    args = parse_arguments(argv)

    logger.set_console_level("DEBUG" if args.verbose else "WARNING")

    if args.config and not os.path.exists(args.config):
        print(f"Config file not found: {args.config}", file=sys.stderr)
        return 1

    engine_config = Config(args.config) if args.config else Config()
    if not engine_config.validate_config():
        print("Invalid configuration. Exiting.", file=sys.stderr)
        return 1

    if args.save_config:
        engine_config.save_to_file(args.save_config)
        print(f"Configuration saved: {args.save_config}")
        return 0

    if args.verbose:
        logger.log_system_info(engine_config)

    engine = DriverStateEngine(engine_config)

    stream = sys.stdin
    if args.input != "-":
        try:
            stream = open(args.input, "r", encoding="utf-8")
        except OSError as e:
            logger.log_error_with_context(e, "opening input")
            return 1

    try:
        replay(engine, read_frames(stream), sys.stdout, status_text=args.status_text)
    except ValueError:
        # reported by log_performance_metrics
        return 1
    finally:
        if stream is not sys.stdin:
            stream.close()

    summary = engine.get_session_summary()
    logger.log_performance(summary['frames_processed'], summary['avg_latency_ms'], summary['max_latency_ms'])

    if args.summary:
        print_summary(engine, sys.stdout)

    return 0


if __name__ == "__main__":
    sys.exit(main())
