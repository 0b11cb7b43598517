#!/usr/bin/env python3
"""
Main CLI entry point for the YouTube track resolver.

This is the command-line interface that uses the yt_track_dl package.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from yt_track_dl import RuntimeConfig, configure_logging, process_tracks, read_tracks, set_runtime_config
from yt_track_dl.config import YOUTUBE_DURATION_TOLERANCE
from yt_track_dl.download import list_matches_to_file
from yt_track_dl.utils import get_csv_log_file


def parse_args(argv: List[str]) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Find each track on YouTube by duration and title, then download its audio",
        epilog="""
Track file format (one per line, '#' starts a comment):
  Artist - Title | 3:45
  Artist - Title | 225 | https://youtu.be/VIDEO_ID

Examples:
  # Basic usage
  python main.py --input tracks.txt --output music

  # Accept larger duration differences
  python main.py --input tracks.txt --duration-tolerance 30

  # Only print the matched links
  python main.py --input tracks.txt --list-only --list-output links.txt
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--input", required=True, help="Path to tracks file")
    parser.add_argument("--output", default="downloads", help="Output directory for audio files")
    parser.add_argument("--delay", type=float, default=1.0, help="Delay between tracks in seconds")
    parser.add_argument(
        "--format",
        default="mp3",
        choices=["mp3", "m4a", "opus", "flac", "wav"],
        help="Audio format of the downloaded files",
    )
    parser.add_argument(
        "--audio-quality",
        default="0",
        help="ffmpeg audio quality passed to yt-dlp (0 is best)",
    )
    parser.add_argument(
        "--duration-tolerance",
        type=int,
        default=YOUTUBE_DURATION_TOLERANCE,
        help=f"Max seconds between track and video duration (default: {YOUTUBE_DURATION_TOLERANCE})",
    )
    parser.add_argument(
        "--title-min-coverage",
        type=float,
        default=0.8,
        help="Fraction of title words a video title must contain (0..1, default: 0.8)",
    )
    parser.add_argument(
        "--rate-limit-kbps",
        type=int,
        default=None,
        help="Limit download speed in KiB/s (e.g., 512). Omit to disable",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=1,
        help="Number of tracks to process in parallel (IO-bound). Default 1",
    )
    parser.add_argument(
        "--cookies-file",
        help="Path to cookies.txt file for YouTube authentication (handles age restrictions)",
    )
    parser.add_argument(
        "--list-only",
        action="store_true",
        help="Write matched links to a file instead of downloading",
    )
    parser.add_argument(
        "--list-output",
        default="links.txt",
        help="Path to write links when using --list-only",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level",
    )
    parser.add_argument(
        "--log-file",
        default="logs/run.log",
        help="Path to write detailed logs",
    )
    parser.add_argument(
        "--csv-logging",
        action="store_true",
        help="Write one CSV row per track next to the log file",
    )
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    input_path = Path(args.input).expanduser().resolve()
    output_dir = Path(args.output).expanduser().resolve()
    log_file = Path(args.log_file).expanduser().resolve()

    configure_logging(args.log_level, log_file, args.csv_logging)
    logging.info("Input file: %s", input_path)
    logging.info("Output dir: %s", output_dir)
    logging.debug("Log file: %s", log_file)
    if args.csv_logging:
        logging.info("CSV logging enabled: %s", get_csv_log_file())
    if getattr(args, "cookies_file", None):
        logging.info("Using cookies file for authentication: %s", args.cookies_file)

    try:
        tracks = read_tracks(input_path, extension=f".{args.format}")
    except (OSError, ValueError) as error:
        logging.error("Failed to read tracks: %s", error)
        return 1
    if not tracks:
        logging.warning("No tracks found in %s", input_path)
        return 0

    set_runtime_config(
        RuntimeConfig(
            duration_tolerance=int(args.duration_tolerance),
            title_min_coverage=float(args.title_min_coverage),
            audio_quality=str(args.audio_quality),
            cookies_file=str(args.cookies_file) if getattr(args, "cookies_file", None) else None,
        )
    )

    if args.list_only:
        list_output = Path(args.list_output).expanduser().resolve()
        logging.info("Listing matches only. Output file: %s", list_output)
        list_matches_to_file(tracks, list_output, float(args.delay))
        logging.info("Done writing links to %s", list_output)
        return 0

    results = process_tracks(
        tracks=tracks,
        output_dir=output_dir,
        delay_seconds=float(args.delay),
        rate_limit_kbps=args.rate_limit_kbps,
        concurrency=int(args.concurrency),
    )

    total = len(results)
    succeeded = sum(1 for r in results if r.success)
    failed = total - succeeded
    logging.info("Completed: %d succeeded, %d failed", succeeded, failed)
    for result in results:
        if not result.success:
            logging.info("  not downloaded: %s (%s)", result.track, result.reason)

    # Non-zero exit if any failed
    return 0 if failed == 0 else 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
