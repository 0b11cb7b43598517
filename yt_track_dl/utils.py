"""
Utility functions for the YouTube track resolver.
"""

import csv
import logging
import re
import sys
import threading
import unicodedata
from datetime import datetime
from pathlib import Path
from typing import Optional


def configure_logging(verbosity: str, log_file: Path, enable_csv_logging: bool = False) -> None:
    """Configure root logger with console and file handlers.

    Console output honours ``verbosity``; the log file always receives DEBUG
    records so rejected candidates can be inspected after a run.

    Parameters
    ----------
    verbosity: str
        One of DEBUG, INFO, WARNING, ERROR.
    log_file: Path
        File path to write detailed logs.
    enable_csv_logging: bool
        Whether to also write one CSV row per processed track.

    Examples
    --------
    >>> configure_logging("INFO", Path("logs/run.log"))
    # INFO on the console, DEBUG in logs/run.log
    """
    level = getattr(logging, verbosity.upper(), logging.INFO)
    log_format = "%(asctime)s | %(levelname)-8s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers if reconfiguring
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream=sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    root_logger.csv_logging_enabled = enable_csv_logging
    if enable_csv_logging:
        root_logger.csv_log_file = log_file.parent / f"{log_file.stem}_tracks.csv"
        _init_csv_log_file(root_logger.csv_log_file)


def _init_csv_log_file(csv_file: Path) -> None:
    """Initialize CSV log file with headers."""
    csv_file.parent.mkdir(parents=True, exist_ok=True)

    # Only write headers if file doesn't exist or is empty
    if not csv_file.exists() or csv_file.stat().st_size == 0:
        with csv_file.open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow([
                "timestamp",
                "thread_id",
                "track_index",
                "track",
                "url",
                "success",
                "reason",
                "duration_ms",
                "status",
            ])


def log_download_result_csv(
    track: str,
    url: Optional[str],
    success: bool,
    reason: Optional[str] = None,
    track_index: Optional[int] = None,
    duration_ms: Optional[float] = None,
    status: str = "completed",
) -> None:
    """Append one row describing a track's progress to the CSV log.

    Does nothing unless ``configure_logging`` was called with
    ``enable_csv_logging=True``.
    """
    logger = logging.getLogger()
    if not getattr(logger, "csv_logging_enabled", False):
        return

    try:
        with logger.csv_log_file.open("a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow([
                datetime.now().isoformat(),
                threading.get_ident(),
                track_index or "",
                track,
                url or "",
                success,
                reason or "",
                f"{duration_ms:.0f}" if duration_ms is not None else "",
                status,
            ])
    except OSError as error:
        logging.error("Failed to write CSV log row: %s", error)


def get_csv_log_file() -> Optional[Path]:
    """Get the path to the CSV log file if CSV logging is enabled."""
    logger = logging.getLogger()
    if getattr(logger, "csv_logging_enabled", False):
        return logger.csv_log_file
    return None


def ensure_ffmpeg_available() -> None:
    """Best-effort check that ffmpeg is available on PATH.

    yt-dlp needs ffmpeg to extract and convert the audio stream; a missing
    binary is logged rather than raised so that listing runs still work.
    """
    from shutil import which

    if which("ffmpeg") is None:
        logging.warning(
            "ffmpeg not found on PATH. Audio extraction will fail. Please install ffmpeg."
        )


def _normalize_text(text: str) -> str:
    """Lowercase, strip punctuation and extra whitespace for robust matching.

    Examples
    --------
    >>> _normalize_text("Hello, World! (Official Video)")
    'hello world official video'

    >>> _normalize_text("   Multiple    Spaces   ")
    'multiple spaces'
    """
    # Unicode-aware folding and normalization for non-Latin scripts
    lowered = unicodedata.normalize("NFKC", text).casefold().strip()
    cleaned = re.sub(r"[^\w]+", " ", lowered, flags=re.UNICODE)
    return re.sub(r"\s+", " ", cleaned).strip()


_NOISE_PATTERNS = [
    r"\bofficial\s*music\s*video\b",
    r"\bofficial\s*video\b",
    r"\bofficial\b",
    r"\bvideo\b",
    r"\blyrics?\b",
    r"\baudio\b",
    r"\bmv\b",
    r"\bhd\b",
    r"\b4k\b",
    r"\bremaster(ed)?\b",
    r"\b(feat|ft)\.?\b",
    r"\bclip\b",
    r"\b(19|20)\d{2}\b",
]


def _strip_common_noise(text: str) -> str:
    """Remove frequent noise terms in YouTube titles (e.g., official video, lyrics).

    Variant markers such as live, cover or remix are kept: they decide
    whether a video is the same recording and are checked by
    ``_title_flags``.

    Examples
    --------
    >>> _strip_common_noise("Shape of You - Ed Sheeran (Official Video)")
    'shape of you ed sheeran'

    >>> _strip_common_noise("Song Title (Remastered) [HD]")
    'song title'
    """
    result = re.sub(r"[\(\)\[\]\{\}]+", " ", text)
    for pat in _NOISE_PATTERNS:
        result = re.sub(pat, " ", result, flags=re.IGNORECASE)
    return _normalize_text(result)


def _tokenize(text: str) -> list[str]:
    """Split normalized text into word tokens.

    >>> _tokenize("The Beatles - Hey Jude")
    ['the', 'beatles', 'hey', 'jude']
    """
    norm = _normalize_text(text)
    return [t for t in norm.split(" ") if t]


def _title_flags(text: str) -> dict:
    """Detect markers of alternative recordings in a title."""
    tokens = set(_tokenize(text))
    norm = _normalize_text(text)
    return {
        "live": "live" in tokens,
        "cover": "cover" in tokens,
        "remix": "remix" in tokens or "rmx" in tokens,
        "karaoke": "karaoke" in tokens,
        "instrumental": "instrumental" in tokens,
        "acoustic": "acoustic" in tokens,
        "reversed": "reversed" in tokens or "reverse" in tokens,
        "sped_up": "sped up" in norm or "nightcore" in tokens,
    }


__all__ = [
    "configure_logging",
    "log_download_result_csv",
    "get_csv_log_file",
    "ensure_ffmpeg_available",
    "_normalize_text",
    "_strip_common_noise",
    "_tokenize",
    "_title_flags",
]
