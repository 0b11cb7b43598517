"""
YouTube Track Resolver and Downloader Package

Finds the YouTube video matching a music track (duration and title) and
downloads its audio with yt-dlp.
"""

__version__ = "1.0.0"
__author__ = "YouTube Track Resolver Team"

from .config import RuntimeConfig, DownloadResult, set_runtime_config
from .search import Candidate, SearchResultSet, fetch_result_set, extract_video_id, validate_url
from .matching import evaluate, find_match
from .download import process_tracks, resolve_track
from .track import Track, read_tracks
from .utils import configure_logging

__all__ = [
    "RuntimeConfig",
    "DownloadResult",
    "set_runtime_config",
    "Candidate",
    "SearchResultSet",
    "fetch_result_set",
    "extract_video_id",
    "validate_url",
    "evaluate",
    "find_match",
    "process_tracks",
    "resolve_track",
    "Track",
    "read_tracks",
    "configure_logging",
]
