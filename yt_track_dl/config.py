"""
Configuration and data models for the YouTube track resolver.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .track import Track


# Search page structure. These follow YouTube's markup and must be updated
# when the results page layout changes.
YOUTUBE_QUERY_PATTERN = "https://www.youtube.com/results?search_query=%s"
YOUTUBE_VIDEO_PREFIX = "https://www.youtube.com"
YOUTUBE_VIDEO_SELECTOR = ".yt-uix-tile-link"
YOUTUBE_DESC_SELECTOR = ".yt-lockup-byline"
YOUTUBE_DURATION_SELECTOR = ".accessible-description"
YOUTUBE_DURATION_TOLERANCE = 20  # seconds

REQUEST_TIMEOUT = 15  # seconds
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class DownloadResult:
    """Result of resolving and downloading one track."""
    track: "Track"
    url: str | None
    success: bool
    reason: str | None = None


@dataclass
class RuntimeConfig:
    """Runtime configuration for the application."""
    duration_tolerance: int = YOUTUBE_DURATION_TOLERANCE
    title_min_coverage: float = 0.8
    request_timeout: float = REQUEST_TIMEOUT
    # Audio settings
    audio_quality: str = "0"  # ffmpeg VBR scale, 0 is best
    # Authentication settings
    cookies_file: str | None = None  # Path to cookies.txt file


# Module-global runtime configuration, populated in main()
_RUNTIME_CONFIG: RuntimeConfig = RuntimeConfig()


def get_runtime_config() -> RuntimeConfig:
    """Get the current runtime configuration."""
    return _RUNTIME_CONFIG


def set_runtime_config(config: RuntimeConfig) -> None:
    """Set the runtime configuration."""
    global _RUNTIME_CONFIG
    _RUNTIME_CONFIG = config
