"""
Track descriptions consumed by the resolver.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .config import get_runtime_config
from .exceptions import TitleMismatchError
from .utils import _strip_common_noise, _title_flags, _tokenize

_ARTIST_STOPWORDS = {"the", "and", "feat", "ft", "featuring", "with"}
_FILENAME_FORBIDDEN = re.compile(r'[\\/:*?"<>|]+')
_BRACKETED_FEAT = re.compile(r"\s*[\(\[]\s*(?:feat|ft|featuring)\b\.?\s*([^\)\]]*)[\)\]]", re.IGNORECASE)
_TRAILING_FEAT = re.compile(r"\s+(?:feat|ft|featuring)\b\.?\s*(.*)$", re.IGNORECASE)
_GUEST_SEPARATORS = re.compile(r"\s*(?:,|&|\band\b)\s*", re.IGNORECASE)


def split_featurings(text: str) -> tuple[str, tuple[str, ...]]:
    """Split a ``(feat. Guest)`` or ``ft. Guest`` clause off ``text``.

    >>> split_featurings("Song (feat. Guest & Other)")
    ('Song', ('Guest', 'Other'))
    """
    guests: list[str] = []

    def collect(match: re.Match) -> str:
        guests.extend(g for g in _GUEST_SEPARATORS.split(match.group(1).strip()) if g)
        return ""

    stripped = _BRACKETED_FEAT.sub(collect, text)
    stripped = _TRAILING_FEAT.sub(collect, stripped)
    return stripped.strip(), tuple(guests)


@dataclass(frozen=True)
class Track:
    """A track to look up on YouTube.

    ``duration`` is in seconds. ``url`` optionally pins the track to a known
    video, bypassing the search. ``featurings`` lists guest artists; a video
    title naming one of them instead of the main artist is still accepted.
    """
    title: str
    artist: str
    duration: int
    url: str | None = None
    extension: str = ".mp3"
    featurings: tuple[str, ...] = ()
    album: str | None = None

    @property
    def search_pattern(self) -> str:
        return f"{self.artist} {self.title}".strip()

    @property
    def filename(self) -> str:
        """Filesystem-safe ``Artist - Title`` stem."""
        stem = f"{self.artist} - {self.title}" if self.artist else self.title
        return re.sub(r"\s+", " ", _FILENAME_FORBIDDEN.sub("", stem)).strip()

    def destination(self, output_dir: Path) -> Path:
        """Download path without extension."""
        return output_dir / self.filename

    def seems(self, candidate_title: str) -> None:
        """Raise ``TitleMismatchError`` unless ``candidate_title`` looks like this track."""
        config = get_runtime_config()
        candidate_tokens = set(_tokenize(candidate_title))

        # Guest names count as artist words, not as title words.
        bare_title, guests = split_featurings(self.title)
        title_tokens = _tokenize(_strip_common_noise(bare_title)) or _tokenize(bare_title)
        if title_tokens:
            found = sum(1 for token in title_tokens if token in candidate_tokens)
            coverage = found / len(title_tokens)
            if coverage < config.title_min_coverage:
                raise TitleMismatchError(
                    candidate_title,
                    self.search_pattern,
                    f"title coverage {coverage:.2f} below {config.title_min_coverage:.2f}",
                )

        artist_tokens = [t for t in _tokenize(self.artist) if t not in _ARTIST_STOPWORDS]
        guest_tokens = [
            t for name in (*self.featurings, *guests) for t in _tokenize(name) if t not in _ARTIST_STOPWORDS
        ]
        if artist_tokens and not any(token in candidate_tokens for token in (*artist_tokens, *guest_tokens)):
            raise TitleMismatchError(candidate_title, self.search_pattern, "artist not mentioned")

        wanted = _title_flags(self.title)
        for flag, present in _title_flags(candidate_title).items():
            if present and not wanted[flag]:
                raise TitleMismatchError(
                    candidate_title, self.search_pattern, f"unwanted {flag.replace('_', ' ')} version"
                )

    def __str__(self) -> str:
        return self.filename


def parse_track_duration(text: str) -> int:
    """Parse ``m:ss``, ``h:mm:ss`` or plain seconds into seconds."""
    parts = text.strip().split(":")
    if not parts or not all(p.isdigit() for p in parts) or len(parts) > 3:
        raise ValueError(f"Invalid duration: {text!r}")
    seconds = 0
    for part in parts:
        seconds = seconds * 60 + int(part)
    return seconds


def read_tracks(file_path: Path, extension: str = ".mp3") -> List[Track]:
    """Read tracks from a text file.

    Each non-empty, non-comment line has the form::

        Artist - Title | 3:45
        Artist - Title | 225 | https://youtu.be/VIDEO_ID
        Artist - Title (feat. Guest) | 3:45 | Album | https://youtu.be/VIDEO_ID

    Optional trailing fields are the album name and a URL pinning the track
    to a known video, in either order. Guests named in a ``feat.`` clause of
    the title become the track's ``featurings``.

    Raises
    ------
    FileNotFoundError
        If the specified file doesn't exist.
    ValueError
        If a line cannot be parsed; the message names the line number.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")
    tracks: List[Track] = []
    with file_path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            fields = [part.strip() for part in line.split("|")]
            if len(fields) not in (2, 3, 4) or " - " not in fields[0]:
                raise ValueError(f"{file_path}:{lineno}: expected 'Artist - Title | m:ss [| album] [| url]'")
            artist, title = (part.strip() for part in fields[0].split(" - ", 1))
            try:
                duration = parse_track_duration(fields[1])
            except ValueError as error:
                raise ValueError(f"{file_path}:{lineno}: {error}") from error
            url = album = None
            for extra in fields[2:]:
                if not extra:
                    continue
                if "://" in extra:
                    url = extra
                else:
                    album = extra
            _, featurings = split_featurings(title)
            tracks.append(
                Track(
                    title=title,
                    artist=artist,
                    duration=duration,
                    url=url,
                    extension=extension,
                    featurings=featurings,
                    album=album,
                )
            )
    logging.debug("Read %d tracks from %s", len(tracks), file_path)
    return tracks


__all__ = ["Track", "parse_track_duration", "read_tracks", "split_featurings"]
