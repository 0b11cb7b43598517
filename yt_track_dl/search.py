"""
YouTube search page extraction.

A search results page is read through three CSS selections: the video links
(carrying ``href`` and ``title``), the byline blocks (uploader) and the
accessible duration labels. The three selections are index-aligned: position
``i`` in each refers to the same result. ``SearchResultSet`` walks them with a
shared cursor and turns each position into a ``Candidate`` or a typed error.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
from urllib.parse import quote_plus, urljoin

import requests
from bs4 import BeautifulSoup, Tag

from .config import (
    USER_AGENT,
    YOUTUBE_DESC_SELECTOR,
    YOUTUBE_DURATION_SELECTOR,
    YOUTUBE_QUERY_PATTERN,
    YOUTUBE_VIDEO_PREFIX,
    YOUTUBE_VIDEO_SELECTOR,
    get_runtime_config,
)
from .exceptions import (
    AdvertisingURLError,
    ExhaustedError,
    FetchError,
    MalformedEntryError,
    NotAVideoURLError,
    PlaylistURLError,
)
from .track import Track

SHORT_LINK_MARKER = "youtu.be/"
WATCH_MARKER = "watch?v="
PLAYLIST_MARKER = "&list="

Fetcher = Callable[..., str]


@dataclass(frozen=True)
class Candidate:
    """A search result that passed structural validation."""
    id: str
    url: str
    title: str
    user: str
    duration: int  # seconds
    track: Optional[Track] = field(default=None, repr=False, compare=False)


def fetch_document(url: str, headers: Optional[Dict[str, str]] = None) -> str:
    """GET ``url`` and return the response body."""
    config = get_runtime_config()
    response = requests.get(url, headers=headers, timeout=config.request_timeout)
    response.raise_for_status()
    return response.text


def build_query_url(search_pattern: str) -> str:
    """Return the results page URL for a search text (spaces become ``+``)."""
    return YOUTUBE_QUERY_PATTERN % quote_plus(search_pattern)


def fetch_result_set(track: Track, fetch: Fetcher = fetch_document) -> "SearchResultSet":
    """Search YouTube for ``track`` and return its lazily-read result set.

    The first request asks for English results so that duration labels use
    the ``Duration: m:ss`` form; if it fails the page is requested again
    without extra headers.

    Raises
    ------
    FetchError
        If neither request returned a document.
    """
    query_url = build_query_url(track.search_pattern)
    headers = {"Accept-Language": "en", "User-Agent": USER_AGENT}
    try:
        html = fetch(query_url, headers)
    except requests.RequestException as error:
        logging.debug("Search request for %s failed (%s); retrying without headers", query_url, error)
        try:
            html = fetch(query_url)
        except requests.RequestException as fallback_error:
            raise FetchError(query_url, str(fallback_error)) from fallback_error
    return SearchResultSet.from_html(html, track)


def parse_duration(text: str) -> Optional[int]:
    """Parse a duration label such as ``"Duration: 3:45."`` into seconds.

    Returns None when the label does not have the expected shape.
    """
    if ": " not in text:
        return None
    parts = text.split(": ")[1].split(":")
    if len(parts) < 2:
        return None
    minutes, seconds = parts[0], parts[1][:2]
    if not (minutes.isdecimal() and seconds.isdecimal()):
        return None
    return int(minutes) * 60 + int(seconds)


class SearchResultSet:
    """Cursor over the entries of one search results page."""

    def __init__(
        self,
        track: Optional[Track],
        links: List[Tag],
        descriptions: List[Tag],
        durations: List[Tag],
    ) -> None:
        self.track = track
        self._links = list(links)
        self._descriptions = list(descriptions)
        self._durations = list(durations)
        self._cursor = -1

    @classmethod
    def from_html(cls, html: str, track: Optional[Track] = None) -> "SearchResultSet":
        soup = BeautifulSoup(html, "html.parser")
        result_set = cls(
            track,
            soup.select(YOUTUBE_VIDEO_SELECTOR),
            soup.select(YOUTUBE_DESC_SELECTOR),
            soup.select(YOUTUBE_DURATION_SELECTOR),
        )
        logging.debug(
            "Search page: %d links, %d bylines, %d durations",
            len(result_set._links), len(result_set._descriptions), len(result_set._durations),
        )
        return result_set

    @property
    def cursor(self) -> int:
        """Index of the last entry returned by ``next``; -1 before the first pull."""
        return self._cursor

    def __len__(self) -> int:
        return len(self._links)

    def has_next(self) -> bool:
        return self._cursor + 1 < len(self._links)

    def next(self) -> Candidate:
        """Advance to the next entry and extract it.

        The cursor moves even when the entry is rejected, so calling ``next``
        again after an error moves on to the following entry.

        Raises
        ------
        ExhaustedError
            If there are no entries left.
        MalformedEntryError
            If the URL, title, uploader or duration could not be read.
        PlaylistURLError
            If the entry links to a playlist.
        AdvertisingURLError
            If the entry links to something other than a video.
        """
        if not self.has_next():
            raise ExhaustedError()
        self._cursor += 1
        position = self._cursor

        item = self._links[position]
        href = item.get("href")
        title = item.get("title")
        user = self._user_at(position)
        duration = self._duration_at(position)

        missing = [
            name
            for name, value in (("url", href), ("title", title), ("user", user), ("duration", duration))
            if value is None
        ]
        if missing:
            raise MalformedEntryError(missing, href)

        url = urljoin(YOUTUBE_VIDEO_PREFIX, href)
        lowered = url.lower()
        if SHORT_LINK_MARKER not in lowered and PLAYLIST_MARKER in lowered:
            raise PlaylistURLError(url)
        if SHORT_LINK_MARKER not in lowered and WATCH_MARKER not in lowered:
            raise AdvertisingURLError(url)

        return Candidate(
            id=extract_video_id(url),
            url=url,
            title=title,
            user=user,
            duration=duration,
            track=self.track,
        )

    def _user_at(self, position: int) -> Optional[str]:
        # Views shorter than the link list mean the field is absent.
        if position >= len(self._descriptions):
            return None
        anchor = self._descriptions[position].find("a")
        return anchor.get_text().strip() if anchor is not None else ""

    def _duration_at(self, position: int) -> Optional[int]:
        if position >= len(self._durations):
            return None
        return parse_duration(self._durations[position].get_text().strip())


def extract_video_id(url: str) -> str:
    """Return the video id of a ``youtu.be/ID`` or ``watch?v=ID`` URL.

    Trailing query parameters and playlist references are dropped.

    >>> extract_video_id("https://www.youtube.com/watch?v=abc123&list=PL1")
    'abc123'
    """
    lowered = url.lower()
    if SHORT_LINK_MARKER in lowered:
        id_part = url[lowered.index(SHORT_LINK_MARKER) + len(SHORT_LINK_MARKER):]
    elif WATCH_MARKER in lowered:
        id_part = url[lowered.index(WATCH_MARKER) + len(WATCH_MARKER):]
    else:
        raise NotAVideoURLError(url)
    id_part = id_part.split("?", 1)[0]
    return id_part.split("&list", 1)[0]


def validate_url(url: str) -> None:
    """Raise ``NotAVideoURLError`` unless ``url`` points to a YouTube video."""
    lowered = url.lower()
    if SHORT_LINK_MARKER not in lowered and WATCH_MARKER not in lowered:
        raise NotAVideoURLError(url)


__all__ = [
    "Candidate",
    "SearchResultSet",
    "build_query_url",
    "extract_video_id",
    "fetch_document",
    "fetch_result_set",
    "parse_duration",
    "validate_url",
]
