"""
Error types raised while resolving a track to a YouTube video.

Errors raised for a single search entry derive from ``CandidateRejectedError``
and are recoverable: the caller drops that entry and pulls the next one.
``FetchError`` and ``ExhaustedError`` end the search for the current track.
"""


class TrackResolverError(Exception):
    """Base class for all resolver errors."""

    def __init__(self, message: str = "Track resolution failed."):
        self.message = message
        super().__init__(self.message)


class FetchError(TrackResolverError):
    """Raised when no search document can be retrieved for a query."""

    def __init__(self, url: str, cause: str = ""):
        self.url = url
        self.cause = cause
        super().__init__(f'Cannot retrieve doc from "{url}": {cause}')


class ExhaustedError(TrackResolverError):
    """Raised when the result set has no entries left."""

    def __init__(self, message: str = "No more results left on page."):
        super().__init__(message)


class NotAVideoURLError(TrackResolverError):
    """Raised when a URL does not point to a YouTube video."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"URL {url} doesn't seem to be pointing to any YouTube video.")


class DownloadFailedError(TrackResolverError):
    """Raised when yt-dlp could not fetch or convert a matched video."""

    def __init__(self, url: str, detail: str = ""):
        self.url = url
        self.detail = detail
        super().__init__(f"Something went wrong while downloading {url}: {detail}")


class CandidateRejectedError(TrackResolverError):
    """Base class for recoverable, per-entry rejections."""


class MalformedEntryError(CandidateRejectedError):
    """Raised when a search entry lacks one or more required fields."""

    FIELDS = ("url", "title", "user", "duration")

    def __init__(self, missing: list[str], url: str | None = None):
        self.missing = list(missing)
        self.url = url
        flags = ", ".join(
            f"{name} is {'false' if name in self.missing else 'true'}" for name in self.FIELDS
        )
        super().__init__(f"Non-standard YouTube video entry structure: {flags}.")


class PlaylistURLError(CandidateRejectedError):
    """Raised when a search entry links to a playlist."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Playlist URL found: {url}")


class AdvertisingURLError(CandidateRejectedError):
    """Raised when a search entry links to something other than a video."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Advertising URL found: {url}")


class StructuralMismatchError(CandidateRejectedError):
    """Raised when a candidate URL points to a playlist or a user channel."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Track is actually pointing to playlist or user: {url}")


class DurationMismatchError(CandidateRejectedError):
    """Raised when a candidate's duration is outside the tolerated range."""

    def __init__(self, expected: int, actual: int, tolerance: int):
        self.expected = expected
        self.actual = actual
        self.delta = abs(expected - actual)
        self.tolerance = tolerance
        super().__init__(
            f"The duration difference is excessive: | {expected} - {actual} | = {self.delta} "
            f"(max tolerated: {tolerance})"
        )


class TitleMismatchError(CandidateRejectedError):
    """Raised when a candidate's title does not look like the requested track."""

    def __init__(self, title: str, expected: str, reason: str):
        self.title = title
        self.expected = expected
        self.reason = reason
        super().__init__(f'Title "{title}" does not match "{expected}": {reason}')
