"""
Candidate acceptance rules.

A candidate is accepted as soon as it passes every check; there is no
scoring, the first acceptable entry on the results page wins.
"""

import logging

from .config import get_runtime_config
from .exceptions import (
    CandidateRejectedError,
    DurationMismatchError,
    StructuralMismatchError,
)
from .search import PLAYLIST_MARKER, Candidate, SearchResultSet
from .track import Track

USER_MARKER = "/user/"


def evaluate(candidate: Candidate, track: Track) -> None:
    """Raise a ``CandidateRejectedError`` unless ``candidate`` matches ``track``.

    Checks, in order: duration within tolerance, URL not pointing to a
    playlist or user page, title accepted by ``Track.seems``.
    """
    tolerance = get_runtime_config().duration_tolerance
    if abs(track.duration - candidate.duration) > tolerance:
        raise DurationMismatchError(track.duration, candidate.duration, tolerance)
    lowered = candidate.url.lower()
    if PLAYLIST_MARKER in lowered or USER_MARKER in lowered:
        raise StructuralMismatchError(candidate.url)
    track.seems(candidate.title)


def find_match(result_set: SearchResultSet, track: Track) -> Candidate | None:
    """Return the first entry of ``result_set`` accepted by ``evaluate``.

    Rejected entries are logged and skipped. Returns None when the page runs
    out of entries.
    """
    while result_set.has_next():
        try:
            candidate = result_set.next()
            evaluate(candidate, track)
        except CandidateRejectedError as error:
            logging.debug("[%s] skipping result %d: %s", track, result_set.cursor + 1, error)
            continue
        logging.debug(
            "[%s] accepted result %d: %s (%s, %ds) by %s",
            track, result_set.cursor + 1, candidate.title, candidate.url, candidate.duration, candidate.user,
        )
        return candidate
    logging.debug("[%s] no acceptable result among %d entries", track, len(result_set))
    return None


__all__ = ["evaluate", "find_match"]
