"""
Resolve tracks to YouTube videos and download their audio with yt-dlp.
"""

import logging
import time
from pathlib import Path
from typing import Iterable, List

# yt-dlp will be imported when needed in functions

from .config import DownloadResult, get_runtime_config
from .exceptions import DownloadFailedError, FetchError, TrackResolverError
from .matching import find_match
from .search import Candidate, extract_video_id, fetch_result_set, validate_url
from .track import Track
from .utils import ensure_ffmpeg_available, log_download_result_csv


def build_ydl_opts(
    destination: Path,
    extension: str = ".mp3",
    audio_quality: str = "0",
    rate_limit_kbps: int | None = None,
    cookies_file: str | None = None,
) -> dict:
    """Create yt-dlp options extracting the best audio stream to ``destination``.

    Args:
        destination: Output path without extension
        extension: Target file extension, e.g. ".mp3"; selects the codec
        audio_quality: ffmpeg quality for the extracted audio ("0" is best)
        rate_limit_kbps: Download speed limit in KiB/s
        cookies_file: Path to cookies.txt file for authentication
    """
    ydl_opts: dict = {
        "quiet": True,
        "noprogress": True,
        "outtmpl": f"{destination}.%(ext)s",
        "format": "bestaudio",
        "noplaylist": True,
        "postprocessors": [
            {
                "key": "FFmpegExtractAudio",
                "preferredcodec": extension.lstrip(".").lower(),
                "preferredquality": audio_quality,
            }
        ],
    }

    if cookies_file:
        ydl_opts["cookiefile"] = cookies_file
        logging.debug("Using cookies file for authentication: %s", cookies_file)

    if rate_limit_kbps and rate_limit_kbps > 0:
        # yt-dlp expects bytes per second
        ydl_opts["ratelimit"] = int(rate_limit_kbps * 1024)

    return ydl_opts


def download_candidate(
    candidate: Candidate,
    destination: Path,
    extension: str = ".mp3",
    rate_limit_kbps: int | None = None,
) -> None:
    """Download ``candidate`` and convert it to ``destination`` + ``extension``.

    Raises
    ------
    DownloadFailedError
        If yt-dlp reports an error or a non-zero return code.
    """
    import yt_dlp  # type: ignore
    from yt_dlp.utils import DownloadError  # type: ignore

    config = get_runtime_config()
    ydl_opts = build_ydl_opts(destination, extension, config.audio_quality, rate_limit_kbps, config.cookies_file)
    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            retcode = ydl.download([candidate.url])
    except DownloadError as error:
        raise DownloadFailedError(candidate.url, str(error)) from error
    if retcode:
        raise DownloadFailedError(candidate.url, f"yt-dlp returned {retcode}")


def resolve_track(track: Track) -> Candidate | None:
    """Return the video to download for ``track``, or None if nothing matched.

    A track pinned to a URL skips the search entirely.

    Raises
    ------
    NotAVideoURLError
        If the pinned URL is not a YouTube video link.
    FetchError
        If the search page could not be retrieved.
    """
    if track.url:
        validate_url(track.url)
        return Candidate(
            id=extract_video_id(track.url),
            url=track.url,
            title=track.title,
            user="",
            duration=track.duration,
            track=track,
        )
    result_set = fetch_result_set(track)
    return find_match(result_set, track)


def list_matches_to_file(
    tracks: Iterable[Track],
    output_file: Path,
    delay_seconds: float,
) -> None:
    """Write the matched URL for each track into a file. Does not download."""
    output_file.parent.mkdir(parents=True, exist_ok=True)
    # Stream write to file as we go, so results appear immediately
    with output_file.open("w", encoding="utf-8") as fh:
        for idx, track in enumerate(tracks, start=1):
            logging.info("[%d] Resolving: %s", idx, track)
            fh.write(f"# track: {track}\n")
            try:
                candidate = resolve_track(track)
            except TrackResolverError as error:
                logging.error("[%d] %s", idx, error)
                fh.write(f"# error: {error}\n\n")
                continue
            finally:
                fh.flush()
                time.sleep(delay_seconds)
            if candidate:
                fh.write(f"{candidate.url}\n\n")
            else:
                fh.write("# no match\n\n")


def process_tracks(
    tracks: Iterable[Track],
    output_dir: Path,
    delay_seconds: float,
    rate_limit_kbps: int | None,
    concurrency: int = 1,
) -> List[DownloadResult]:
    """Resolve and download every track, one result per track."""
    ensure_ffmpeg_available()
    output_dir.mkdir(parents=True, exist_ok=True)

    # Worker function for one track
    def process_one(args_tuple: tuple[int, Track]) -> DownloadResult:
        idx, track = args_tuple
        start_time = time.time()
        destination = track.destination(output_dir)

        if Path(f"{destination}{track.extension}").exists():
            logging.info("[%d] Already downloaded: %s", idx, track)
            log_download_result_csv(str(track), None, True, "already downloaded", idx, 0.0, "skipped")
            return DownloadResult(track=track, url=None, success=True, reason="already downloaded")

        log_download_result_csv(str(track), None, False, None, idx, None, "started")
        logging.info("[%d] Searching: %s", idx, track)

        try:
            candidate = resolve_track(track)
            if candidate is None:
                msg = "No match found"
                logging.warning("[%d] %s: %s", idx, msg, track)
                log_download_result_csv(str(track), None, False, msg, idx, (time.time() - start_time) * 1000, "failed")
                return DownloadResult(track=track, url=None, success=False, reason=msg)

            logging.info("[%d] Found: %s (%s)", idx, candidate.url, candidate.title)
            download_candidate(candidate, destination, track.extension, rate_limit_kbps)
            logging.info("[%d] Downloaded OK: %s", idx, candidate.url)
            log_download_result_csv(str(track), candidate.url, True, None, idx, (time.time() - start_time) * 1000, "completed")
            return DownloadResult(track=track, url=candidate.url, success=True)
        except TrackResolverError as error:
            # Any resolver error fails this track only.
            url = None if isinstance(error, FetchError) else getattr(error, "url", None)
            logging.error("[%d] Failed: %s | %s", idx, track, error)
            log_download_result_csv(str(track), url, False, str(error), idx, (time.time() - start_time) * 1000, "failed")
            return DownloadResult(track=track, url=url, success=False, reason=str(error))
        finally:
            # Space out requests per worker
            time.sleep(delay_seconds)

    if concurrency <= 1:
        results: List[DownloadResult] = []
        for pair in enumerate(tracks, start=1):
            results.append(process_one(pair))
        return results

    # Each worker owns its own result set; nothing is shared between tracks
    from concurrent.futures import ThreadPoolExecutor

    indexed_tracks = list(enumerate(tracks, start=1))
    with ThreadPoolExecutor(max_workers=max(1, int(concurrency)), thread_name_prefix="yt-dlp") as executor:
        return list(executor.map(process_one, indexed_tracks))


__all__ = [
    "build_ydl_opts",
    "download_candidate",
    "list_matches_to_file",
    "process_tracks",
    "resolve_track",
]
