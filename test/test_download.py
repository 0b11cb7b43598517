#!/usr/bin/env python3
"""
Tests for the download step and the per-track pipeline, with yt-dlp and the
network replaced by fakes.
"""

from pathlib import Path

import pytest
import yt_dlp
from yt_dlp.utils import DownloadError

import yt_track_dl.download as download
from yt_track_dl.config import RuntimeConfig, set_runtime_config
from yt_track_dl.exceptions import DownloadFailedError, FetchError, NotAVideoURLError, TrackResolverError
from yt_track_dl.search import Candidate, SearchResultSet
from yt_track_dl.track import Track

TRACK = Track(title="Song", artist="Artist", duration=225)


class FakeYoutubeDL:
    instances = []
    error = None
    retcode = 0

    def __init__(self, opts):
        self.opts = opts
        self.urls = []
        FakeYoutubeDL.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def download(self, urls):
        self.urls.extend(urls)
        if FakeYoutubeDL.error:
            raise DownloadError(FakeYoutubeDL.error)
        return FakeYoutubeDL.retcode


@pytest.fixture
def fake_ydl(monkeypatch):
    FakeYoutubeDL.instances = []
    FakeYoutubeDL.error = None
    FakeYoutubeDL.retcode = 0
    monkeypatch.setattr(yt_dlp, "YoutubeDL", FakeYoutubeDL)
    return FakeYoutubeDL


def test_build_ydl_opts():
    opts = download.build_ydl_opts(Path("/music/Artist - Song"), ".FLAC", "0", rate_limit_kbps=512, cookies_file="c.txt")
    assert opts["outtmpl"] == "/music/Artist - Song.%(ext)s"
    assert opts["format"] == "bestaudio"
    assert opts["postprocessors"] == [
        {"key": "FFmpegExtractAudio", "preferredcodec": "flac", "preferredquality": "0"}
    ]
    assert opts["ratelimit"] == 512 * 1024
    assert opts["cookiefile"] == "c.txt"


def test_build_ydl_opts_defaults():
    opts = download.build_ydl_opts(Path("out/Track"))
    assert opts["postprocessors"][0]["preferredcodec"] == "mp3"
    assert "ratelimit" not in opts
    assert "cookiefile" not in opts


def test_download_candidate(fake_ydl):
    set_runtime_config(RuntimeConfig(audio_quality="2", cookies_file="cookies.txt"))
    candidate = Candidate("abc123", "https://www.youtube.com/watch?v=abc123", "Artist - Song", "Uploader", 225, TRACK)

    download.download_candidate(candidate, Path("/music/Artist - Song"), ".m4a")

    (ydl,) = fake_ydl.instances
    assert ydl.urls == ["https://www.youtube.com/watch?v=abc123"]
    assert ydl.opts["postprocessors"][0]["preferredcodec"] == "m4a"
    assert ydl.opts["postprocessors"][0]["preferredquality"] == "2"
    assert ydl.opts["cookiefile"] == "cookies.txt"


def test_download_candidate_wraps_errors(fake_ydl):
    candidate = Candidate("abc123", "https://youtu.be/abc123", "Artist - Song", "Uploader", 225, TRACK)

    fake_ydl.error = "ERROR: Video unavailable"
    with pytest.raises(DownloadFailedError) as info:
        download.download_candidate(candidate, Path("x"))
    assert info.value.url == "https://youtu.be/abc123"
    assert "Video unavailable" in info.value.detail

    fake_ydl.error = None
    fake_ydl.retcode = 1
    with pytest.raises(DownloadFailedError, match="returned 1"):
        download.download_candidate(candidate, Path("x"))


def test_resolve_track_uses_pinned_url(monkeypatch):
    def no_search(track):
        raise AssertionError("search must not run for pinned tracks")

    monkeypatch.setattr(download, "fetch_result_set", no_search)
    pinned = Track(title="Song", artist="Artist", duration=225, url="https://youtu.be/pinned?t=3")
    candidate = download.resolve_track(pinned)
    assert candidate.id == "pinned"
    assert candidate.url == "https://youtu.be/pinned?t=3"
    assert candidate.track is pinned

    with pytest.raises(NotAVideoURLError):
        download.resolve_track(Track(title="Song", artist="Artist", duration=225, url="https://example.com/abc"))


def test_process_tracks_end_to_end(monkeypatch, tmp_path, make_page, fake_ydl):
    page = make_page([
        ("/watch?v=pl&amp;list=PLxyz", "Artist - Song", "Someone", "Duration: 3:45"),
        ("/watch?v=abc123", "Artist - Song", "ArtistVEVO", "Duration: 3:46"),
    ])
    monkeypatch.setattr(download, "fetch_result_set", lambda track: SearchResultSet.from_html(page, track))

    results = download.process_tracks([TRACK], tmp_path, delay_seconds=0, rate_limit_kbps=None)

    assert len(results) == 1
    assert results[0].success
    assert results[0].url == "https://www.youtube.com/watch?v=abc123"
    (ydl,) = fake_ydl.instances
    assert ydl.urls == ["https://www.youtube.com/watch?v=abc123"]
    assert ydl.opts["outtmpl"] == f"{tmp_path / 'Artist - Song'}.%(ext)s"


def test_process_tracks_reports_failures(monkeypatch, tmp_path, make_page, fake_ydl):
    unmatched = Track(title="Nothing", artist="Nobody", duration=100)
    offline = Track(title="Offline", artist="Nobody", duration=100)
    bad_link = Track(title="Song", artist="Artist", duration=225, url="https://example.com/abc")

    def fake_fetch(track):
        if track is offline:
            raise FetchError("https://www.youtube.com/results?search_query=x", "connection refused")
        return SearchResultSet.from_html(make_page([("/watch?v=zzz", "Other", "U", "Duration: 1:40")]), track)

    monkeypatch.setattr(download, "fetch_result_set", fake_fetch)

    results = download.process_tracks([unmatched, offline, bad_link], tmp_path, 0, None)

    assert [r.success for r in results] == [False, False, False]
    assert results[0].reason == "No match found"
    assert "connection refused" in results[1].reason
    assert "doesn't seem to be pointing" in results[2].reason
    assert fake_ydl.instances == []


def test_process_tracks_skips_existing_files(monkeypatch, tmp_path, fake_ydl):
    (tmp_path / "Artist - Song.mp3").write_bytes(b"ID3")
    monkeypatch.setattr(download, "fetch_result_set", lambda track: pytest.fail("should not search"))

    results = download.process_tracks([TRACK], tmp_path, 0, None)

    assert results[0].success
    assert results[0].reason == "already downloaded"


def test_process_tracks_concurrently(monkeypatch, tmp_path, make_page, fake_ydl):
    tracks = [Track(title=f"Song {n}", artist="Artist", duration=200) for n in range(4)]

    def fake_fetch(track):
        page = make_page([(f"/watch?v=id{track.title[-1]}", f"Artist - {track.title}", "U", "Duration: 3:20")])
        return SearchResultSet.from_html(page, track)

    monkeypatch.setattr(download, "fetch_result_set", fake_fetch)

    results = download.process_tracks(tracks, tmp_path, 0, None, concurrency=3)

    assert [r.url for r in results] == [f"https://www.youtube.com/watch?v=id{n}" for n in range(4)]
    assert all(r.success for r in results)


@pytest.mark.parametrize("concurrency", [1, 3])
def test_process_tracks_isolates_unexpected_resolver_errors(monkeypatch, tmp_path, make_page, fake_ydl, concurrency):
    broken = Track(title="Broken", artist="Artist", duration=225)

    def fake_fetch(track):
        if track is broken:
            raise TrackResolverError("unexpected page layout")
        return SearchResultSet.from_html(make_page([("/watch?v=abc123", "Artist - Song", "U", "Duration: 3:45")]), track)

    monkeypatch.setattr(download, "fetch_result_set", fake_fetch)

    results = download.process_tracks([TRACK, broken], tmp_path, 0, None, concurrency=concurrency)

    assert [r.success for r in results] == [True, False]
    assert results[1].url is None
    assert results[1].reason == "unexpected page layout"


def test_list_matches_to_file(monkeypatch, tmp_path, make_page):
    def fake_fetch(track):
        if track.title == "Down":
            raise FetchError("https://www.youtube.com/results?search_query=down", "boom")
        return SearchResultSet.from_html(make_page([("/watch?v=abc123", "Artist - Song", "U", "Duration: 3:45")]), track)

    monkeypatch.setattr(download, "fetch_result_set", fake_fetch)
    output = tmp_path / "links" / "links.txt"

    download.list_matches_to_file(
        [TRACK, Track(title="Down", artist="Artist", duration=10), Track(title="Other", artist="X", duration=10)],
        output,
        0,
    )

    lines = output.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "# track: Artist - Song"
    assert lines[1] == "https://www.youtube.com/watch?v=abc123"
    assert lines[3] == "# track: Artist - Down"
    assert lines[4].startswith("# error: Cannot retrieve doc")
    assert lines[6] == "# track: X - Other"
    assert lines[7] == "# no match"
