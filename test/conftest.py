"""
Shared fixtures: search page builder and runtime config reset.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from yt_track_dl.config import RuntimeConfig, set_runtime_config


def _entry_html(href, title, user, duration_text):
    link_attrs = ""
    if href is not None:
        link_attrs += f' href="{href}"'
    if title is not None:
        link_attrs += f' title="{title}"'
    byline = ""
    if user is not None:
        byline = f'<div class="yt-lockup-byline"><a href="/channel/UC1">  {user}  </a></div>'
    duration = ""
    if duration_text is not None:
        duration = f'<span class="accessible-description"> {duration_text} </span>'
    return (
        '<div class="yt-lockup-content">'
        f'<h3 class="yt-lockup-title"><a class="yt-uix-tile-link"{link_attrs}>{title or ""}</a>{duration}</h3>'
        f"{byline}"
        "</div>"
    )


@pytest.fixture
def make_page():
    """Build a results page from ``(href, title, user, duration_text)`` tuples.

    A ``None`` field leaves the attribute or element out of the markup.
    """
    def build(entries):
        body = "".join(_entry_html(*entry) for entry in entries)
        return f"<html><body><div id='results'>{body}</div></body></html>"

    return build


@pytest.fixture(autouse=True)
def default_runtime_config():
    set_runtime_config(RuntimeConfig())
    yield
    set_runtime_config(RuntimeConfig())
