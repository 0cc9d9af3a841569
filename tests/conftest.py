import os

import pytest

from embedscout import config as config_module
from embedscout.engine import Engine
from embedscout.extractors import create_default_registry
from embedscout.fetcher import PageData, parse_meta
from embedscout.whitelist import Whitelist


VIDEO_PAGE_URL = "https://video.example.com/watch/42"

VIDEO_PAGE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <title>Fallback title</title>
  <meta property="og:title" content="Cat plays piano">
  <meta property="og:description" content="A cat plays the piano">
  <meta property="og:site_name" content="ExampleTube">
  <meta property="og:url" content="https://video.example.com/watch/42">
  <meta property="og:type" content="video.other">
  <meta property="og:image" content="https://img.example.com/42.jpg">
  <meta property="og:image:width" content="1280">
  <meta property="og:image:height" content="720">
  <meta property="og:video" content="https://video.example.com/embed/42">
  <meta property="og:video:secure_url" content="https://video.example.com/embed/42?secure=1">
  <meta property="og:video:type" content="text/html">
  <meta property="og:video:width" content="640">
  <meta property="og:video:height" content="360">
  <meta name="twitter:card" content="player">
  <meta name="twitter:title" content="Cat on Twitter">
  <meta name="twitter:player" content="https://video.example.com/embed/42">
  <meta name="twitter:player:width" content="640">
  <meta name="twitter:player:height" content="360">
  <meta name="description" content="Plain description">
  <link rel="canonical" href="/watch/42">
  <link rel="icon" href="/favicon.ico">
  <link rel="alternate" type="application/json+oembed" href="https://video.example.com/oembed?url=42">
</head>
<body><p>Video</p></body>
</html>
"""

ARTICLE_PAGE_HTML = """<html>
<head>
  <title>Plain article</title>
  <meta name="description" content="Nothing to embed here">
</head>
<body></body>
</html>
"""


@pytest.fixture(autouse=True)
def reset_global_config(monkeypatch):
    """Every test starts without a cached config or EMBEDSCOUT_* variables."""
    for key in list(os.environ):
        if key.startswith("EMBEDSCOUT_"):
            monkeypatch.delenv(key, raising=False)
    config_module._config = None
    yield
    config_module._config = None


@pytest.fixture
def video_html():
    return VIDEO_PAGE_HTML


@pytest.fixture
def article_html():
    return ARTICLE_PAGE_HTML


def make_page(url, html="", content_type="text/html; charset=utf-8",
              raw_oembed=None, requested_url=None):
    """Build a PageData the way PageFetcher would."""
    page = PageData(
        url=url,
        requested_url=requested_url or url,
        status_code=200,
        content_type=content_type,
        html=html,
    )
    if html:
        page.raw_meta = parse_meta(html, url)
    page.raw_oembed = raw_oembed
    return page


class FakeFetcher:
    """Serves canned pages by URI and records what was requested."""

    def __init__(self, pages=None, error=None):
        self.pages = pages or {}
        self.error = error
        self.requested = []

    def fetch_page(self, uri):
        self.requested.append(uri)
        if self.error is not None:
            raise self.error
        if uri in self.pages:
            return self.pages[uri]
        return make_page(uri, ARTICLE_PAGE_HTML)


@pytest.fixture
def video_page():
    return make_page(
        VIDEO_PAGE_URL,
        VIDEO_PAGE_HTML,
        raw_oembed={
            "type": "video",
            "version": "1.0",
            "title": "Cat plays piano (oEmbed)",
            "author_name": "Cat Owner",
            "provider_name": "ExampleTube",
            "html": '<iframe src="https://video.example.com/embed/42" width="640" height="360"></iframe>',
            "width": 640,
            "height": 360,
            "thumbnail_url": "https://img.example.com/42.jpg",
            "thumbnail_width": 1280,
            "thumbnail_height": 720,
        },
    )


@pytest.fixture
def fake_fetcher(video_page):
    return FakeFetcher({VIDEO_PAGE_URL: video_page})


@pytest.fixture
def registry():
    return create_default_registry()


@pytest.fixture
def whitelist():
    return Whitelist({
        "example.com": {"tier": "basic"},
        "video.example.com": {"tier": "trusted", "autoplay": False},
    })


@pytest.fixture
def engine(registry, fake_fetcher, whitelist):
    return Engine(registry, fetcher=fake_fetcher, whitelist=whitelist)


@pytest.fixture
def page_factory():
    return make_page


@pytest.fixture
def fetcher_factory():
    return FakeFetcher
