"""
Tests for embedscout/fetcher.py page fetching and meta parsing.

Tests the PageFetcher class which fetches pages with requests, parses
Open Graph / Twitter Card / meta tags, and follows oEmbed discovery links.
"""
import pytest
from unittest.mock import patch, MagicMock
import requests

from embedscout.aggregator import deduplicate_links
from embedscout.errors import FetchError, PageUnreachable
from embedscout.fetcher import PageData, PageFetcher, create_fetcher, parse_meta, set_structured
from embedscout.extractors.generic import og_image, og_video
from embedscout.meta import MetaMapper
from embedscout.runner import ExtractionRunner


def mock_response(status_code=200, text="", url="https://example.com/", content_type="text/html", json_data=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.url = url
    response.headers = {"Content-Type": content_type}
    if json_data is not None:
        response.json.return_value = json_data
    return response


class TestSetStructured:
    """Test colon-separated property nesting."""

    def test_plain_value(self):
        ns = {}
        set_structured(ns, ["title"], "Hello")
        assert ns == {"title": "Hello"}

    def test_sub_property_turns_value_into_object(self):
        ns = {}
        set_structured(ns, ["video"], "https://example.com/v")
        set_structured(ns, ["video", "width"], "640")
        assert ns == {"video": {"url": "https://example.com/v", "width": 640}}

    def test_repeated_root_starts_list(self):
        ns = {}
        set_structured(ns, ["image"], "https://example.com/1.jpg")
        set_structured(ns, ["image", "width"], "100")
        set_structured(ns, ["image"], "https://example.com/2.jpg")
        set_structured(ns, ["image", "width"], "200")
        assert ns == {"image": [
            {"url": "https://example.com/1.jpg", "width": 100},
            {"url": "https://example.com/2.jpg", "width": 200},
        ]}

    def test_sub_property_without_root(self):
        ns = {}
        set_structured(ns, ["player", "stream"], "https://example.com/s.mp4")
        assert ns == {"player": {"stream": "https://example.com/s.mp4"}}

    def test_non_numeric_dimension_kept_as_string(self):
        ns = {}
        set_structured(ns, ["width"], "auto")
        assert ns == {"width": "auto"}

    def test_url_sub_property_replaces_root_value(self):
        ns = {}
        set_structured(ns, ["video"], "https://example.com/v")
        set_structured(ns, ["video", "url"], "https://example.com/v")
        set_structured(ns, ["video", "type"], "text/html")
        assert ns == {"video": {"url": "https://example.com/v", "type": "text/html"}}

    def test_url_sub_property_on_repeated_root(self):
        ns = {}
        set_structured(ns, ["image"], "https://example.com/1.jpg")
        set_structured(ns, ["image", "url"], "https://example.com/1.jpg")
        set_structured(ns, ["image"], "https://example.com/2.jpg")
        set_structured(ns, ["image", "url"], "https://example.com/2.jpg")
        assert ns == {"image": [
            {"url": "https://example.com/1.jpg"},
            {"url": "https://example.com/2.jpg"},
        ]}


class TestParseMeta:
    """Test raw meta extraction from HTML."""

    def test_namespaces(self, video_html):
        raw = parse_meta(video_html, "https://video.example.com/watch/42")
        assert set(raw) == {"og", "twitter", "meta", "alternate"}

    def test_og_video_nesting(self, video_html):
        og = parse_meta(video_html, "https://video.example.com/watch/42")["og"]
        assert og["video"] == {
            "url": "https://video.example.com/embed/42",
            "secure_url": "https://video.example.com/embed/42?secure=1",
            "type": "text/html",
            "width": 640,
            "height": 360,
        }
        assert og["image"]["width"] == 1280

    def test_twitter_card(self, video_html):
        twitter = parse_meta(video_html, "https://video.example.com/watch/42")["twitter"]
        assert twitter["card"] == "player"
        assert twitter["player"]["url"] == "https://video.example.com/embed/42"
        assert twitter["player"]["height"] == 360

    def test_generic_meta(self, video_html):
        meta = parse_meta(video_html, "https://video.example.com/watch/42")["meta"]
        assert meta["title"] == "Fallback title"
        assert meta["description"] == "Plain description"
        assert meta["canonical"] == "https://video.example.com/watch/42"
        assert meta["icon"] == "https://video.example.com/favicon.ico"
        assert meta["language"] == "en"

    def test_oembed_alternate(self, video_html):
        raw = parse_meta(video_html, "https://video.example.com/watch/42")
        assert raw["alternate"]["application/json+oembed"] == "https://video.example.com/oembed?url=42"

    def test_article_properties_structured(self):
        html = """<html><head>
        <meta property="article:published_time" content="2024-01-01T00:00:00Z">
        <meta property="article:author" content="https://example.com/me">
        </head></html>"""
        meta = parse_meta(html, "https://example.com/")["meta"]
        assert meta["article"] == {
            "published_time": "2024-01-01T00:00:00Z",
            "author": "https://example.com/me",
        }

    def test_empty_content_skipped(self):
        html = '<html><head><meta property="og:title" content="  "></head></html>'
        assert parse_meta(html, "https://example.com/") == {}

    def test_empty_document(self):
        assert parse_meta("", "https://example.com/") == {}

    def test_first_generic_meta_wins(self):
        html = """<html><head>
        <meta name="author" content="First">
        <meta name="author" content="Second">
        </head></html>"""
        assert parse_meta(html, "https://example.com/")["meta"]["author"] == "First"

    def test_url_tags_alias_root_tags(self):
        html = """<html><head>
        <meta property="og:video" content="https://v.example.com/embed/1">
        <meta property="og:video:url" content="https://v.example.com/embed/1">
        <meta property="og:video:type" content="text/html">
        <meta property="og:image" content="https://v.example.com/thumb.jpg">
        <meta property="og:image:url" content="https://v.example.com/thumb.jpg">
        </head></html>"""
        raw = parse_meta(html, "https://v.example.com/watch/1")
        assert raw["og"]["video"] == {"url": "https://v.example.com/embed/1", "type": "text/html"}
        assert raw["og"]["image"] == {"url": "https://v.example.com/thumb.jpg"}

        mapping = MetaMapper().normalize(raw, None)
        assert mapping.canonical["video"] == "https://v.example.com/embed/1"
        assert mapping.canonical["image"] == "https://v.example.com/thumb.jpg"

        links, _ = ExtractionRunner().run([og_video, og_image], mapping)
        merged = deduplicate_links(links)
        assert [(l.href, l.rel) for l in merged] == [
            ("https://v.example.com/embed/1", ["player", "og"]),
            ("https://v.example.com/thumb.jpg", ["thumbnail", "og"]),
        ]


class TestPageFetcherInit:
    """Test PageFetcher initialization."""

    def test_default_timeout(self):
        assert PageFetcher().timeout == 10

    def test_default_user_agent(self):
        assert "embedscout" in PageFetcher().user_agent

    def test_session_has_user_agent_header(self):
        fetcher = PageFetcher(user_agent="TestAgent")
        assert isinstance(fetcher.session, requests.Session)
        assert fetcher.session.headers["User-Agent"] == "TestAgent"

    def test_create_fetcher(self):
        fetcher = create_fetcher(timeout=3, discover_oembed=False)
        assert fetcher.timeout == 3
        assert fetcher.discover_oembed is False


class TestPageFetcherFetch:
    """Test PageFetcher.fetch_page()."""

    @pytest.fixture
    def fetcher(self):
        return PageFetcher(timeout=5)

    def test_fetch_html_page(self, fetcher, video_html):
        oembed = {"type": "video", "html": "<iframe></iframe>"}
        responses = [
            mock_response(text=video_html, url="https://video.example.com/watch/42"),
            mock_response(json_data=oembed, content_type="application/json"),
        ]
        with patch.object(fetcher.session, "get", side_effect=responses) as mock_get:
            page = fetcher.fetch_page("https://video.example.com/watch/42")

        assert isinstance(page, PageData)
        assert page.status_code == 200
        assert page.requested_url == "https://video.example.com/watch/42"
        assert page.raw_meta["og"]["title"] == "Cat plays piano"
        assert page.oembed_url == "https://video.example.com/oembed?url=42"
        assert page.raw_oembed == oembed
        assert mock_get.call_count == 2
        assert mock_get.call_args_list[1][0][0] == "https://video.example.com/oembed?url=42"

    def test_redirect_final_url_kept(self, fetcher, article_html):
        response = mock_response(text=article_html, url="https://www.example.com/final")
        with patch.object(fetcher.session, "get", return_value=response):
            page = fetcher.fetch_page("http://example.com/start")
        assert page.url == "https://www.example.com/final"
        assert page.requested_url == "http://example.com/start"

    def test_oembed_discovery_disabled(self, video_html):
        fetcher = PageFetcher(discover_oembed=False)
        response = mock_response(text=video_html)
        with patch.object(fetcher.session, "get", return_value=response) as mock_get:
            page = fetcher.fetch_page("https://video.example.com/watch/42")
        assert page.raw_oembed is None
        assert mock_get.call_count == 1

    def test_oembed_failure_leaves_oembed_absent(self, fetcher, video_html):
        responses = [
            mock_response(text=video_html),
            requests.ConnectionError("oembed endpoint down"),
        ]
        with patch.object(fetcher.session, "get", side_effect=responses):
            page = fetcher.fetch_page("https://video.example.com/watch/42")
        assert page.raw_oembed is None
        assert page.raw_meta["og"]["title"] == "Cat plays piano"

    def test_oembed_invalid_json_leaves_oembed_absent(self, fetcher, video_html):
        bad = mock_response(content_type="application/json")
        bad.json.side_effect = ValueError("not json")
        with patch.object(fetcher.session, "get", side_effect=[mock_response(text=video_html), bad]):
            page = fetcher.fetch_page("https://video.example.com/watch/42")
        assert page.raw_oembed is None

    def test_non_html_not_parsed(self, fetcher):
        response = mock_response(text="\x89PNG", content_type="image/png", url="https://example.com/a.png")
        with patch.object(fetcher.session, "get", return_value=response):
            page = fetcher.fetch_page("https://example.com/a.png")
        assert page.raw_meta == {}
        assert page.html == ""
        assert page.content_type == "image/png"

    @pytest.mark.parametrize("status", [404, 410])
    def test_not_found_raises_unreachable(self, fetcher, status):
        with patch.object(fetcher.session, "get", return_value=mock_response(status_code=status)):
            with pytest.raises(PageUnreachable) as exc_info:
                fetcher.fetch_page("https://example.com/missing")
        assert exc_info.value.uri == "https://example.com/missing"

    def test_server_error_raises_fetch_error(self, fetcher):
        with patch.object(fetcher.session, "get", return_value=mock_response(status_code=500)):
            with pytest.raises(FetchError) as exc_info:
                fetcher.fetch_page("https://example.com/")
        assert exc_info.value.status_code == 500

    def test_connection_error_raises_unreachable(self, fetcher):
        with patch.object(fetcher.session, "get", side_effect=requests.ConnectionError("DNS failure")):
            with pytest.raises(PageUnreachable):
                fetcher.fetch_page("https://nonexistent.invalid/")

    def test_timeout_raises_fetch_error(self, fetcher):
        with patch.object(fetcher.session, "get", side_effect=requests.Timeout("slow")):
            with pytest.raises(FetchError) as exc_info:
                fetcher.fetch_page("https://example.com/")
        assert exc_info.value.reason == "Request timeout"

    def test_certificate_error_raises_fetch_error(self, fetcher):
        error = requests.exceptions.SSLError("certificate verify failed")
        with patch.object(fetcher.session, "get", side_effect=error):
            with pytest.raises(FetchError) as exc_info:
                fetcher.fetch_page("https://self-signed.example/")
        assert not isinstance(exc_info.value, PageUnreachable)
        assert "certificate verify failed" in exc_info.value.reason

    def test_proxy_error_raises_fetch_error(self, fetcher):
        with patch.object(fetcher.session, "get", side_effect=requests.exceptions.ProxyError("proxy refused")):
            with pytest.raises(FetchError):
                fetcher.fetch_page("https://example.com/")

    def test_request_uses_timeout_and_ssl_flag(self, article_html):
        fetcher = PageFetcher(timeout=7, verify_ssl=False)
        with patch.object(fetcher.session, "get", return_value=mock_response(text=article_html)) as mock_get:
            fetcher.fetch_page("https://example.com/")
        kwargs = mock_get.call_args[1]
        assert kwargs["timeout"] == 7
        assert kwargs["verify"] is False
        assert kwargs["allow_redirects"] is True


class TestFetchOembed:
    """Test PageFetcher.fetch_oembed()."""

    def test_non_object_response_ignored(self):
        fetcher = PageFetcher()
        with patch.object(fetcher.session, "get", return_value=mock_response(json_data=["a"])):
            assert fetcher.fetch_oembed("https://example.com/oembed") is None

    def test_http_error_ignored(self):
        fetcher = PageFetcher()
        response = mock_response(status_code=500)
        response.raise_for_status.side_effect = requests.HTTPError("500")
        with patch.object(fetcher.session, "get", return_value=response):
            assert fetcher.fetch_oembed("https://example.com/oembed") is None

    def test_oembed_timeout_capped(self):
        fetcher = PageFetcher(timeout=30)
        with patch.object(fetcher.session, "get", return_value=mock_response(json_data={"type": "rich"})) as mock_get:
            assert fetcher.fetch_oembed("https://example.com/oembed") == {"type": "rich"}
        assert mock_get.call_args[1]["timeout"] == 5
