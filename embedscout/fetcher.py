"""
Page fetching and raw meta extraction.

Fetches a page with requests, parses its Open Graph, Twitter Card and
generic meta tags with BeautifulSoup, and follows oEmbed discovery links.
Structured properties keep their nesting: `og:video`, `og:video:width` and
`og:video:secure_url` become one `og.video` object, and a repeated root tag
(a second `og:image`) starts a list.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from embedscout.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_USER_AGENT,
    OEMBED_REQUEST_TIMEOUT,
    TYPE_JSON_OEMBED,
)
from embedscout.errors import FetchError, PageUnreachable
from embedscout.utils import coerce_int

logger = logging.getLogger(__name__)

NOT_FOUND_STATUSES = (404, 410)

# Property prefixes kept under the generic `meta` namespace
STRUCTURED_META_PREFIXES = ("article", "video", "music", "book", "profile")

NUMERIC_KEYS = ("width", "height", "duration")


@dataclass
class PageData:
    """Raw data of one fetched page."""

    url: str
    requested_url: Optional[str] = None
    status_code: int = 0
    content_type: str = ""
    html: str = ""
    raw_meta: Dict[str, Any] = field(default_factory=dict)
    raw_oembed: Optional[Dict[str, Any]] = None
    oembed_url: Optional[str] = None
    response_time_ms: float = 0.0

    @property
    def is_html(self) -> bool:
        return not self.content_type or "html" in self.content_type.lower()

    def trace(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "status_code": self.status_code,
            "content_type": self.content_type,
            "oembed_url": self.oembed_url,
            "response_time_ms": round(self.response_time_ms, 3),
        }


def _typed(key: str, content: str) -> Any:
    if key in NUMERIC_KEYS:
        number = coerce_int(content)
        if number is not None:
            return number
    return content


def set_structured(namespace: Dict[str, Any], parts: List[str], content: str) -> None:
    """
    Store a colon-separated property in a namespace dict.

    `video` -> {"video": content}; `video:width` afterwards turns the value
    into {"url": content, "width": ...}. A repeated root appends a new entry.
    `video:url` is an alias of `video` and replaces its url.
    """
    root = parts[0]
    rest = parts[1:]

    if not rest:
        value = _typed(root, content)
        existing = namespace.get(root)
        if existing is None:
            namespace[root] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            namespace[root] = [existing, value]
        return

    existing = namespace.get(root)
    target = existing[-1] if isinstance(existing, list) and existing else existing

    if target is None:
        target = {}
    elif not isinstance(target, dict):
        target = {"url": target}

    if rest == ["url"]:
        target["url"] = content
    else:
        set_structured(target, rest, content)

    if isinstance(existing, list) and existing:
        existing[-1] = target
    else:
        namespace[root] = target


def parse_meta(html: str, base_url: str) -> Dict[str, Any]:
    """
    Extract raw meta from HTML.

    Returns:
        {"og": {...}, "twitter": {...}, "meta": {...}, "links": {...}}; empty
        namespaces are left out.
    """
    soup = BeautifulSoup(html, "html.parser")
    og: Dict[str, Any] = {}
    twitter: Dict[str, Any] = {}
    meta: Dict[str, Any] = {}

    for tag in soup.find_all("meta"):
        key = (tag.get("property") or tag.get("name") or tag.get("itemprop") or "").strip().lower()
        content = tag.get("content")
        if not key or content is None:
            continue
        content = content.strip()
        if not content:
            continue

        parts = [p for p in key.split(":") if p]
        if not parts:
            continue

        if parts[0] == "og" and len(parts) > 1:
            set_structured(og, parts[1:], content)
        elif parts[0] == "twitter" and len(parts) > 1:
            set_structured(twitter, parts[1:], content)
        elif parts[0] in STRUCTURED_META_PREFIXES and len(parts) > 1:
            set_structured(meta, parts, content)
        elif key not in meta:
            meta[key] = _typed(key, content)

    title_tag = soup.find("title")
    if title_tag and title_tag.get_text().strip():
        meta.setdefault("title", title_tag.get_text().strip())

    links: Dict[str, Any] = {}
    for tag in soup.find_all("link", href=True):
        rels = [r.lower() for r in (tag.get("rel") or [])]
        href = urljoin(base_url, tag["href"])
        link_type = (tag.get("type") or "").lower()

        if "canonical" in rels:
            meta.setdefault("canonical", href)
        if "icon" in rels or "apple-touch-icon" in rels:
            meta.setdefault("icon", href)
        if "image_src" in rels:
            meta.setdefault("image_src", href)
        if "alternate" in rels and link_type.endswith("+oembed"):
            links.setdefault(link_type, href)

    html_tag = soup.find("html")
    if html_tag and html_tag.get("lang"):
        meta.setdefault("language", html_tag["lang"])

    raw: Dict[str, Any] = {}
    if og:
        raw["og"] = og
    if twitter:
        raw["twitter"] = twitter
    if meta:
        raw["meta"] = meta
    if links:
        raw["alternate"] = links
    return raw


class PageFetcher:
    """Fetch a page and its oEmbed data."""

    def __init__(self, timeout: int = DEFAULT_REQUEST_TIMEOUT,
                 user_agent: Optional[str] = None,
                 verify_ssl: bool = True,
                 discover_oembed: bool = True):
        """
        Initialize the page fetcher.

        Args:
            timeout: Request timeout in seconds
            user_agent: Custom user agent string
            verify_ssl: Verify TLS certificates
            discover_oembed: Follow <link rel="alternate" type="application/json+oembed">
        """
        self.timeout = timeout
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.verify_ssl = verify_ssl
        self.discover_oembed = discover_oembed
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": self.user_agent})

    def fetch_page(self, uri: str) -> PageData:
        """
        Fetch a page and extract its raw meta.

        Raises:
            PageUnreachable: DNS/connection failure or 404/410
            FetchError: Timeouts, TLS or proxy failures and any other HTTP failure
        """
        start_time = time.time()
        try:
            response = self.session.get(
                uri, timeout=self.timeout, allow_redirects=True, verify=self.verify_ssl
            )
        except requests.Timeout as e:
            raise FetchError(uri, "Request timeout") from e
        except (requests.exceptions.SSLError, requests.exceptions.ProxyError) as e:
            raise FetchError(uri, str(e)) from e
        except requests.ConnectionError as e:
            raise PageUnreachable(uri) from e
        except requests.RequestException as e:
            raise FetchError(uri, str(e)) from e

        response_time = (time.time() - start_time) * 1000

        if response.status_code in NOT_FOUND_STATUSES:
            raise PageUnreachable(uri)
        if response.status_code >= 400:
            raise FetchError(uri, f"HTTP {response.status_code}", response.status_code)

        page = PageData(
            url=response.url or uri,
            requested_url=uri,
            status_code=response.status_code,
            content_type=response.headers.get("Content-Type", ""),
            response_time_ms=response_time,
        )

        if page.is_html:
            page.html = response.text or ""
            page.raw_meta = parse_meta(page.html, page.url)
            page.oembed_url = page.raw_meta.get("alternate", {}).get(TYPE_JSON_OEMBED)

        if self.discover_oembed and page.oembed_url:
            page.raw_oembed = self.fetch_oembed(page.oembed_url)

        logger.debug(f"Fetched {uri} ({page.status_code}, {page.response_time_ms:.0f}ms)")
        return page

    def fetch_oembed(self, oembed_url: str) -> Optional[Dict[str, Any]]:
        """Fetch a JSON oEmbed document. Failures leave oEmbed absent."""
        try:
            response = self.session.get(
                oembed_url, timeout=min(self.timeout, OEMBED_REQUEST_TIMEOUT), verify=self.verify_ssl
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.debug(f"oEmbed discovery failed for {oembed_url}: {e}")
            return None

        if not isinstance(data, dict):
            logger.debug(f"Ignoring non-object oEmbed response from {oembed_url}")
            return None
        return data


def create_fetcher(**kwargs) -> PageFetcher:
    """Create a PageFetcher instance with optional configuration."""
    return PageFetcher(**kwargs)
