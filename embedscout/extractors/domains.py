"""
Domain-specific extraction plugins.

URL pattern rules for platforms whose embed player can be built straight
from an identifier in the URI (YouTube, Vimeo, Dailymotion, Spotify), plus
domain-only rules that refine generic meta for a site (Imgur).
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import parse_qs, urlparse

from embedscout.constants import (
    REL_HTML5,
    REL_IMAGE,
    REL_PLAYER,
    REL_THUMBNAIL,
    TYPE_HTML,
    TYPE_JPEG,
    TYPE_IMAGE,
)
from embedscout.plugins import Plugin, PluginMetadata, plugin


@dataclass(frozen=True)
class EmbedTemplate:
    """How to build links from a matched media identifier."""

    player: str  # format string over the pattern's named groups
    width: Optional[int] = None
    height: Optional[int] = None
    thumbnail: Optional[str] = None
    thumbnail_width: Optional[int] = None
    thumbnail_height: Optional[int] = None
    rel: Tuple[str, ...] = (REL_PLAYER, REL_HTML5)


class MediaPlugin(Plugin):
    """
    Player links for a media platform, derived from URI patterns.

    Each pattern carries a named `id` group (and any other groups its
    template needs). The plugin matches the requested URI, the final URI
    after redirects and the page's canonical URL, in that order.
    """

    def __init__(self, name: str, domain: str, patterns: Sequence[str],
                 template: EmbedTemplate, description: str = "",
                 exclusive: bool = False, id_param: Optional[str] = None):
        self._metadata = PluginMetadata(
            name=name,
            description=description,
            domain=domain,
            patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
            exclusive=exclusive,
        )
        self.template = template
        self.id_param = id_param

    @property
    def metadata(self) -> PluginMetadata:
        return self._metadata

    def detect(self, url: str) -> Optional[Dict[str, str]]:
        """
        Match a URL against the plugin patterns.

        Returns:
            The named groups of the first matching pattern, or None
        """
        if not url:
            return None

        url = url.strip()
        for pattern in self.patterns:
            match = pattern.search(url)
            if match:
                groups = {k: v for k, v in match.groupdict().items() if v is not None}
                if self.id_param:
                    groups["id"] = self._query_param(url, self.id_param) or groups.get("id")
                return groups
        return None

    def _query_param(self, url: str, name: str) -> Optional[str]:
        query_params = parse_qs(urlparse(url).query)
        if name in query_params:
            return query_params[name][0]
        return None

    def get_links(self, meta: Dict[str, Any], page: Any = None) -> Optional[List[Dict[str, Any]]]:
        for url in _candidate_urls(meta, page):
            groups = self.detect(url)
            if groups and groups.get("id"):
                return self.build_links(groups)
        return None

    def build_links(self, groups: Dict[str, str]) -> List[Dict[str, Any]]:
        t = self.template
        links = [{
            "href": t.player.format(**groups),
            "type": TYPE_HTML,
            "rel": list(t.rel),
            "width": t.width,
            "height": t.height,
        }]
        if t.thumbnail:
            links.append({
                "href": t.thumbnail.format(**groups),
                "type": TYPE_JPEG,
                "rel": [REL_THUMBNAIL],
                "width": t.thumbnail_width,
                "height": t.thumbnail_height,
            })
        return links


def _candidate_urls(meta: Dict[str, Any], page: Any) -> List[str]:
    urls = []
    if page is not None:
        urls.extend(u for u in (getattr(page, "requested_url", None), getattr(page, "url", None)) if u)
    canonical = meta.get("canonical")
    if isinstance(canonical, str):
        urls.append(canonical)
    return urls


youtube = MediaPlugin(
    name="youtube.video",
    domain="youtube.com",
    patterns=[
        r"youtube\.com/watch\?.*v=(?P<id>[\w-]+)",
        r"youtu\.be/(?P<id>[\w-]+)",
        r"youtube\.com/embed/(?P<id>[\w-]+)",
        r"youtube\.com/v/(?P<id>[\w-]+)",
        r"youtube\.com/shorts/(?P<id>[\w-]+)",
    ],
    template=EmbedTemplate(
        player="https://www.youtube.com/embed/{id}?rel=0",
        width=640,
        height=360,
        thumbnail="https://i.ytimg.com/vi/{id}/hqdefault.jpg",
        thumbnail_width=480,
        thumbnail_height=360,
    ),
    description="YouTube video player",
    id_param="v",
)

vimeo = MediaPlugin(
    name="vimeo.video",
    domain="vimeo.com",
    patterns=[
        r"player\.vimeo\.com/video/(?P<id>\d+)",
        r"vimeo\.com/channels/[\w-]+/(?P<id>\d+)",
        r"vimeo\.com/groups/[\w-]+/videos/(?P<id>\d+)",
        r"vimeo\.com/(?P<id>\d+)",
    ],
    template=EmbedTemplate(
        player="https://player.vimeo.com/video/{id}",
        width=640,
        height=360,
    ),
    description="Vimeo video player",
)

dailymotion = MediaPlugin(
    name="dailymotion.video",
    domain="dailymotion.com",
    patterns=[
        r"dailymotion\.com/video/(?P<id>[a-z0-9]+)",
        r"dai\.ly/(?P<id>[a-z0-9]+)",
    ],
    template=EmbedTemplate(
        player="https://www.dailymotion.com/embed/video/{id}",
        width=640,
        height=360,
        thumbnail="https://www.dailymotion.com/thumbnail/video/{id}",
    ),
    description="Dailymotion video player",
)

spotify = MediaPlugin(
    name="spotify.player",
    domain="spotify.com",
    patterns=[
        r"open\.spotify\.com/(?P<kind>track|album|playlist|episode|show|artist)/(?P<id>\w+)",
    ],
    template=EmbedTemplate(
        player="https://open.spotify.com/embed/{kind}/{id}",
        height=352,
    ),
    description="Spotify audio player",
)


@plugin("imgur.image", domain="imgur.com")
def imgur_image(meta):
    """Imgur pages: the shared picture is the content, not a thumbnail."""
    twitter = meta.get("twitter") if isinstance(meta.get("twitter"), dict) else {}
    image = twitter.get("image") or meta.get("image")
    if not image:
        return None
    if not isinstance(image, dict):
        image = {"url": image}
    return [{
        "href": image.get("url") or image.get("src"),
        "type": TYPE_IMAGE,
        "rel": [REL_IMAGE],
        "width": image.get("width"),
        "height": image.get("height"),
    }]


DOMAIN_PLUGINS = [youtube, vimeo, dailymotion, spotify, imgur_image]
