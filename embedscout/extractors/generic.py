"""
Generic extraction plugins.

Domain-agnostic rules that read Open Graph, Twitter Card, oEmbed and plain
meta signals. They run for every URI, after any domain-specific plugin.
"""
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from embedscout.constants import (
    REL_APP,
    REL_HTML5,
    REL_ICON,
    REL_IMAGE,
    REL_OEMBED,
    REL_OG,
    REL_PLAYER,
    REL_THUMBNAIL,
    REL_TWITTER,
    TYPE_HTML,
    TYPE_ICON,
    TYPE_IMAGE,
    TYPE_MP4,
)
from embedscout.plugins import plugin


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _get(meta: Dict[str, Any], namespace: str) -> Dict[str, Any]:
    value = meta.get(namespace)
    return value if isinstance(value, dict) else {}


@plugin("og-video")
def og_video(meta):
    """Player links from og:video, one per url and secure_url."""
    og = _get(meta, "og")
    if not og.get("video"):
        return None

    links = []
    for video in _as_list(og["video"]):
        if isinstance(video, dict):
            href, secure = video.get("url"), video.get("secure_url")
            details = video
        else:
            href, secure, details = video, None, {}

        for candidate in (href, secure):
            # secure_url may be missing: the aggregator drops the hrefless entry
            links.append({
                "href": candidate,
                "type": details.get("type") or TYPE_HTML,
                "rel": [REL_PLAYER, REL_OG],
                "width": details.get("width"),
                "height": details.get("height"),
            })
    return links


@plugin("og-image")
def og_image(meta):
    """Thumbnail links from og:image."""
    og = _get(meta, "og")
    links = []
    for image in _as_list(og.get("image")):
        if isinstance(image, dict):
            links.append({
                "href": image.get("secure_url") or image.get("url"),
                "type": image.get("type") or TYPE_IMAGE,
                "rel": [REL_THUMBNAIL, REL_OG],
                "width": image.get("width"),
                "height": image.get("height"),
            })
        else:
            links.append({"href": image, "type": TYPE_IMAGE, "rel": [REL_THUMBNAIL, REL_OG]})
    return links


@plugin("twitter-player")
def twitter_player(meta):
    """Player links from twitter:player and its raw stream."""
    player = _get(meta, "twitter").get("player")
    if not player:
        return None

    if not isinstance(player, dict):
        player = {"url": player}

    links = [{
        "href": player.get("url"),
        "type": TYPE_HTML,
        "rel": [REL_PLAYER, REL_TWITTER],
        "width": player.get("width"),
        "height": player.get("height"),
    }]

    stream = player.get("stream")
    if stream:
        if not isinstance(stream, dict):
            stream = {"url": stream}
        links.append({
            "href": stream.get("url"),
            "type": stream.get("content_type") or TYPE_MP4,
            "rel": [REL_PLAYER, REL_TWITTER, REL_HTML5],
            "width": player.get("width"),
            "height": player.get("height"),
        })
    return links


@plugin("twitter-image")
def twitter_image(meta):
    """Image from twitter:image; a photo card makes it the main image."""
    twitter = _get(meta, "twitter")
    image = twitter.get("image")
    if not image:
        return None

    if isinstance(image, list):
        image = image[0]
    if not isinstance(image, dict):
        image = {"url": image}

    main_rel = REL_IMAGE if twitter.get("card") == "photo" else REL_THUMBNAIL
    return [{
        "href": image.get("url") or image.get("src"),
        "type": TYPE_IMAGE,
        "rel": [main_rel, REL_TWITTER],
        "width": image.get("width"),
        "height": image.get("height"),
    }]


def _iframe_src(html: str) -> Optional[str]:
    iframe = BeautifulSoup(html, "html.parser").find("iframe", src=True)
    return iframe["src"] if iframe else None


@plugin("oembed")
def oembed_links(meta):
    """Links from the page's own oEmbed response."""
    oembed = _get(meta, "oembed")
    if not oembed:
        return None

    kind = oembed.get("type")
    links = []

    if kind == "photo" and oembed.get("url"):
        links.append({
            "href": oembed["url"],
            "type": TYPE_IMAGE,
            "rel": [REL_IMAGE, REL_OEMBED],
            "width": oembed.get("width"),
            "height": oembed.get("height"),
        })
    elif kind in ("video", "rich") and oembed.get("html"):
        src = _iframe_src(oembed["html"])
        if src:
            if src.startswith("//"):
                src = "https:" + src
            links.append({
                "href": src,
                "type": TYPE_HTML,
                "rel": [REL_PLAYER if kind == "video" else REL_APP, REL_OEMBED],
                "width": oembed.get("width"),
                "height": oembed.get("height"),
                "html": oembed["html"],
            })

    if oembed.get("thumbnail_url"):
        links.append({
            "href": oembed["thumbnail_url"],
            "type": TYPE_IMAGE,
            "rel": [REL_THUMBNAIL, REL_OEMBED],
            "width": oembed.get("thumbnail_width"),
            "height": oembed.get("thumbnail_height"),
        })
    return links


@plugin("favicon")
def favicon(meta):
    """Site icon from <link rel="icon">."""
    icon = _get(meta, "meta").get("icon")
    if not icon:
        return None
    return [{"href": icon, "type": TYPE_ICON, "rel": [REL_ICON]}]


@plugin("direct-file")
def direct_file(meta, page):
    """The URI itself when it points straight at an image or video."""
    if page is None or not page.content_type:
        return None

    content_type = page.content_type.split(";")[0].strip().lower()
    if content_type.startswith("image/"):
        rel = [REL_IMAGE]
    elif content_type.startswith("video/"):
        rel = [REL_PLAYER, REL_HTML5]
    else:
        return None
    return [{"href": page.url, "type": content_type, "rel": rel}]


GENERIC_PLUGINS = [
    oembed_links,
    og_video,
    twitter_player,
    og_image,
    twitter_image,
    favicon,
    direct_file,
]
