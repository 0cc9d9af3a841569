"""
Meta mapping: canonical view of a page's metadata.

Raw page signals come from four sources: an explicit oEmbed response,
Open Graph tags, Twitter Card tags and generic HTML meta. The MetaMapper
folds them into one mapping keyed by a fixed attribute vocabulary, probing
sources in precedence order (oEmbed > Open Graph > Twitter > meta). The raw
sources stay available under their namespaces with their original nesting,
so a plugin can still read `og.video` as an object with url/secure_url/
width/height/type.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

NAMESPACES = ("oembed", "og", "twitter", "meta")

# Canonical attribute -> source paths, highest precedence first
ATTRIBUTES: Dict[str, List[str]] = {
    "title": ["oembed.title", "og.title", "twitter.title", "meta.title"],
    "description": ["oembed.description", "og.description", "twitter.description", "meta.description"],
    "author": ["oembed.author_name", "og.article.author", "twitter.creator", "meta.author"],
    "author_url": ["oembed.author_url", "meta.article.author"],
    "site": ["oembed.provider_name", "og.site_name", "twitter.site", "meta.application-name"],
    "canonical": ["og.url", "twitter.url", "meta.canonical"],
    "image": ["oembed.thumbnail_url", "og.image", "twitter.image", "meta.image_src"],
    "image_width": ["oembed.thumbnail_width", "og.image.width", "twitter.image.width"],
    "image_height": ["oembed.thumbnail_height", "og.image.height", "twitter.image.height"],
    "video": ["og.video", "twitter.player.stream", "meta.video_src"],
    "video_type": ["og.video.type", "twitter.player.stream.content_type", "meta.video_type"],
    "video_width": ["og.video.width", "twitter.player.width", "meta.video_width"],
    "video_height": ["og.video.height", "twitter.player.height", "meta.video_height"],
    "player": ["oembed.html", "twitter.player"],
    "keywords": ["og.video.tag", "meta.keywords"],
    "date": ["og.article.published_time", "meta.article.published_time", "meta.date"],
    "duration": ["oembed.duration", "og.video.duration", "meta.video.duration", "meta.duration"],
    "type": ["oembed.type", "og.type", "twitter.card"],
    "language": ["og.locale", "meta.language"],
    "icon": ["meta.icon", "meta.shortcut-icon"],
}


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _scalar(value: Any) -> Any:
    """Reduce a structured tag value to the scalar a canonical key holds."""
    if isinstance(value, list):
        return _scalar(value[0]) if value else None
    if isinstance(value, dict):
        return value.get("url") or value.get("src") or value.get("secure_url")
    return value


def _lower_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(v) for v in value]
    return value


class MetaMapping(dict):
    """
    Canonical key -> value view of page signals.

    Canonical attributes sit at the top level; raw sources sit under the
    `og`, `twitter`, `meta` and `oembed` namespaces.
    """

    def lookup(self, path: str, default: Any = None) -> Any:
        """
        Resolve a dotted path such as "og.video.url".

        Lists are walked through their first element, so "og.image.url"
        works whether one or several images were declared.
        """
        current: Any = self
        for part in path.lower().split("."):
            if isinstance(current, list):
                if not current:
                    return default
                current = current[0]
            if not isinstance(current, Mapping) or part not in current:
                return default
            current = current[part]
        return current

    @property
    def canonical(self) -> Dict[str, Any]:
        """Only the vocabulary attributes."""
        return {key: self[key] for key in ATTRIBUTES if key in self}


class MetaMapper:
    """Normalize raw page metadata into a MetaMapping."""

    def __init__(self, attributes: Optional[Dict[str, List[str]]] = None):
        self.attributes = attributes if attributes is not None else ATTRIBUTES

    def normalize(self, raw_meta: Optional[Mapping[str, Any]],
                  raw_oembed: Optional[Mapping[str, Any]] = None) -> MetaMapping:
        """
        Build the canonical mapping. Never fails; absent data yields absent keys.

        Args:
            raw_meta: Page meta grouped by namespace ({"og": {...}, "twitter": {...}, "meta": {...}})
            raw_oembed: Parsed oEmbed response for the page, if any

        Returns:
            MetaMapping with canonical attributes and raw namespaces
        """
        mapping = MetaMapping()

        raw = _lower_keys(raw_meta or {})
        if not isinstance(raw, dict):
            logger.debug(f"Ignoring non-mapping raw meta of type {type(raw_meta).__name__}")
            raw = {}

        collisions = {}
        for namespace, value in raw.items():
            if namespace in self.attributes:
                collisions[namespace] = value
            else:
                mapping[namespace] = value

        if collisions:
            # Keep the canonical keyspace clean of raw tags
            logger.debug(f"Raw meta keys {sorted(collisions)} collide with vocabulary, kept under meta")
            generic = dict(mapping.get("meta") or {})
            for key, value in collisions.items():
                generic.setdefault(key, value)
            mapping["meta"] = generic

        if raw_oembed:
            mapping["oembed"] = _lower_keys(raw_oembed)

        for attribute, sources in self.attributes.items():
            for source in sources:
                value = _scalar(mapping.lookup(source))
                if not _is_empty(value):
                    mapping[attribute] = value
                    break

        return mapping


def meta_mappings(attributes: Optional[Dict[str, List[str]]] = None) -> Dict[str, Any]:
    """Export the vocabulary: attribute names and their ordered source paths."""
    attributes = attributes if attributes is not None else ATTRIBUTES
    return {
        "attributes": list(attributes.keys()),
        "sources": {name: list(paths) for name, paths in attributes.items()},
    }
