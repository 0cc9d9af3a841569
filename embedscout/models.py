"""
Data model for discovered links and aggregated results.

Links and results are created per request and discarded after the response.
"""
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Union

from embedscout.constants import DEFAULT_LINK_TYPE, OEMBED_VERSION
from embedscout.utils import coerce_int


@dataclass
class Link:
    """A discovered representation of the target URI."""

    href: str
    type: str = DEFAULT_LINK_TYPE
    rel: List[str] = field(default_factory=list)
    width: Optional[int] = None
    height: Optional[int] = None
    media: Optional[Dict[str, Any]] = None  # opaque, type specific
    title: Optional[str] = None
    html: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: Union["Link", Mapping[str, Any], None]) -> Optional["Link"]:
        """
        Build a Link from a plugin candidate.

        Plugins may return Link instances or plain dicts. Candidates without
        an href are invalid and yield None.
        """
        if candidate is None:
            return None

        if isinstance(candidate, Link):
            if not candidate.href:
                return None
            return candidate

        if not isinstance(candidate, Mapping):
            raise TypeError(f"Link candidate must be a mapping, got {type(candidate).__name__}")

        href = candidate.get("href")
        if not href or not isinstance(href, str):
            return None

        rel = candidate.get("rel") or []
        if isinstance(rel, str):
            rel = [rel]

        return cls(
            href=href,
            type=candidate.get("type") or DEFAULT_LINK_TYPE,
            rel=list(rel),
            width=coerce_int(candidate.get("width")),
            height=coerce_int(candidate.get("height")),
            media=candidate.get("media"),
            title=candidate.get("title"),
            html=candidate.get("html"),
        )

    def has_rel(self, rel: str) -> bool:
        return rel in self.rel

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting optional fields that are absent."""
        data: Dict[str, Any] = {
            "href": self.href,
            "type": self.type,
            "rel": list(self.rel),
        }
        for name in ("width", "height", "media", "title", "html"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass
class PluginTrace:
    """Debug record of one plugin invocation."""

    plugin: str
    elapsed_ms: float = 0.0
    links: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"plugin": self.plugin, "elapsed_ms": round(self.elapsed_ms, 3), "links": self.links}
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class AggregatedResult:
    """
    Final output of the discovery pipeline.

    `links` is a list, or a mapping from relation group to list when grouping
    was requested. `plugins`, `trace`, `time` and `fetch` are debug-only and are
    stripped by `to_dict()` unless asked for.
    """

    links: Union[List[Link], Dict[str, List[Link]]] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)
    whitelist: Optional[Dict[str, Any]] = None
    raw_meta: Optional[Dict[str, Any]] = None
    plugins: List[str] = field(default_factory=list)
    trace: List[PluginTrace] = field(default_factory=list)
    time: Optional[float] = None
    fetch: Optional[Dict[str, Any]] = None

    @property
    def grouped(self) -> bool:
        return isinstance(self.links, dict)

    def all_links(self) -> List[Link]:
        """Flat list of distinct links, in first-seen order, grouped or not."""
        if not self.grouped:
            return list(self.links)
        seen = set()
        flat = []
        for group_links in self.links.values():
            for link in group_links:
                if link.href not in seen:
                    seen.add(link.href)
                    flat.append(link)
        return flat

    def to_dict(self, debug: bool = False) -> Dict[str, Any]:
        if self.grouped:
            links: Any = {
                group: [link.to_dict() for link in group_links]
                for group, group_links in self.links.items()
            }
        else:
            links = [link.to_dict() for link in self.links]

        data: Dict[str, Any] = {"meta": dict(self.meta), "links": links}
        if self.whitelist is not None:
            data["whitelist"] = self.whitelist
        if self.raw_meta is not None:
            data["raw-meta"] = self.raw_meta
        if debug:
            data["plugins"] = list(self.plugins)
            data["debug"] = [entry.to_dict() for entry in self.trace]
            data["time"] = self.time
            if self.fetch is not None:
                data["fetch"] = self.fetch
        return data


@dataclass
class OEmbedRecord:
    """A single legacy oEmbed object."""

    type: str
    version: str = OEMBED_VERSION
    url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    author_name: Optional[str] = None
    author_url: Optional[str] = None
    provider_name: Optional[str] = None
    thumbnail_url: Optional[str] = None
    thumbnail_width: Optional[int] = None
    thumbnail_height: Optional[int] = None
    html: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in field order, omitting undefined values."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }
