"""
Output formatting for aggregated results.

Converts the multi-link discovery result into the legacy single-object
oEmbed record, serializes records as oEmbed XML, and exports the plugin
routing table as JSON.
"""
import json
import xml.etree.ElementTree as ET
from html import escape
from typing import Any, Dict, List, Mapping, Optional, Union

from embedscout.constants import (
    OEMBED_LINK,
    OEMBED_PHOTO,
    OEMBED_RICH,
    OEMBED_VIDEO,
    REL_APP,
    REL_IMAGE,
    REL_PLAYER,
    REL_READER,
    REL_SURVEY,
    REL_THUMBNAIL,
)
from embedscout.models import AggregatedResult, Link, OEmbedRecord
from embedscout.utils import coerce_int

XML_HEADER = '<?xml version="1.0" encoding="utf-8" standalone="yes"?>'

RICH_RELS = (REL_APP, REL_SURVEY, REL_READER)


def _first_with_rel(links: List[Link], *rels: str) -> Optional[Link]:
    for link in links:
        if any(rel in link.rel for rel in rels):
            return link
    return None


def embed_html(link: Link) -> str:
    """Minimal embed markup for a player or rich link."""
    if link.html:
        return link.html

    size = ""
    if link.width:
        size += f' width="{link.width}"'
    if link.height:
        size += f' height="{link.height}"'

    src = escape(link.href, quote=True)
    if link.type.startswith("video/"):
        return f'<video src="{src}"{size} controls></video>'
    return f'<iframe src="{src}"{size} frameborder="0" allowfullscreen></iframe>'


def to_oembed(uri: str, result: AggregatedResult) -> OEmbedRecord:
    """
    Reduce an aggregated result to one oEmbed record.

    A player link makes a `video`, a reader/app/survey link a `rich`, an
    image link a `photo`; otherwise the record is a plain `link`.
    """
    links = result.all_links()
    meta = result.meta or {}

    player = _first_with_rel(links, REL_PLAYER)
    rich = _first_with_rel(links, *RICH_RELS)
    image = _first_with_rel(links, REL_IMAGE)
    thumbnail = _first_with_rel(links, REL_THUMBNAIL) or image

    record = OEmbedRecord(
        type=OEMBED_LINK,
        title=meta.get("title"),
        description=meta.get("description"),
        author_name=meta.get("author"),
        author_url=meta.get("author_url"),
        provider_name=meta.get("site"),
    )

    if player is not None:
        record.type = OEMBED_VIDEO
        record.html = embed_html(player)
        record.width = coerce_int(player.width)
        record.height = coerce_int(player.height)
    elif rich is not None:
        record.type = OEMBED_RICH
        record.html = embed_html(rich)
        record.width = coerce_int(rich.width)
        record.height = coerce_int(rich.height)
    elif image is not None:
        record.type = OEMBED_PHOTO
        record.url = image.href
        record.width = coerce_int(image.width)
        record.height = coerce_int(image.height)

    if thumbnail is not None:
        record.thumbnail_url = thumbnail.href
        record.thumbnail_width = coerce_int(thumbnail.width)
        record.thumbnail_height = coerce_int(thumbnail.height)
    elif meta.get("image"):
        record.thumbnail_url = meta["image"]
        record.thumbnail_width = coerce_int(meta.get("image_width"))
        record.thumbnail_height = coerce_int(meta.get("image_height"))

    if record.type == OEMBED_LINK and not record.url:
        record.url = meta.get("canonical") or uri

    return record


def _append_value(parent: ET.Element, key: str, value: Any) -> None:
    if value is None:
        return
    child = ET.SubElement(parent, key)
    if isinstance(value, Mapping):
        for sub_key, sub_value in value.items():
            _append_value(child, str(sub_key), sub_value)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _append_value(child, "item", item)
    elif isinstance(value, bool):
        child.text = "true" if value else "false"
    else:
        child.text = str(value)


def to_xml(record: Union[OEmbedRecord, Mapping[str, Any]]) -> str:
    """
    Serialize an oEmbed record as XML.

    Text content is escaped; fields with an undefined value are omitted.
    """
    data = record.to_dict() if isinstance(record, OEmbedRecord) else dict(record)

    root = ET.Element("oembed")
    for key, value in data.items():
        _append_value(root, key, value)

    return XML_HEADER + ET.tostring(root, encoding="unicode")


def to_routing_json(routing_table: List[Dict[str, str]], indent: Optional[int] = None) -> str:
    """Serialize the plugin routing table."""
    return json.dumps(routing_table, indent=indent)


def result_to_json(result: AggregatedResult, debug: bool = False, indent: Optional[int] = None) -> str:
    """Serialize an aggregated result, stripping debug fields unless asked."""
    return json.dumps(result.to_dict(debug=debug), indent=indent, ensure_ascii=False)
