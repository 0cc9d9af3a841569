"""
Link aggregation: merge plugin candidates into one rel-tagged link set.

Two links are the same offer when their href is identical. Duplicates are
merged into the first-seen link: its type, dimensions and media are kept and
the rel tags of every duplicate are unioned onto it in first-seen order.
"""
import logging
from collections import OrderedDict
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from embedscout.constants import OTHER_GROUP, REL_GROUPS
from embedscout.models import AggregatedResult, Link
from embedscout.utils import extract_host
from embedscout.whitelist import Whitelist

logger = logging.getLogger(__name__)


def _unique(items: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def deduplicate_links(links: Iterable[Union[Link, Mapping[str, Any]]]) -> List[Link]:
    """
    Drop hrefless candidates and merge duplicates by href.

    Args:
        links: Links or link-like dicts, in plugin order

    Returns:
        Distinct links in first-seen order, with unioned rel tags
    """
    merged: "OrderedDict[str, Link]" = OrderedDict()
    dropped = 0

    for candidate in links:
        link = Link.from_candidate(candidate)
        if link is None:
            dropped += 1
            continue

        existing = merged.get(link.href)
        if existing is None:
            # Copy so plugin-owned objects are never mutated
            merged[link.href] = replace(link, rel=_unique(link.rel))
        else:
            existing.rel = _unique(existing.rel + link.rel)

    if dropped:
        logger.debug(f"Dropped {dropped} link candidates without href")

    return list(merged.values())


def group_links(links: Sequence[Link], groups: Sequence[str] = REL_GROUPS) -> Dict[str, List[Link]]:
    """
    Split links by relation group.

    A link appears in every group it is tagged with, so this is a covering
    rather than a partition. Links matching no known group go to `other`.
    Empty groups are omitted; order follows `groups`.
    """
    grouped: Dict[str, List[Link]] = {}
    for rel in groups:
        members = [link for link in links if rel in link.rel]
        if members:
            grouped[rel] = members

    known = set(groups)
    other = [link for link in links if not known.intersection(link.rel)]
    if other:
        grouped[OTHER_GROUP] = other

    return grouped


class LinkAggregator:
    """Merge, group and annotate the links of one request."""

    def __init__(self, whitelist: Optional[Whitelist] = None,
                 groups: Sequence[str] = REL_GROUPS):
        self.whitelist = whitelist
        self.groups = list(groups)

    def aggregate(self, links: Iterable[Union[Link, Mapping[str, Any]]],
                  uri: Optional[str] = None,
                  group: bool = False,
                  whitelist: bool = False) -> AggregatedResult:
        """
        Build an AggregatedResult from plugin links.

        Args:
            links: Candidate links in plugin order
            uri: Target URI, used for the whitelist lookup
            group: Group links by relation
            whitelist: Attach the whitelist record for the URI's host

        Returns:
            AggregatedResult (empty links is a valid result)
        """
        distinct = deduplicate_links(links)
        result = AggregatedResult(links=distinct)

        if group:
            result.links = group_links(distinct, self.groups)

        if whitelist:
            result.whitelist = self.lookup_whitelist(uri)

        return result

    def lookup_whitelist(self, uri: Optional[str]) -> Dict[str, Any]:
        """Whitelist record for the URI's host, or an empty record."""
        if self.whitelist is None or not uri:
            return {}
        try:
            return self.whitelist.lookup(extract_host(uri))
        except Exception as e:
            logger.warning(f"Whitelist lookup failed for {uri}: {e}")
            return {}
