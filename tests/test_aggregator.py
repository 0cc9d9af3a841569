"""
Tests for embedscout/aggregator.py link merging and grouping.
"""
import pytest
from unittest.mock import MagicMock

from embedscout.aggregator import LinkAggregator, deduplicate_links, group_links
from embedscout.models import Link
from embedscout.whitelist import Whitelist


class TestDeduplicate:
    """Test href-based deduplication."""

    def test_hrefless_candidates_dropped(self):
        assert deduplicate_links([{"rel": ["player"]}, {"href": "", "rel": ["image"]}]) == []

    def test_duplicates_merged_with_rel_union(self):
        links = deduplicate_links([
            {"href": "https://example.com/v", "rel": ["player", "og"], "width": 640},
            {"href": "https://example.com/v", "rel": ["player", "twitter"], "width": 320},
        ])
        assert len(links) == 1
        assert links[0].rel == ["player", "og", "twitter"]
        assert links[0].width == 640

    def test_first_seen_order(self):
        links = deduplicate_links([
            {"href": "https://example.com/b"},
            {"href": "https://example.com/a"},
            {"href": "https://example.com/b"},
        ])
        assert [l.href for l in links] == ["https://example.com/b", "https://example.com/a"]

    def test_repeated_rel_in_one_link_collapsed(self):
        links = deduplicate_links([{"href": "https://example.com/", "rel": ["image", "image"]}])
        assert links[0].rel == ["image"]

    def test_plugin_link_not_mutated(self):
        original = Link(href="https://example.com/v", rel=["player"])
        deduplicate_links([original, Link(href="https://example.com/v", rel=["og"])])
        assert original.rel == ["player"]


class TestGroupLinks:
    """Test relation grouping."""

    @pytest.fixture
    def links(self):
        return [
            Link(href="https://example.com/v", rel=["player", "og"]),
            Link(href="https://example.com/t.jpg", type="image", rel=["thumbnail"]),
            Link(href="https://example.com/x", rel=["mystery"]),
            Link(href="https://example.com/app", rel=["app"]),
        ]

    def test_link_in_every_tagged_group(self, links):
        grouped = group_links(links)
        assert [l.href for l in grouped["player"]] == ["https://example.com/v"]
        assert [l.href for l in grouped["og"]] == ["https://example.com/v"]

    def test_group_order_follows_vocabulary(self, links):
        assert list(group_links(links)) == ["app", "player", "thumbnail", "og", "other"]

    def test_unknown_rels_go_to_other(self, links):
        assert [l.href for l in group_links(links)["other"]] == ["https://example.com/x"]

    def test_no_other_group_when_empty(self):
        grouped = group_links([Link(href="https://example.com/", rel=["image"])])
        assert list(grouped) == ["image"]

    def test_empty_input(self):
        assert group_links([]) == {}

    def test_custom_groups(self, links):
        grouped = group_links(links, groups=["thumbnail"])
        assert list(grouped) == ["thumbnail", "other"]
        assert len(grouped["other"]) == 3


class TestLinkAggregator:
    """Test LinkAggregator.aggregate()."""

    @pytest.fixture
    def aggregator(self, whitelist):
        return LinkAggregator(whitelist=whitelist)

    def test_hrefless_only_gives_empty_result(self, aggregator):
        result = aggregator.aggregate([{"rel": ["player"]}])
        assert result.links == []
        assert result.whitelist is None

    def test_ungrouped(self, aggregator):
        result = aggregator.aggregate([{"href": "https://example.com/v", "rel": ["player"]}])
        assert not result.grouped
        assert result.links[0].href == "https://example.com/v"

    def test_grouped(self, aggregator):
        result = aggregator.aggregate(
            [{"href": "https://example.com/v", "rel": ["player", "og"]}],
            group=True,
        )
        assert result.grouped
        assert set(result.links) == {"player", "og"}

    def test_whitelist_most_specific_record(self, aggregator):
        result = aggregator.aggregate([], uri="https://video.example.com/watch/1", whitelist=True)
        assert result.whitelist == {"tier": "trusted", "autoplay": False, "domain": "video.example.com"}

    def test_whitelist_parent_domain(self, aggregator):
        result = aggregator.aggregate([], uri="https://www.example.com/", whitelist=True)
        assert result.whitelist["tier"] == "basic"

    def test_whitelist_miss_is_empty_record(self, aggregator):
        result = aggregator.aggregate([], uri="https://other.org/", whitelist=True)
        assert result.whitelist == {}

    def test_whitelist_not_requested(self, aggregator):
        result = aggregator.aggregate([], uri="https://video.example.com/")
        assert result.whitelist is None

    def test_whitelist_lookup_failure_is_empty_record(self):
        broken = MagicMock(spec=Whitelist)
        broken.lookup.side_effect = RuntimeError("store offline")
        aggregator = LinkAggregator(whitelist=broken)
        assert aggregator.lookup_whitelist("https://example.com/") == {}

    def test_no_whitelist_configured(self):
        assert LinkAggregator().lookup_whitelist("https://example.com/") == {}
