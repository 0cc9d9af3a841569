"""
Link discovery pipeline.

URI -> fetch -> meta mapping -> plugin resolution -> extraction ->
aggregation. The engine owns no mutable state shared between requests: the
registry is frozen before it is handed in, and every call builds its own
links and result.

Example Usage:
    >>> from embedscout import Engine
    >>> engine = Engine.from_config()
    >>> result = engine.discover("https://vimeo.com/76979871", group=True)
    >>> record = engine.oembed("https://vimeo.com/76979871")
"""
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from embedscout.aggregator import LinkAggregator
from embedscout.config import EmbedConfig, get_config
from embedscout.errors import EmbedScoutError, FetchError
from embedscout.extractors import create_default_registry
from embedscout.fetcher import PageData, PageFetcher
from embedscout.formatters import to_oembed
from embedscout.meta import MetaMapper, meta_mappings
from embedscout.models import AggregatedResult, OEmbedRecord
from embedscout.plugins import PluginRegistry
from embedscout.runner import ExtractionRunner
from embedscout.utils import prepare_uri
from embedscout.whitelist import Whitelist

logger = logging.getLogger(__name__)


class Engine:
    """Entry points of the discovery pipeline."""

    def __init__(self, registry: PluginRegistry,
                 fetcher: Optional[PageFetcher] = None,
                 whitelist: Optional[Whitelist] = None,
                 mapper: Optional[MetaMapper] = None,
                 runner: Optional[ExtractionRunner] = None,
                 mix_all_with_domain_plugin: bool = False):
        self.registry = registry
        self.fetcher = fetcher or PageFetcher()
        self.mapper = mapper or MetaMapper()
        self.runner = runner or ExtractionRunner()
        self.aggregator = LinkAggregator(whitelist=whitelist)
        self.mix_all_with_domain_plugin = mix_all_with_domain_plugin

    @classmethod
    def from_config(cls, config: Optional[EmbedConfig] = None,
                    registry: Optional[PluginRegistry] = None) -> "Engine":
        """Build an engine with the built-in plugins and configured collaborators."""
        config = config or get_config()

        whitelist = Whitelist()
        if config.whitelist_file:
            path = Path(config.whitelist_file)
            if path.exists():
                whitelist = Whitelist.from_file(path)
            else:
                logger.warning(f"Whitelist file not found: {path}")

        return cls(
            registry=registry or create_default_registry(),
            fetcher=PageFetcher(
                timeout=config.timeout,
                user_agent=config.user_agent,
                verify_ssl=config.verify_ssl,
                discover_oembed=config.discover_oembed,
            ),
            whitelist=whitelist,
            runner=ExtractionRunner(max_workers=config.max_workers),
            mix_all_with_domain_plugin=config.mix_all_with_domain_plugin,
        )

    def fetch(self, uri: str) -> PageData:
        """
        Fetch a prepared URI.

        Raises:
            PageUnreachable: The page does not exist
            FetchError: Any other fetch failure
        """
        try:
            return self.fetcher.fetch_page(uri)
        except EmbedScoutError:
            raise
        except Exception as e:
            raise FetchError(uri, str(e) or e.__class__.__name__) from e

    def discover(self, uri: str, group: bool = False, whitelist: bool = False,
                 meta: bool = False, debug: bool = False,
                 mix_all_with_domain_plugin: Optional[bool] = None) -> AggregatedResult:
        """
        Discover the links of a URI.

        Args:
            uri: Target URI (scheme optional)
            group: Group links by relation
            whitelist: Attach the whitelist record for the host
            meta: Attach the raw page meta and oEmbed as `raw_meta`
            debug: Keep the plugin list, per-plugin trace, timing and fetch trace
            mix_all_with_domain_plugin: Run generic plugins even when an
                exclusive domain plugin matched (defaults to the engine setting)

        Returns:
            AggregatedResult; an empty link list means nothing embeddable was found

        Raises:
            MalformedInput: Missing or unusable URI
            PageUnreachable: The page does not exist
            FetchError: Any other fetch failure
        """
        start = time.perf_counter()
        uri = prepare_uri(uri)
        if mix_all_with_domain_plugin is None:
            mix_all_with_domain_plugin = self.mix_all_with_domain_plugin

        logger.info(f"Loading links for {uri}")

        page = self.fetch(uri)
        mapping = self.mapper.normalize(page.raw_meta, page.raw_oembed)
        plugins = self.registry.resolve(uri, mix_all_with_domain_plugin=mix_all_with_domain_plugin)
        links, trace = self.runner.run(plugins, mapping, page)

        result = self.aggregator.aggregate(links, uri=uri, group=group, whitelist=whitelist)
        result.meta = mapping.canonical

        if meta:
            result.raw_meta = {"meta": page.raw_meta, "oembed": page.raw_oembed}

        if debug:
            result.plugins = [p.name for p in plugins]
            result.trace = trace
            result.time = round((time.perf_counter() - start) * 1000, 3)
            result.fetch = page.trace()

        failed = [entry.plugin for entry in trace if entry.error]
        if failed:
            logger.info(f"Plugins failed for {uri}: {failed}")

        return result

    def oembed(self, uri: str) -> OEmbedRecord:
        """Discover a URI and reduce the result to one oEmbed record."""
        uri = prepare_uri(uri)
        logger.info(f"Loading oembed for {uri}")
        return to_oembed(uri, self.discover(uri))

    def twitter(self, uri: str) -> Dict[str, Any]:
        """Raw Twitter Card tags of a page."""
        uri = prepare_uri(uri)
        page = self.fetch(uri)
        return page.raw_meta.get("twitter") or {}

    def routing_table(self) -> List[Dict[str, str]]:
        return self.registry.export_routing_table()

    def meta_mappings(self) -> Dict[str, Any]:
        return meta_mappings(self.mapper.attributes)
