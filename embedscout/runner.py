"""
Plugin extraction runner.

Invokes each resolved plugin against the meta mapping and accumulates their
links in plugin order. Each invocation is isolated: a plugin that raises, or
returns something that is not a link collection, loses its contribution and
the run carries on with the rest.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from embedscout.constants import DEFAULT_MAX_WORKERS
from embedscout.errors import PluginExtractionError
from embedscout.models import Link, PluginTrace
from embedscout.plugins import Plugin

logger = logging.getLogger(__name__)


def _coerce_links(result: Any) -> List[Link]:
    """Turn a plugin return value into Links; hrefless candidates are dropped."""
    if result is None:
        return []
    if isinstance(result, (Link, Mapping)):
        result = [result]
    elif not isinstance(result, (list, tuple)):
        raise TypeError(f"expected a list of links, got {type(result).__name__}")

    links = []
    for candidate in result:
        link = Link.from_candidate(candidate)
        if link is None:
            logger.debug("Dropping link candidate without href")
            continue
        links.append(link)
    return links


class ExtractionRunner:
    """Run plugins against normalized meta and collect their links."""

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS):
        """
        Args:
            max_workers: Thread pool size for evaluating plugins concurrently.
                         0 or 1 runs them sequentially.
        """
        self.max_workers = max_workers

    def run(self, plugins: Sequence[Plugin], meta: Mapping[str, Any],
            page: Any = None) -> Tuple[List[Link], List[PluginTrace]]:
        """
        Run every plugin and accumulate valid links in plugin order.

        Args:
            plugins: Resolved plugins, in registry order
            meta: Normalized meta mapping
            page: Optional raw page data for plugins that consult it

        Returns:
            Tuple of (links, per-plugin trace)
        """
        if self.max_workers and self.max_workers > 1 and len(plugins) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                # map() yields in submission order, not completion order
                outcomes = list(executor.map(lambda p: self._invoke(p, meta, page), plugins))
        else:
            outcomes = [self._invoke(p, meta, page) for p in plugins]

        links: List[Link] = []
        trace: List[PluginTrace] = []
        for plugin_links, entry in outcomes:
            links.extend(plugin_links)
            trace.append(entry)
        return links, trace

    def _invoke(self, plugin: Plugin, meta: Mapping[str, Any],
                page: Any) -> Tuple[List[Link], PluginTrace]:
        start = time.perf_counter()
        entry = PluginTrace(plugin=plugin.name)
        links: List[Link] = []

        try:
            links = _coerce_links(plugin.get_links(meta, page))
        except Exception as e:
            error = PluginExtractionError(plugin.name, e)
            logger.warning(str(error), exc_info=logger.isEnabledFor(logging.DEBUG))
            entry.error = str(e) or e.__class__.__name__
            links = []

        entry.elapsed_ms = (time.perf_counter() - start) * 1000
        entry.links = len(links)
        return links, entry


def run_plugins(plugins: Sequence[Plugin], meta: Mapping[str, Any], page: Any = None,
                max_workers: Optional[int] = None) -> List[Link]:
    """Convenience wrapper returning only the links."""
    runner = ExtractionRunner(max_workers if max_workers is not None else DEFAULT_MAX_WORKERS)
    links, _ = runner.run(plugins, meta, page)
    return links
