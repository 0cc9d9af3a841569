"""
embedscout plugin architecture.

A plugin is a self-contained extraction rule: given the normalized meta
mapping of a page (and optionally the raw fetched page) it returns candidate
links. Plugins declare where they apply:

- `patterns`: regular expressions matched against the full URI
- `domain`: a hostname matched exactly or as a parent domain
- neither: a generic plugin that runs for every URI

Key features:
- Instantiable registry (not global), built once and then frozen
- Deterministic resolution order: pattern matches, domain matches, generic
- Function plugins for the common "just a get_links function" case
- Routing table export of every domain plugin's matching pattern
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, List, Optional, Pattern, Sequence, Tuple, Union
from dataclasses import dataclass
import inspect
import logging
import re

from embedscout.errors import PluginError, PluginValidationError
from embedscout.utils import extract_host, host_matches_domain

logger = logging.getLogger(__name__)

PatternLike = Union[str, Pattern]


# ============================================================================
# Plugin Metadata
# ============================================================================

@dataclass(frozen=True)
class PluginMetadata:
    """Metadata for a plugin."""
    name: str
    description: str = ""
    domain: Optional[str] = None
    patterns: Tuple[PatternLike, ...] = ()
    exclusive: bool = False  # suppresses generic plugins when matched
    version: str = "1.0.0"


# ============================================================================
# Plugin Interfaces
# ============================================================================

class Plugin(ABC):
    """Base class for all extraction plugins."""

    @property
    @abstractmethod
    def metadata(self) -> PluginMetadata:
        """Return plugin metadata."""
        pass

    @abstractmethod
    def get_links(self, meta: Dict[str, Any], page: Any = None) -> Optional[Sequence[Any]]:
        """
        Produce candidate links from the normalized meta mapping.

        Must not perform network I/O. Candidates are Link instances or dicts
        with at least an `href`; candidates without one are dropped.
        """
        pass

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def domain(self) -> Optional[str]:
        return self.metadata.domain

    @property
    def exclusive(self) -> bool:
        return self.metadata.exclusive

    @property
    def patterns(self) -> List[Pattern]:
        """Compiled URI patterns, in declaration order."""
        compiled = self.__dict__.get("_compiled_patterns")
        if compiled is None:
            compiled = [
                p if isinstance(p, re.Pattern) else re.compile(p)
                for p in self.metadata.patterns
            ]
            self.__dict__["_compiled_patterns"] = compiled
        return compiled

    @property
    def is_generic(self) -> bool:
        """True for domain-agnostic plugins."""
        return not self.domain and not self.metadata.patterns

    def matches_uri(self, uri: str) -> bool:
        return any(p.search(uri) for p in self.patterns)

    def matches_host(self, host: str) -> bool:
        return bool(self.domain) and host_matches_domain(host, self.domain)

    def validate(self) -> bool:
        """
        Validate that the plugin is properly configured.
        Override for custom validation logic.
        """
        if not self.metadata.name:
            return False
        self.patterns  # compiles, raising re.error on a bad expression
        return True

    def __repr__(self):
        return f"<{self.__class__.__name__}(name={self.name}, domain={self.domain})>"


class FunctionPlugin(Plugin):
    """
    Plugin backed by a plain function.

    The function takes `meta`, or `meta` and `page`; the signature is
    inspected once at construction.
    """

    def __init__(self, func: Callable[..., Any], metadata: PluginMetadata):
        self._func = func
        self._metadata = metadata
        try:
            params = inspect.signature(func).parameters
            self._wants_page = len(params) >= 2 or "page" in params
        except (TypeError, ValueError):
            self._wants_page = False

    @property
    def metadata(self) -> PluginMetadata:
        return self._metadata

    def get_links(self, meta: Dict[str, Any], page: Any = None) -> Optional[Sequence[Any]]:
        if self._wants_page:
            return self._func(meta, page)
        return self._func(meta)


def plugin(name: str, domain: Optional[str] = None, patterns: Sequence[PatternLike] = (),
           description: str = "", exclusive: bool = False) -> Callable[[Callable[..., Any]], FunctionPlugin]:
    """
    Decorator turning a get_links function into a FunctionPlugin.

    Example:
        @plugin("og-video")
        def og_video(meta):
            ...
    """
    def decorator(func: Callable[..., Any]) -> FunctionPlugin:
        metadata = PluginMetadata(
            name=name,
            description=description or (inspect.getdoc(func) or "").split("\n")[0],
            domain=domain,
            patterns=tuple(patterns),
            exclusive=exclusive,
        )
        return FunctionPlugin(func, metadata)
    return decorator


# ============================================================================
# Plugin Registry
# ============================================================================

_FLAG_LETTERS = (
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
)


def _flags_to_string(flags: int) -> str:
    return "".join(letter for flag, letter in _FLAG_LETTERS if flags & flag)


class PluginRegistry:
    """
    Registry of extraction plugins.

    Built once at startup and frozen; lookups afterwards are read-only and
    safe to share between concurrent requests.
    """

    def __init__(self, validate_strict: bool = True):
        """
        Initialize the plugin registry.

        Args:
            validate_strict: If True, raise errors on validation failures.
                           If False, log warnings and skip invalid plugins.
        """
        self._plugins: List[Plugin] = []
        self._by_name: Dict[str, Plugin] = {}
        self._frozen = False
        self.validate_strict = validate_strict

    def register(self, plugin: Plugin) -> None:
        """
        Register a plugin instance.

        Raises:
            PluginError: If the registry is frozen or the object is not a Plugin
            PluginValidationError: If plugin validation fails in strict mode
        """
        if self._frozen:
            raise PluginError(f"Registry is frozen, cannot register {getattr(plugin, 'name', plugin)}")

        if not isinstance(plugin, Plugin):
            raise PluginError(f"{plugin!r} does not implement Plugin")

        try:
            valid = plugin.validate()
            error_msg = f"Plugin {plugin.name} validation failed"
        except Exception as e:
            valid = False
            error_msg = f"Plugin {plugin.name} validation error: {e}"

        if not valid:
            if self.validate_strict:
                raise PluginValidationError(error_msg)
            logger.warning(error_msg)
            return

        existing = self._by_name.get(plugin.name)
        if existing is not None:
            logger.warning(f"Plugin {plugin.name} already registered, replacing")
            self._plugins[self._plugins.index(existing)] = plugin
        else:
            self._plugins.append(plugin)
        self._by_name[plugin.name] = plugin

        logger.info(
            f"Registered plugin: {plugin.name} "
            f"(domain={plugin.domain or '-'}, patterns={len(plugin.patterns)})"
        )

    def register_all(self, plugins: Sequence[Plugin]) -> "PluginRegistry":
        for p in plugins:
            self.register(p)
        return self

    def freeze(self) -> "PluginRegistry":
        """Make the registry read-only."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def plugins(self) -> Tuple[Plugin, ...]:
        """All plugins in registration order."""
        return tuple(self._plugins)

    def get_plugin(self, name: str) -> Optional[Plugin]:
        return self._by_name.get(name)

    def __len__(self) -> int:
        return len(self._plugins)

    def __iter__(self) -> Iterator[Plugin]:
        return iter(tuple(self._plugins))

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def resolve(self, uri: str, mix_all_with_domain_plugin: bool = False) -> List[Plugin]:
        """
        Find the ordered plugins applicable to a URI.

        Order: plugins whose patterns match the URI, then plugins whose
        domain matches the host (patterns take precedence over domain, so a
        plugin with patterns is never selected by domain alone), then generic
        plugins. Generic plugins are dropped when an exclusive plugin matched,
        unless mix_all_with_domain_plugin is set. Never fails; an empty list
        is a valid outcome.
        """
        host = extract_host(uri)

        by_pattern = [p for p in self._plugins if p.patterns and p.matches_uri(uri)]
        by_domain = [
            p for p in self._plugins
            if not p.patterns and p.matches_host(host)
        ]
        generic = [p for p in self._plugins if p.is_generic]

        specific = by_pattern + by_domain
        exclusive = [p.name for p in specific if p.exclusive]
        if exclusive and not mix_all_with_domain_plugin:
            logger.debug(f"Skipping generic plugins for {uri}: exclusive match {exclusive}")
            generic = []

        resolved = specific + generic
        logger.debug(f"Resolved {len(resolved)} plugins for {uri}: {[p.name for p in resolved]}")
        return resolved

    def export_routing_table(self) -> List[Dict[str, str]]:
        """
        Flatten domain plugins into regex descriptors for external routing.

        Plugins with patterns contribute each pattern; plugins with only a
        domain contribute the escaped domain once. Generic plugins are not
        listed. Sorted by (source, flags) so the export is stable.
        """
        entries: List[Dict[str, str]] = []
        seen_domains = set()

        for p in self._plugins:
            if not p.domain:
                continue

            if p.patterns:
                for pattern in p.patterns:
                    entries.append({
                        "source": pattern.pattern,
                        "flags": _flags_to_string(pattern.flags),
                    })
            elif p.domain not in seen_domains:
                seen_domains.add(p.domain)
                entries.append({
                    "source": p.domain.replace(".", "\\."),
                    "flags": "",
                })

        entries.sort(key=lambda e: (e["source"], e["flags"]))
        return entries

    def get_plugin_info(self) -> List[Dict[str, Any]]:
        """Information about registered plugins, in registration order."""
        return [
            {
                "name": p.name,
                "description": p.metadata.description,
                "domain": p.domain,
                "patterns": [pattern.pattern for pattern in p.patterns],
                "exclusive": p.exclusive,
                "generic": p.is_generic,
                "class": p.__class__.__name__,
            }
            for p in self._plugins
        ]
