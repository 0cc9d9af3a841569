"""
embedscout - embeddable content discovery

Fetches a web page, runs content-specific extraction plugins against its
Open Graph, Twitter Card, oEmbed and meta signals, and merges their results
into one normalized, rel-tagged link collection compatible with oEmbed.

Design Principles:
- Plugins are pure functions of the page meta; the registry is built once
- One failing plugin degrades the result, never aborts the request
- Deterministic output: plugin order, rel groups and exports are stable
- Native flags at every entry point; transport parsing stays outside

Example Usage:
    >>> from embedscout import Engine
    >>> engine = Engine.from_config()
    >>> result = engine.discover("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
    >>> [link.href for link in result.links]
    >>> engine.oembed("https://vimeo.com/76979871").to_dict()
"""

__version__ = "0.3.0"
__author__ = "embedscout contributors"

# Pipeline
from embedscout.engine import Engine

# Configuration
from embedscout.config import EmbedConfig, get_config, init_config

# Models
from embedscout.models import Link, AggregatedResult, OEmbedRecord, PluginTrace

# Components
from embedscout.aggregator import LinkAggregator
from embedscout.meta import MetaMapper, MetaMapping
from embedscout.plugins import Plugin, PluginMetadata, PluginRegistry, plugin
from embedscout.runner import ExtractionRunner
from embedscout.extractors import builtin_plugins, create_default_registry

# Output
from embedscout.formatters import to_oembed, to_xml, to_routing_json

# Errors
from embedscout.errors import (
    EmbedScoutError,
    MalformedInput,
    PageUnreachable,
    FetchError,
    PluginError,
)

__all__ = [
    # Pipeline
    "Engine",
    # Config
    "EmbedConfig",
    "get_config",
    "init_config",
    # Models
    "Link",
    "AggregatedResult",
    "OEmbedRecord",
    "PluginTrace",
    # Components
    "LinkAggregator",
    "MetaMapper",
    "MetaMapping",
    "Plugin",
    "PluginMetadata",
    "PluginRegistry",
    "plugin",
    "ExtractionRunner",
    "builtin_plugins",
    "create_default_registry",
    # Output
    "to_oembed",
    "to_xml",
    "to_routing_json",
    # Errors
    "EmbedScoutError",
    "MalformedInput",
    "PageUnreachable",
    "FetchError",
    "PluginError",
]
