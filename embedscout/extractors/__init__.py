"""
Built-in plugin catalog.

Domain plugins are listed before generic ones; the registry resolves
pattern and domain matches first regardless, so the order only matters
within each group.
"""
import logging
from typing import List

from embedscout.extractors.domains import DOMAIN_PLUGINS
from embedscout.extractors.generic import GENERIC_PLUGINS
from embedscout.plugins import Plugin, PluginRegistry

logger = logging.getLogger(__name__)


def builtin_plugins() -> List[Plugin]:
    """All built-in plugins in registration order."""
    return list(DOMAIN_PLUGINS) + list(GENERIC_PLUGINS)


def create_default_registry() -> PluginRegistry:
    """
    Create a frozen registry holding the built-in plugins.
    This is a factory function instead of a global variable.
    """
    registry = PluginRegistry(validate_strict=False)
    registry.register_all(builtin_plugins())
    registry.freeze()
    logger.debug(f"Default registry ready with {len(registry)} plugins")
    return registry
