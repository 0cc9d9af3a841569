"""
Configuration management for embedscout.

Provides a hierarchical configuration system with sensible defaults.
Supports both global (~/.config/embedscout/config.toml) and local
(embedscout.toml) configurations.
"""
import os
import tomli
import tomli_w
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict

from embedscout.constants import DEFAULT_MAX_WORKERS, DEFAULT_REQUEST_TIMEOUT, DEFAULT_USER_AGENT

ENV_PREFIX = "EMBEDSCOUT_"


@dataclass
class EmbedConfig:
    """
    embedscout configuration with sensible defaults.

    Configuration hierarchy (highest to lowest priority):
    1. Command-line arguments
    2. Environment variables (EMBEDSCOUT_*)
    3. Explicit config file
    4. Local config file (./embedscout.toml or ./.embedscoutrc)
    5. User config file (~/.config/embedscout/config.toml)
    6. System defaults
    """

    # Network settings
    timeout: int = field(default=DEFAULT_REQUEST_TIMEOUT)  # Request timeout in seconds
    user_agent: str = field(default=DEFAULT_USER_AGENT)
    verify_ssl: bool = field(default=True)
    discover_oembed: bool = field(default=True)

    # Extraction
    max_workers: int = field(default=DEFAULT_MAX_WORKERS)  # 0 runs plugins sequentially
    mix_all_with_domain_plugin: bool = field(default=False)

    # Whitelist (read-only)
    whitelist_file: Optional[str] = field(default=None)

    # Display settings
    output_format: str = field(default="table")  # table, json
    log_level: str = field(default="WARNING")

    @classmethod
    def load(cls, config_file: Optional[Path] = None) -> "EmbedConfig":
        """
        Load configuration from files and environment.

        Args:
            config_file: Specific config file to load (overrides search)

        Returns:
            Merged configuration object
        """
        config = cls()

        user_config_path = Path.home() / ".config" / "embedscout" / "config.toml"
        if user_config_path.exists():
            config._merge(cls._load_toml(user_config_path))

        local_paths = [
            Path.cwd() / "embedscout.toml",
            Path.cwd() / ".embedscoutrc",
        ]

        for path in local_paths:
            if path.exists():
                config._merge(cls._load_toml(path))
                break

        if config_file and config_file.exists():
            config._merge(cls._load_toml(config_file))

        config._apply_env_vars()
        config._expand_paths()

        return config

    @staticmethod
    def _load_toml(path: Path) -> Dict[str, Any]:
        """Load TOML configuration file."""
        with open(path, "rb") as f:
            return tomli.load(f)

    def _merge(self, data: Dict[str, Any]):
        """Merge configuration data into this instance."""
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def _apply_env_vars(self):
        """Apply environment variables with EMBEDSCOUT_ prefix."""
        for key, value in os.environ.items():
            if key.startswith(ENV_PREFIX):
                config_key = key[len(ENV_PREFIX):].lower()
                if hasattr(self, config_key):
                    # Convert string values to appropriate types
                    current_value = getattr(self, config_key)
                    if isinstance(current_value, bool):
                        setattr(self, config_key, value.lower() in ("true", "1", "yes"))
                    elif isinstance(current_value, int):
                        setattr(self, config_key, int(value))
                    else:
                        setattr(self, config_key, value)

    def _expand_paths(self):
        """Expand ~ and environment variables in paths."""
        if isinstance(self.whitelist_file, str):
            self.whitelist_file = os.path.expanduser(os.path.expandvars(self.whitelist_file))

    def save(self, path: Optional[Path] = None):
        """
        Save current configuration to TOML file.

        Args:
            path: Path to save to (defaults to user config)
        """
        if path is None:
            path = Path.home() / ".config" / "embedscout" / "config.toml"

        path.parent.mkdir(parents=True, exist_ok=True)

        # TOML has no null
        data = {k: v for k, v in asdict(self).items() if v is not None}
        with open(path, "wb") as f:
            tomli_w.dump(data, f)


# Global configuration instance
_config: Optional[EmbedConfig] = None


def get_config(reload: bool = False, config_file: Optional[Path] = None) -> EmbedConfig:
    """
    Get the global configuration instance.

    Args:
        reload: Force reload configuration from files
        config_file: Specific config file to load

    Returns:
        Global configuration instance
    """
    global _config
    if _config is None or reload:
        _config = EmbedConfig.load(config_file)
    return _config


def init_config(config_file: Optional[Path] = None, **kwargs) -> EmbedConfig:
    """
    Initialize configuration with command-line overrides.

    Args:
        config_file: Specific config file to load
        **kwargs: Configuration overrides; None values are ignored

    Returns:
        Configured instance
    """
    config = get_config(reload=config_file is not None, config_file=config_file)

    for key, value in kwargs.items():
        if hasattr(config, key) and value is not None:
            setattr(config, key, value)

    return config
