"""Configuration management for kbox.

Loads configuration from:
1. kbox.toml (defaults, found in the current or a parent directory)
2. Environment variables (overrides, .env supported)
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

from core.errors import KboxError

# Load .env file if present
load_dotenv()

CONFIG_FILENAME = "kbox.toml"
DEFAULT_KALABOX_ROOT = "~/.kalabox"


class ConfigError(KboxError):
    """Raised when the configuration file is invalid."""

    pass


@dataclass
class PluginsConfig:
    """Plugin layout configuration.

    A plugin called ``foo`` is looked up under each search root as
    ``<root>/<external_dir>/foo/<entry_file>`` and then
    ``<root>/<plugins_dir>/foo/<entry_file>``.
    """

    plugins_dir: str = "plugins"  # Plugins bundled with a root
    external_dir: str = "site-plugins"  # Externally installed plugins, shadow bundled ones
    entry_file: str = "plugin.py"
    manifest_file: str = "plugin.yaml"  # Optional metadata next to the entry file
    initializer: str = "init"  # Module attribute called to initialize the plugin


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    rich_tracebacks: bool = True


@dataclass
class GlobalConfig:
    """Main configuration container."""

    src_root: str = ""
    kalabox_root: str = DEFAULT_KALABOX_ROOT
    global_plugins: list[str] = field(default_factory=list)
    plugins: PluginsConfig = field(default_factory=PluginsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def search_roots(self) -> list[Path]:
        """Plugin search roots in priority order, skipping unset ones."""
        return [Path(root).expanduser() for root in (self.src_root, self.kalabox_root) if root]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GlobalConfig":
        """Create GlobalConfig from dictionary.

        Raises:
            ConfigError: If a section contains unknown or malformed keys.
        """
        data = dict(data)
        plugins_data = data.pop("plugins", {})
        logging_data = data.pop("logging", {})

        global_plugins = data.get("global_plugins", [])
        if isinstance(global_plugins, str):
            data["global_plugins"] = _split_list(global_plugins)

        try:
            return cls(
                plugins=PluginsConfig(**plugins_data),
                logging=LoggingConfig(**logging_data),
                **data,
            )
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


def find_config_file() -> Path | None:
    """Find kbox.toml in current or parent directories.

    Returns:
        Path to kbox.toml or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / CONFIG_FILENAME
        if config_path.exists():
            return config_path

    return None


def load_config(config_path: Path | str | None = None) -> GlobalConfig:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to kbox.toml

    Returns:
        GlobalConfig object with merged settings.

    Raises:
        ConfigError: If the file is not valid TOML or has unknown keys.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            try:
                with open(path, "rb") as f:
                    config_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    env_overrides = {
        "src_root": os.getenv("KBOX_SRC_ROOT"),
        "kalabox_root": os.getenv("KBOX_ROOT"),
        "global_plugins": os.getenv("KBOX_GLOBAL_PLUGINS"),
    }
    for key, value in env_overrides.items():
        if value is not None:
            config_data[key] = value

    log_level = os.getenv("KBOX_LOG_LEVEL")
    if log_level is not None:
        config_data.setdefault("logging", {})["level"] = log_level

    return GlobalConfig.from_dict(config_data)


def _split_list(value: str) -> list[str]:
    """Split a comma separated string, dropping empty entries."""
    return [item.strip() for item in value.split(",") if item.strip()]


# Global config instance (lazy loaded)
_config: GlobalConfig | None = None


def get_config() -> GlobalConfig:
    """Get the global configuration instance.

    Returns:
        GlobalConfig object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config

