"""Plugin system for extending kbox with tasks.

Plugin Structure:
    <root>/plugins/            # Bundled with a root
    └── db/
        ├── plugin.py          # Defines init(...)
        └── plugin.yaml        # Optional manifest
    <root>/site-plugins/       # Externally installed, shadows bundled plugins
    └── db/
        └── plugin.py

Example plugin.py:
    def init(tasks, plugin):
        tasks.register_task([plugin, "start"], start)
"""

from .loader import (
    LoadedPlugin,
    PluginInitializationFailure,
    PluginLoader,
    PluginLoadError,
    PluginNotFound,
    PluginOutcome,
    search_for_path,
)
from .manifest import ManifestError, PluginManifest

__all__ = [
    "LoadedPlugin",
    "ManifestError",
    "PluginInitializationFailure",
    "PluginLoader",
    "PluginLoadError",
    "PluginManifest",
    "PluginNotFound",
    "PluginOutcome",
    "search_for_path",
]
