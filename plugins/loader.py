"""Plugin loader for resolving and initializing plugins.

A plugin is a directory containing an entry module that exposes an
initializer callable. The initializer declares the values it needs by
name and is called through the dependency container, typically to
register tasks:

    def init(tasks, plugin):
        tasks.register_task([plugin, "start"], start)

Plugins that declare ``app`` need an application context and are loaded
separately from global plugins, which run before any application exists.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Iterable, Mapping

from core.config import GlobalConfig, PluginsConfig
from core.errors import KboxError
from deps import DependencyContainer

from .manifest import ManifestError, PluginManifest

logger = logging.getLogger(__name__)

APP = "app"
APP_CONFIG = "app_config"
PLUGIN = "plugin"


class PluginNotFound(KboxError):
    """Raised when no candidate location exists for a plugin."""

    def __init__(self, plugin_name: str, candidates: list[Path] | None = None):
        self.plugin_name = plugin_name
        self.candidates = candidates or []
        super().__init__(f'Plugin "{plugin_name}" could not be loaded.')


class PluginLoadError(KboxError):
    """Raised when a plugin's entry module cannot be imported."""

    pass


class PluginInitializationFailure(KboxError):
    """Raised when a plugin initializer fails."""

    def __init__(self, plugin_name: str, cause: BaseException):
        self.plugin_name = plugin_name
        self.cause = cause
        super().__init__(f"Unable to load plugin [{plugin_name}] {cause}")


@dataclass
class LoadedPlugin:
    """A plugin whose initializer has run."""

    name: str
    path: Path
    uses_app: bool
    manifest: PluginManifest | None = None
    result: Any = None

    @property
    def version(self) -> str:
        return self.manifest.version if self.manifest else "-"

    @property
    def description(self) -> str:
        return self.manifest.description if self.manifest else ""


@dataclass
class PluginOutcome:
    """Result of attempting to load one plugin."""

    name: str
    plugin: LoadedPlugin | None = None
    error: KboxError | None = None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "failed"
        return "loaded" if self.plugin is not None else "skipped"


def search_for_path(paths: Iterable[Path]) -> Path | None:
    """Return the first path that exists, or None."""
    for path in paths:
        if path.exists():
            return path
    return None


class PluginLoader:
    """Resolves plugin entry modules and initializes them through a container."""

    def __init__(self, container: DependencyContainer, config: PluginsConfig | None = None):
        """Initialize plugin loader.

        Args:
            container: Container used to resolve initializer dependencies.
            config: Plugin layout (directory and file names).
        """
        self.container = container
        self.config = config or PluginsConfig()
        self.loaded: list[LoadedPlugin] = []
        self._entries: dict[Path, tuple[Callable, PluginManifest | None]] = {}

    def candidate_paths(self, plugin_name: str, search_roots: Iterable[Path | str]) -> list[Path]:
        """Entry module locations to check for a plugin, in priority order.

        Externally installed locations of every root come before the bundled
        plugin locations, so an installed plugin shadows a bundled one.
        """
        roots = [Path(root) for root in search_roots]
        external = [root / self.config.external_dir / plugin_name / self.config.entry_file for root in roots]
        internal = [root / self.config.plugins_dir / plugin_name / self.config.entry_file for root in roots]
        return external + internal

    def resolve(self, plugin_name: str, search_roots: Iterable[Path | str]) -> Path:
        """Find the entry module of a plugin.

        Raises:
            PluginNotFound: If none of the candidate paths exist.
        """
        candidates = self.candidate_paths(plugin_name, search_roots)
        logger.debug("Resolving plugin %s from %s", plugin_name, [str(c) for c in candidates])
        path = search_for_path(candidates)
        if path is None:
            raise PluginNotFound(plugin_name, candidates)
        return path

    def load_manifest(self, entry_path: Path) -> PluginManifest | None:
        """Load the optional manifest next to an entry module.

        Raises:
            PluginLoadError: If a manifest exists but is invalid.
        """
        manifest_path = entry_path.parent / self.config.manifest_file
        if not manifest_path.exists():
            return None
        try:
            return PluginManifest.from_yaml(manifest_path)
        except ManifestError as e:
            raise PluginLoadError(str(e)) from e

    def load_raw_plugin(self, plugin_name: str, search_roots: Iterable[Path | str]) -> Callable:
        """Import a plugin's entry module and return its initializer.

        Each entry module is executed once; later loads of the same file
        return the cached initializer.

        Raises:
            PluginNotFound: If the plugin cannot be located.
            PluginLoadError: If the module cannot be imported or has no initializer.
        """
        _, initializer, _ = self._load_entry(plugin_name, search_roots)
        return initializer

    def _load_entry(
        self, plugin_name: str, search_roots: Iterable[Path | str]
    ) -> tuple[Path, Callable, PluginManifest | None]:
        entry_path = self.resolve(plugin_name, search_roots).resolve()
        cached = self._entries.get(entry_path)
        if cached is not None:
            logger.debug("Plugin %s already imported from %s", plugin_name, entry_path)
            return (entry_path, *cached)

        logger.debug("Loading plugin %s", plugin_name)
        manifest = self.load_manifest(entry_path)
        module = self._import(plugin_name, entry_path)

        initializer = getattr(module, self.config.initializer, None)
        if initializer is None or not callable(initializer):
            raise PluginLoadError(
                f"Plugin [{plugin_name}] must define a callable '{self.config.initializer}' in {entry_path}"
            )

        self._entries[entry_path] = (initializer, manifest)
        return entry_path, initializer, manifest

    def _import(self, plugin_name: str, entry_path: Path) -> ModuleType:
        # Module name is unique per entry file, so "a-b" and "a_b" never collide
        digest = hashlib.sha1(str(entry_path).encode("utf-8")).hexdigest()[:8]
        safe_name = re.sub(r"\W", "_", plugin_name)
        unique_module_name = f"kbox_plugins.{safe_name}_{digest}"

        existing = sys.modules.get(unique_module_name)
        if existing is not None and getattr(existing, "__file__", None) == str(entry_path):
            return existing

        try:
            spec = importlib.util.spec_from_file_location(unique_module_name, entry_path)
            if spec is None or spec.loader is None:
                raise PluginLoadError(f"Cannot load module spec: {entry_path}")

            module = importlib.util.module_from_spec(spec)
            sys.modules[unique_module_name] = module
            spec.loader.exec_module(module)
        except PluginLoadError:
            raise
        except Exception as e:
            sys.modules.pop(unique_module_name, None)
            raise PluginLoadError(f"Failed to import plugin [{plugin_name}] from {entry_path}: {e}") from e

        return module

    def uses_application_context(self, raw_plugin: Callable) -> bool:
        """Whether a plugin initializer declares the application context."""
        return APP in self.container.inspect(raw_plugin)

    def load_if_uses_application_context(
        self, plugin_name: str, search_roots: Iterable[Path | str]
    ) -> LoadedPlugin | None:
        """Initialize a plugin only if it declares the application context.

        ``app`` and ``app_config`` must already be bound in the container.
        """
        entry_path, raw_plugin, manifest = self._load_entry(plugin_name, search_roots)
        if not self.uses_application_context(raw_plugin):
            return None

        def bindings(app, app_config):
            return {APP: app, APP_CONFIG: app_config, PLUGIN: plugin_name}

        overrides = self.container.call(bindings)
        return self._initialize(plugin_name, overrides, raw_plugin, entry_path, manifest)

    def load_if_does_not_use_application_context(
        self, plugin_name: str, search_roots: Iterable[Path | str]
    ) -> LoadedPlugin | None:
        """Initialize a plugin only if it does not declare the application context."""
        entry_path, raw_plugin, manifest = self._load_entry(plugin_name, search_roots)
        if self.uses_application_context(raw_plugin):
            return None
        return self._initialize(plugin_name, {PLUGIN: plugin_name}, raw_plugin, entry_path, manifest)

    def load(self, plugin_name: str, search_roots: Iterable[Path | str]) -> LoadedPlugin:
        """Initialize a plugin regardless of its injection profile."""
        entry_path, raw_plugin, manifest = self._load_entry(plugin_name, search_roots)
        return self._initialize(plugin_name, {PLUGIN: plugin_name}, raw_plugin, entry_path, manifest)

    def init_plugin(
        self, plugin_name: str, override_bindings: Mapping[str, Any], initializer: Callable
    ) -> Any:
        """Call ``initializer`` through the container with ``override_bindings`` installed.

        Returns:
            Whatever the initializer returns.

        Raises:
            PluginInitializationFailure: If the initializer or its dependency
                resolution fails. The original error is chained.
        """

        def scoped(done: Callable[[], None]) -> Any:
            try:
                result = self.container.call(initializer)
            except Exception as e:
                raise PluginInitializationFailure(plugin_name, e) from e
            done()
            return result

        return self.container.override(override_bindings, scoped)

    def init_global_plugins(self, config: GlobalConfig) -> list[PluginOutcome]:
        """Load every configured global plugin that does not need an application.

        Plugins are loaded in configuration order. A plugin that fails is
        logged and reported in the outcomes; the remaining plugins still load.
        """
        search_roots = config.search_roots
        outcomes = []
        for plugin_name in config.global_plugins:
            outcome = PluginOutcome(plugin_name)
            try:
                outcome.plugin = self.load_if_does_not_use_application_context(plugin_name, search_roots)
            except KboxError as e:
                logger.error("%s", e)
                outcome.error = e
            outcomes.append(outcome)
        return outcomes

    def _initialize(
        self,
        plugin_name: str,
        overrides: Mapping[str, Any],
        raw_plugin: Callable,
        path: Path,
        manifest: PluginManifest | None,
    ) -> LoadedPlugin:
        result = self.init_plugin(plugin_name, overrides, raw_plugin)
        plugin = LoadedPlugin(
            name=plugin_name,
            path=path,
            uses_app=self.uses_application_context(raw_plugin),
            manifest=manifest,
            result=result,
        )
        self.loaded.append(plugin)
        logger.info("Loaded plugin %s from %s", plugin_name, path)
        return plugin
