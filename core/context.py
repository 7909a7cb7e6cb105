"""Runtime context holding all kbox state for one process run.

The context owns the dependency container, the task registry and the
plugin loader. Nothing is created at import time; ``init()`` and
``teardown()`` bracket a run explicitly:

    with KboxContext(load_config()) as kbox:
        kbox.load_global_plugins()
        kbox.tasks.run(["db", "start"])
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from core.config import GlobalConfig, get_config
from core.errors import KboxError
from deps import DependencyContainer
from plugins import PluginLoader, PluginOutcome
from plugins.loader import APP, APP_CONFIG
from tasks import RegistryState, TaskRegistry

logger = logging.getLogger(__name__)


class KboxContext:
    """All shared kbox state for one run.

    Besides the values plugins bind themselves, initializers and task
    bodies can request ``config``, ``tasks``, ``container`` and ``kbox``.
    """

    def __init__(self, config: GlobalConfig | None = None):
        self.config = config or get_config()
        self.container = DependencyContainer()
        self.tasks = TaskRegistry(self.container)
        self.plugins = PluginLoader(self.container, self.config.plugins)
        self.outcomes: list[PluginOutcome] = []

    @property
    def ready(self) -> bool:
        return self.tasks.state is RegistryState.READY

    def init(self) -> None:
        """Create the task tree and bind the core values. Idempotent."""
        if self.ready:
            return
        self.tasks.init()
        self.container.register("config", self.config)
        self.container.register("tasks", self.tasks)
        self.container.register("container", self.container)
        self.container.register("kbox", self)
        logger.debug("kbox context initialized")

    def teardown(self) -> None:
        """Drop registered tasks, bindings and loaded plugin records."""
        self.tasks.teardown()
        self.container.clear()
        self.plugins.loaded.clear()
        self.outcomes = []
        logger.debug("kbox context torn down")

    def load_global_plugins(self) -> list[PluginOutcome]:
        """Load the configured global plugins; failures are reported, not raised."""
        self.init()
        outcomes = self.plugins.init_global_plugins(self.config)
        self.outcomes.extend(outcomes)
        return outcomes

    def set_app(self, app: Any, app_config: Any) -> None:
        """Bind the application context used by application plugins."""
        self.container.register(APP, app)
        self.container.register(APP_CONFIG, app_config)

    def load_app_plugins(
        self, plugin_names: Iterable[str], search_roots: Iterable[Path | str] | None = None
    ) -> list[PluginOutcome]:
        """Load plugins that declare the application context, in order.

        Args:
            plugin_names: Plugins to consider; those without ``app`` are skipped.
            search_roots: Roots to search; defaults to the configured ones.
        """
        self.init()
        roots = list(search_roots) if search_roots is not None else self.config.search_roots
        outcomes = []
        for plugin_name in plugin_names:
            outcome = PluginOutcome(plugin_name)
            try:
                outcome.plugin = self.plugins.load_if_uses_application_context(plugin_name, roots)
            except KboxError as e:
                logger.error("%s", e)
                outcome.error = e
            outcomes.append(outcome)
        self.outcomes.extend(outcomes)
        return outcomes

    def __enter__(self) -> KboxContext:
        self.init()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.teardown()
