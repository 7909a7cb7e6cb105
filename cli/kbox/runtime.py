"""Process start-up shared by the CLI commands."""

import logging
from typing import Optional

from core.config import load_config
from core.context import KboxContext
from core.log import setup_logging

from cli.kbox.output import print_warning

logger = logging.getLogger(__name__)


def bootstrap(log_level: Optional[str] = None, load_plugins: bool = True) -> KboxContext:
    """Load configuration, configure logging and create an initialized context.

    Global plugins that fail to load are reported as warnings; the
    remaining plugins and the CLI keep working.

    Raises:
        ConfigError: If the configuration file is invalid.
    """
    config = load_config()
    setup_logging(log_level or config.logging.level, config.logging.rich_tracebacks)

    kbox = KboxContext(config)
    kbox.init()
    if load_plugins:
        for outcome in kbox.load_global_plugins():
            if outcome.error is not None:
                print_warning(str(outcome.error))
    logger.debug("Registered %d tasks", kbox.tasks.get_count())
    return kbox

