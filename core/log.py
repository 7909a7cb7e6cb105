"""Logging setup for the kbox command line."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING", rich_tracebacks: bool = True) -> None:
    """Send log records to stderr through rich.

    Args:
        level: Log level name, e.g. "DEBUG" or "info".
        rich_tracebacks: Render exception tracebacks with rich.
    """
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=rich_tracebacks,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root_logger.handlers = [handler]
