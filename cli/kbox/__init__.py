"""kbox CLI.

Command-line interface for the kbox task and plugin core.
"""

__version__ = "0.1.0"

from cli.kbox.cli import app, main

__all__ = ["__version__", "app", "main"]
