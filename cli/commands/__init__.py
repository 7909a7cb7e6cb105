"""CLI command modules for kbox."""

from cli.commands.plugins import plugins_app

__all__ = ["plugins_app"]
