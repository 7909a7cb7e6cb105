"""Plugins CLI commands for kbox.

Inspect the configured global plugins.
"""

from typing import Optional

import typer

from cli.kbox.output import print_error, print_plugin_outcomes
from cli.kbox.runtime import bootstrap
from core.errors import KboxError

plugins_app = typer.Typer(
    name="plugins",
    help="Inspect configured plugins.",
)


@plugins_app.command("list")
def list_plugins(
    ctx: typer.Context,
    failed_only: bool = typer.Option(
        False,
        "--failed",
        help="Only show plugins that failed to load",
    ),
) -> None:
    """List configured global plugins and whether they loaded.

    Examples:
        kbox plugins list
        kbox plugins list --failed
    """
    log_level: Optional[str] = (ctx.obj or {}).get("log_level")
    try:
        kbox = bootstrap(log_level)
    except KboxError as e:
        print_error(str(e))
        raise typer.Exit(1)

    outcomes = kbox.outcomes
    if failed_only:
        outcomes = [o for o in outcomes if o.status == "failed"]

    print_plugin_outcomes(outcomes)
    if any(o.status == "failed" for o in outcomes):
        raise typer.Exit(1)
