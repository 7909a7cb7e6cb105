"""kbox CLI.

Loads the configured global plugins and exposes the tasks they register.
"""

import asyncio
from typing import List, Optional

import typer
from rich.table import Table

from cli.kbox.output import (
    console,
    print_error,
    print_info,
    print_result,
    print_task_tree,
    print_warning,
)
from cli.kbox.runtime import bootstrap
from core.errors import KboxError

app = typer.Typer(
    name="kbox",
    help="kbox - plugin driven development environment tool",
    no_args_is_help=True,
)

# Config sub-app
config_app = typer.Typer(
    name="config",
    help="Inspect configuration settings.",
)
app.add_typer(config_app, name="config")

from cli.commands.plugins import plugins_app

app.add_typer(plugins_app, name="plugins")


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug|info|warning|error (default from kbox.toml)",
    ),
) -> None:
    """kbox - plugin driven development environment tool."""
    ctx.obj = {"log_level": log_level}


def _log_level(ctx: typer.Context) -> Optional[str]:
    return (ctx.obj or {}).get("log_level")


@app.command("tasks")
def list_tasks(
    ctx: typer.Context,
    plain: bool = typer.Option(
        False,
        "--plain",
        help="Print the indented command menu instead of a tree",
    ),
) -> None:
    """Show every registered task.

    Examples:
        kbox tasks
        kbox tasks --plain
    """
    try:
        kbox = bootstrap(_log_level(ctx))
    except KboxError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if plain:
        console.print(kbox.tasks.pretty_print(), markup=False, highlight=False)
    else:
        print_task_tree(kbox.tasks.root)
    console.print(f"\n[dim]Total: {kbox.tasks.get_count()} tasks[/dim]")


@app.command(
    "run",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def run_task(
    ctx: typer.Context,
    path: List[str] = typer.Argument(..., help="Task path followed by task arguments"),
) -> None:
    """Run a task by its path.

    Segments after the task are passed to it as arguments.

    Examples:
        kbox run db start
        kbox run db start --force
    """
    try:
        kbox = bootstrap(_log_level(ctx))
    except KboxError as e:
        print_error(str(e))
        raise typer.Exit(1)

    names = list(path) + list(ctx.args)
    match = kbox.tasks.get_task(names)
    if match is None or match.task is None:
        print_error(f"No task found for [{' '.join(names)}]")
        if match is not None and not match.node.is_leaf():
            print_info("Available: " + ", ".join(child.name for child in match.node.sorted_children()))
        raise typer.Exit(1)

    try:
        if match.task.is_async:
            result = asyncio.run(match.task.run_async(match.args))
        else:
            result = match.task.run(match.args)
    except KeyboardInterrupt:
        print_warning("Interrupted")
        raise typer.Exit(130)
    except KboxError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_result(result)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show current configuration.

    Examples:
        kbox config show
    """
    from core.config import find_config_file

    config_path = find_config_file()
    if config_path:
        print_info(f"Config file: {config_path}")
    else:
        print_warning("No kbox.toml found (using defaults)")

    try:
        kbox = bootstrap(_log_level(ctx), load_plugins=False)
    except KboxError as e:
        print_error(str(e))
        raise typer.Exit(1)
    config = kbox.config

    table = Table(show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("src_root", config.src_root or "-")
    table.add_row("kalabox_root", config.kalabox_root)
    table.add_row("global_plugins", ", ".join(config.global_plugins) or "-")
    table.add_row("search_roots", ", ".join(str(root) for root in config.search_roots))
    for section_name, section in (("plugins", config.plugins), ("logging", config.logging)):
        for key, value in vars(section).items():
            table.add_row(f"{section_name}.{key}", str(value))

    console.print(table)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
