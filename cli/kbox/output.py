"""Rich console output utilities for the kbox CLI."""

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from plugins import PluginOutcome
from tasks import TaskNode

console = Console()
error_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {escape(message)}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {escape(message)}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {escape(message)}")


def print_result(result: Any) -> None:
    """Print a task's return value, if it returned one."""
    if result is None:
        return
    console.print(result, markup=False)


def build_task_tree(root: TaskNode, title: str = "Command Menu") -> Tree:
    """Build a rich tree of the task namespace, children in display order."""
    tree = Tree(f"[bold]{title}[/bold]")

    def add(node: TaskNode, branch: Tree) -> None:
        for child in node.sorted_children():
            if child.task is not None:
                description = child.task.description
                label = f"[green]{escape(child.name)}[/green]"
                if description:
                    label += f" [dim]{escape(description)}[/dim]"
            else:
                label = f"[blue]{escape(child.name)}[/blue]"
            add(child, branch.add(label))

    add(root, tree)
    return tree


def print_task_tree(root: TaskNode) -> None:
    """Print the task namespace as a tree."""
    if root.is_leaf():
        print_info("No tasks registered.")
        return
    console.print(build_task_tree(root))


def print_plugin_outcomes(outcomes: list[PluginOutcome]) -> None:
    """Print plugin load outcomes as a table."""
    if not outcomes:
        print_info("No plugins configured.")
        return

    status_styles = {"loaded": "green", "skipped": "yellow", "failed": "red"}

    table = Table(title="Plugins")
    table.add_column("Name", style="cyan")
    table.add_column("Status")
    table.add_column("Version")
    table.add_column("Path / Error")

    for outcome in outcomes:
        style = status_styles[outcome.status]
        if outcome.plugin is not None:
            version = outcome.plugin.version
            detail = str(outcome.plugin.path)
        else:
            version = "-"
            detail = str(outcome.error) if outcome.error else "needs an application"
        table.add_row(escape(outcome.name), f"[{style}]{outcome.status}[/{style}]", version, escape(detail))

    console.print(table)
