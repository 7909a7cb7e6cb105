"""Dependency injection for kbox plugins and tasks.

Callables declare the values they need by name, either through their
parameter list or explicitly with :func:`requires`. A
:class:`DependencyContainer` resolves those names against its current
bindings and supports temporarily overriding bindings for a nested call.

Example:
    >>> container = DependencyContainer()
    >>> container.register("plugin", "db")
    >>> container.call(lambda plugin: plugin.upper())
    'DB'
"""

from deps.container import (
    DependencyContainer,
    DependencyError,
    UnresolvedDependency,
    requires,
)

__all__ = [
    "DependencyContainer",
    "DependencyError",
    "UnresolvedDependency",
    "requires",
]
