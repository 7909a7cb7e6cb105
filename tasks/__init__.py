"""Hierarchical task registry.

Tasks are registered under namespaced paths and organized into a tree of
:class:`TaskNode` objects, one node per path segment.

Example:
    >>> registry = TaskRegistry()
    >>> registry.init()
    >>> node = registry.register_task(["db", "start"], lambda argv: "started")
    >>> registry.run(["db", "start"])
    'started'
"""

from tasks.node import TaskNode
from tasks.registry import (
    RegistryNotReady,
    RegistryState,
    TaskMatch,
    TaskNotFound,
    TaskRegistry,
    normalize_path,
)
from tasks.task import Task, TaskError

__all__ = [
    "RegistryNotReady",
    "RegistryState",
    "Task",
    "TaskError",
    "TaskMatch",
    "TaskNode",
    "TaskNotFound",
    "TaskRegistry",
    "normalize_path",
]
