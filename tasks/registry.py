"""Registry mapping namespaced task paths onto a task node tree.

Paths are sequences of segment names (a plain string is a one-segment path).
Registering ``["db", "start"]`` creates a ``db`` grouping node with a runnable
``start`` leaf beneath it; looking up ``["db", "start", "--force"]`` returns
the ``start`` node together with the unconsumed ``["--force"]``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Sequence, Union

from core.errors import KboxError
from deps import DependencyContainer
from tasks.node import TaskNode, WalkCallback
from tasks.task import Task

logger = logging.getLogger(__name__)

TaskPath = Union[str, Sequence[str]]

MENU_HEADER = " --- Command Menu ---"
INDENT = 4


class RegistryNotReady(KboxError):
    """Raised when the registry is used before ``init()``."""

    pass


class TaskNotFound(KboxError):
    """Raised when a path does not resolve to a runnable task."""

    def __init__(self, path: Sequence[str]):
        self.path = list(path)
        super().__init__(f"No task found for [{' '.join(self.path)}]")


class RegistryState(str, Enum):
    """Lifecycle states of a task registry."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"


@dataclass
class TaskMatch:
    """Result of a path lookup: the matched node and the unconsumed segments."""

    node: TaskNode
    args: list[str] = field(default_factory=list)

    @property
    def task(self) -> Task | None:
        return self.node.task


def normalize_path(path: TaskPath) -> list[str]:
    """Convert a task path to a list of segments."""
    if isinstance(path, str):
        return [path]
    return list(path)


class TaskRegistry:
    """Owns the root of the task tree and the tasks registered under it."""

    def __init__(self, container: DependencyContainer | None = None):
        self.container = container or DependencyContainer()
        self._root: TaskNode | None = None

    @property
    def state(self) -> RegistryState:
        return RegistryState.READY if self._root is not None else RegistryState.UNINITIALIZED

    @property
    def root(self) -> TaskNode:
        if self._root is None:
            raise RegistryNotReady("Task registry used before init()")
        return self._root

    def init(self) -> None:
        """Create the root node. Calling it again has no effect."""
        if self._root is None:
            self._root = TaskNode.create_root()
            logger.debug("Task registry initialized")

    def teardown(self) -> None:
        """Drop every registered task and return to the uninitialized state."""
        self._root = None
        logger.debug("Task registry torn down")

    def register_task(self, path: TaskPath, body: Callable, sort_index: int = 0) -> TaskNode:
        """Register ``body`` as a runnable task at ``path``.

        Missing intermediate segments are created as grouping nodes; existing
        ones are reused. Registering an existing path replaces its task and
        its sort index; reused intermediate nodes keep theirs.

        Args:
            path: Segment name or sequence of segment names.
            body: Callable run through the dependency container.
            sort_index: Display ordering hint for the created nodes.

        Returns:
            The node the task is attached to.
        """
        names = normalize_path(path)
        if not names:
            raise ValueError("Task path must have at least one segment")

        parent = self.root
        for name in names[:-1]:
            node = parent.find_child(name)
            if node is None:
                node = parent.add_child(name, None, sort_index)
            parent = node

        name = names[-1]
        task = Task(name, body, self.container)
        node = parent.find_child(name)
        if node is None:
            node = parent.add_child(name, task, sort_index)
        else:
            if node.task is not None:
                logger.warning("Task [%s] is already registered, replacing it", " ".join(names))
            node.task = task
            node.sort_index = sort_index

        logger.debug("Registered task [%s]", " ".join(names))
        return node

    def get_task(self, path: TaskPath, start_node: TaskNode | None = None) -> TaskMatch | None:
        """Resolve the longest prefix of ``path`` that the tree can consume.

        Returns:
            A :class:`TaskMatch` whose ``args`` holds the unconsumed segments,
            or None if a segment has no matching child.
        """
        names = normalize_path(path)
        node = start_node or self.root

        while names and not node.is_leaf():
            child = node.find_child(names[0])
            if child is None:
                return None
            node = child
            names = names[1:]

        return TaskMatch(node, names)

    def find_node(self, name: str, start_node: TaskNode | None = None) -> TaskNode | None:
        """Return the first node called ``name`` in pre-order, or None."""
        found: list[TaskNode] = []

        def visit(node: TaskNode, parent: TaskNode | None, depth: int) -> None:
            if not found and node.name == name:
                found.append(node)

        (start_node or self.root).walk(visit)
        return found[0] if found else None

    def get_count(self) -> int:
        """Number of leaf nodes, i.e. runnable commands, in the tree."""
        root = self.root
        if root.is_leaf():
            return 0
        count = 0

        def visit(node: TaskNode, parent: TaskNode | None, depth: int) -> None:
            nonlocal count
            if node.is_leaf():
                count += 1

        root.walk(visit)
        return count

    def walk(self, callback: WalkCallback, node: TaskNode | None = None) -> None:
        (node or self.root).walk(callback)

    def pretty_print(self, node: TaskNode | None = None) -> str:
        """Render the tree as indented text, one line per node below ``node``."""
        lines = [MENU_HEADER]

        def visit(node: TaskNode, parent: TaskNode | None, depth: int) -> None:
            if depth > 0:
                lines.append(" " * ((depth - 1) * INDENT) + node.name)

        (node or self.root).walk(visit)
        return "\n".join(lines) + "\n"

    def run(self, path: TaskPath, **bindings: Any) -> Any:
        """Look up ``path`` and run the matched task with the remaining segments.

        Args:
            path: Task path, optionally followed by arguments for the task.
            **bindings: Extra dependency bindings visible while the task runs.

        Raises:
            TaskNotFound: If the path does not lead to a node carrying a task.
        """
        names = normalize_path(path)
        match = self.get_task(names)
        if match is None or match.task is None:
            raise TaskNotFound(names)
        with self.container.scoped(bindings):
            return match.task.run(match.args)
