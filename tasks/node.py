"""Tree of command path segments."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from tasks.task import Task

WalkCallback = Callable[["TaskNode", Optional["TaskNode"], int], None]


class TaskNode:
    """One segment of the command namespace.

    Leaves are nodes without children. A node may carry a runnable task
    whether or not it has children; the root has neither a name nor a task.
    """

    def __init__(
        self,
        name: str | None = None,
        task: Task | None = None,
        sort_index: int = 0,
        parent: TaskNode | None = None,
    ):
        self.name = name
        self.task = task
        self.sort_index = sort_index
        self.parent = parent
        self.children: list[TaskNode] = []

    @classmethod
    def create_root(cls) -> TaskNode:
        return cls()

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def path(self) -> list[str]:
        """Segment names from the tree root down to this node."""
        segments = []
        node: TaskNode | None = self
        while node is not None and not node.is_root:
            segments.append(node.name)
            node = node.parent
        return list(reversed(segments))

    def is_leaf(self) -> bool:
        return not self.children

    def add_child(self, name: str, task: Task | None = None, sort_index: int = 0) -> TaskNode:
        """Append a new child node and return it."""
        child = TaskNode(name, task, sort_index, parent=self)
        self.children.append(child)
        return child

    def find_child(self, name: str) -> TaskNode | None:
        """Return the first direct child called ``name``, if any."""
        return next((child for child in self.children if child.name == name), None)

    def sorted_children(self) -> list[TaskNode]:
        """Children ordered for display: by sort index, then insertion order."""
        return sorted(self.children, key=lambda child: child.sort_index)

    def walk(self, callback: WalkCallback) -> None:
        """Pre-order depth-first traversal starting at this node.

        ``callback(node, parent, depth)`` is invoked for every node including
        this one, with a parent of None for the starting node. Depth counts
        edges from this node, not from the tree root.
        The tree must not be modified during a walk.
        """

        def visit(node: TaskNode, parent: TaskNode | None, depth: int) -> None:
            callback(node, parent, depth)
            for child in node.children:
                visit(child, node, depth + 1)

        visit(self, None, 0)

    def __iter__(self):
        """Iterate over ``(node, parent, depth)`` in walk order."""
        visited: list[tuple[TaskNode, TaskNode | None, int]] = []
        self.walk(lambda node, parent, depth: visited.append((node, parent, depth)))
        return iter(visited)

    def __repr__(self) -> str:
        kind = "leaf" if self.is_leaf() else "group"
        return f"TaskNode(name={self.name!r}, {kind}, task={self.task is not None})"
