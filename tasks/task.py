"""Uniform invocable wrapper around registered task bodies."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Sequence

from core.errors import KboxError
from deps import DependencyContainer, DependencyError

logger = logging.getLogger(__name__)


class TaskError(KboxError):
    """Raised when a task body fails."""

    def __init__(self, name: str, cause: BaseException):
        self.name = name
        self.cause = cause
        super().__init__(f"Task [{name}] failed: {cause}")


class Task:
    """A registered task body bound to the container that runs it.

    The body is called through the dependency container with two extra
    bindings: ``argv`` (the unconsumed path segments passed on the command
    line) and ``task`` (the task name). Any other parameter is resolved from
    the container's bindings.

    Example:
        def start(argv, app):
            ...

        Task("start", start, container).run(["--verbose"])
    """

    def __init__(self, name: str, body: Callable, container: DependencyContainer):
        if not callable(body):
            raise TypeError(f"Task body for [{name}] must be callable, got {type(body).__name__}")
        self.name = name
        self.body = body
        self.container = container

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.body)

    @property
    def description(self) -> str:
        """First line of the body's docstring, if it has one."""
        doc = inspect.getdoc(self.body) or ""
        return doc.splitlines()[0] if doc else ""

    def _bindings(self, argv: Sequence[str]) -> dict[str, Any]:
        return {"argv": list(argv), "task": self.name}

    def run(self, argv: Sequence[str] = ()) -> Any:
        """Run the body and return its result.

        A coroutine body is driven to completion on a fresh event loop, so
        callers get its value rather than an unawaited coroutine. From inside
        a running loop, await :meth:`run_async` instead.

        Raises:
            TaskError: If the body raises, or if a coroutine body is run from
                inside a running event loop. Unresolved dependencies propagate as is.
        """
        if self.is_async:
            if _loop_running():
                raise TaskError(self.name, RuntimeError("async task run from a running event loop, use run_async"))
            return asyncio.run(self.run_async(argv))

        logger.debug("Running task [%s] with argv %s", self.name, list(argv))
        with self.container.scoped(self._bindings(argv)):
            try:
                return self.container.call(self.body)
            except DependencyError:
                raise
            except Exception as e:
                raise TaskError(self.name, e) from e

    async def run_async(self, argv: Sequence[str] = ()) -> Any:
        """Run a coroutine body, keeping the task bindings installed while it is awaited."""
        logger.debug("Running async task [%s] with argv %s", self.name, list(argv))

        async def scoped() -> Any:
            result = self.container.call(self.body)
            if inspect.isawaitable(result):
                result = await result
            return result

        try:
            return await self.container.override_async(self._bindings(argv), scoped)
        except DependencyError:
            raise
        except Exception as e:
            raise TaskError(self.name, e) from e

    def __call__(self, argv: Sequence[str] = ()) -> Any:
        return self.run(argv)

    def __repr__(self) -> str:
        return f"Task({self.name!r})"


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True
