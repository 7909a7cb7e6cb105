"""Name-keyed dependency container.

Resolves a callable's declared dependencies against the container's current
bindings and supports scoped overrides that are always reverted, including on
the failure path.
"""

from __future__ import annotations

import inspect
import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, Mapping

from core.errors import KboxError

logger = logging.getLogger(__name__)

REQUIRES_ATTR = "__kbox_requires__"

_UNBOUND = object()

_RESOLVABLE_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.KEYWORD_ONLY,
)


class DependencyError(KboxError):
    """Raised when a callable's dependencies cannot be determined."""

    pass


class UnresolvedDependency(DependencyError):
    """Raised when a declared dependency name has no binding."""

    def __init__(self, name: str, target: str):
        self.name = name
        self.target = target
        super().__init__(f"Unresolved dependency [{name}] required by {target}")


def requires(*names: str) -> Callable:
    """Declare the dependency names a callable needs, in call order.

    The declared list takes precedence over the callable's parameter names, so
    wrapped or ``*args`` callables can still take part in injection.

    Example:
        @requires("app", "plugin")
        def init(*deps):
            ...
    """

    def decorator(fn: Callable) -> Callable:
        setattr(fn, REQUIRES_ATTR, tuple(names))
        return fn

    return decorator


def describe(fn: Callable) -> str:
    """Human readable name for a callable, used in error messages."""
    module = getattr(fn, "__module__", None)
    name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)
    return f"{module}.{name}" if module else name


class DependencyContainer:
    """Holds named bindings and injects them into callables.

    A binding is any value stored under a string name. ``call`` looks up each
    name a callable declares and passes the values in declaration order;
    ``override`` and ``scoped`` replace bindings for the duration of a nested
    call and then restore the previous state exactly.
    """

    def __init__(self, bindings: Mapping[str, Any] | None = None):
        self._bindings: dict[str, Any] = dict(bindings or {})

    def register(self, name: str, value: Any) -> None:
        """Bind ``name`` to ``value``, replacing any existing binding."""
        self._bindings[name] = value

    def unregister(self, name: str) -> bool:
        """Remove a binding. Returns False if the name was not bound."""
        return self._bindings.pop(name, _UNBOUND) is not _UNBOUND

    def has(self, name: str) -> bool:
        return name in self._bindings

    def get(self, name: str, default: Any = None) -> Any:
        return self._bindings.get(name, default)

    def snapshot(self) -> dict[str, Any]:
        """Return a shallow copy of the current bindings."""
        return dict(self._bindings)

    def clear(self) -> None:
        self._bindings.clear()

    def inspect(self, fn: Callable) -> list[str]:
        """Return the ordered dependency names ``fn`` declares, without calling it.

        Raises:
            DependencyError: If ``fn`` is not callable or has no inspectable signature.
        """
        declared = getattr(fn, REQUIRES_ATTR, None)
        if declared is not None:
            return list(declared)
        return [name for name, _ in self._parameters(fn)]

    def call(self, fn: Callable, **extra: Any) -> Any:
        """Invoke ``fn`` with its dependencies resolved from the bindings.

        Args:
            fn: Callable to invoke.
            **extra: Bindings visible to this call only; they shadow the
                container's bindings without modifying them.

        Returns:
            Whatever ``fn`` returns. Exceptions raised by ``fn`` propagate unchanged.

        Raises:
            UnresolvedDependency: If a declared name has no binding.
        """
        target = describe(fn)

        def resolve(name: str) -> Any:
            if name in extra:
                return extra[name]
            value = self._bindings.get(name, _UNBOUND)
            if value is _UNBOUND:
                raise UnresolvedDependency(name, target)
            return value

        declared = getattr(fn, REQUIRES_ATTR, None)
        if declared is not None:
            args = [resolve(name) for name in declared]
            logger.debug("Calling %s with declared dependencies %s", target, list(declared))
            return fn(*args)

        parameters = self._parameters(fn)
        args = []
        kwargs = {}
        for name, kind in parameters:
            if kind is inspect.Parameter.KEYWORD_ONLY:
                kwargs[name] = resolve(name)
            else:
                args.append(resolve(name))

        logger.debug("Calling %s with dependencies %s", target, [name for name, _ in parameters])
        return fn(*args, **kwargs)

    def override(self, bindings: Mapping[str, Any], scoped_fn: Callable[[Callable[[], None]], Any]) -> Any:
        """Install ``bindings`` and call ``scoped_fn(done)``.

        The previous bindings are restored when ``done`` is invoked, which
        allows the scoped work to finish later. If ``scoped_fn`` raises, the
        bindings are restored before the exception propagates. ``done`` may be
        called more than once; only the first call has an effect.

        Overlapping overrides must be finished in LIFO order. Each ``done``
        restores the values that were bound when its override was installed,
        so finishing an outer override before an inner one that shares a name
        leaves the outer override's value bound once the inner ``done`` runs.

        Returns:
            The return value of ``scoped_fn``.
        """
        done = self._install(bindings)
        try:
            return scoped_fn(done)
        except BaseException:
            done()
            raise

    @contextmanager
    def scoped(self, bindings: Mapping[str, Any]) -> Iterator["DependencyContainer"]:
        """Context manager form of :meth:`override`.

        Example:
            with container.scoped({"plugin": "db"}):
                container.call(init)
        """
        restore = self._install(bindings)
        try:
            yield self
        finally:
            restore()

    async def override_async(
        self, bindings: Mapping[str, Any], scoped: Callable[[], Awaitable[Any]]
    ) -> Any:
        """Await ``scoped()`` with ``bindings`` installed, restoring them afterwards."""
        with self.scoped(bindings):
            return await scoped()

    def _install(self, bindings: Mapping[str, Any]) -> Callable[[], None]:
        previous = [(name, self._bindings.get(name, _UNBOUND)) for name in bindings]
        self._bindings.update(bindings)
        logger.debug("Override installed for %s", [name for name, _ in previous])
        restored = False

        def restore() -> None:
            nonlocal restored
            if restored:
                return
            restored = True
            for name, value in reversed(previous):
                if value is _UNBOUND:
                    self._bindings.pop(name, None)
                else:
                    self._bindings[name] = value
            logger.debug("Override restored for %s", [name for name, _ in previous])

        return restore

    @staticmethod
    def _parameters(fn: Callable) -> list[tuple[str, Any]]:
        if not callable(fn):
            raise DependencyError(f"{fn!r} is not callable")
        try:
            signature = inspect.signature(fn)
        except (TypeError, ValueError) as e:
            raise DependencyError(f"Cannot inspect dependencies of {describe(fn)}: {e}") from e
        return [
            (name, parameter.kind)
            for name, parameter in signature.parameters.items()
            if parameter.kind in _RESOLVABLE_KINDS
        ]
