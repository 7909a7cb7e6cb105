import asyncio

import pytest

from deps import DependencyContainer, DependencyError, UnresolvedDependency, requires


@pytest.fixture
def bound(container: DependencyContainer) -> DependencyContainer:
    container.register("app", "my-app")
    container.register("plugin", "db")
    return container


def test_call_resolves_parameters_by_name_in_declared_order(bound):
    def init(plugin, app):
        return plugin, app

    assert bound.call(init) == ("db", "my-app")


def test_call_passes_result_through(bound):
    assert bound.call(lambda: 42) == 42


def test_call_passes_exceptions_through_unchanged(bound):
    error = RuntimeError("boom")

    def init(app):
        raise error

    with pytest.raises(RuntimeError) as excinfo:
        bound.call(init)

    assert excinfo.value is error


def test_call_fails_on_unbound_name(bound):
    def init(app, missing):
        pass

    with pytest.raises(UnresolvedDependency) as excinfo:
        bound.call(init)

    assert excinfo.value.name == "missing"
    assert "init" in str(excinfo.value)


def test_call_does_not_invoke_callable_when_resolution_fails(bound):
    called = []

    def init(missing):
        called.append(True)

    with pytest.raises(UnresolvedDependency):
        bound.call(init)

    assert called == []


def test_call_extra_bindings_shadow_without_modifying(bound):
    assert bound.call(lambda plugin: plugin, plugin="web") == "web"
    assert bound.get("plugin") == "db"


def test_call_supports_keyword_only_parameters(bound):
    def init(app, *, plugin):
        return app, plugin

    assert bound.call(init) == ("my-app", "db")


def test_inspect_returns_parameter_names_without_calling(container):
    called = []

    def init(app, app_config, plugin):
        called.append(True)

    assert container.inspect(init) == ["app", "app_config", "plugin"]
    assert called == []


def test_inspect_ignores_variadic_parameters(container):
    def init(plugin, *args, **kwargs):
        pass

    assert container.inspect(init) == ["plugin"]


def test_inspect_prefers_declared_dependencies(container):
    @requires("plugin", "app")
    def init(*deps):
        return deps

    assert container.inspect(init) == ["plugin", "app"]


def test_call_uses_declared_dependencies(bound):
    @requires("plugin", "app")
    def init(*deps):
        return deps

    assert bound.call(init) == ("db", "my-app")


def test_inspect_rejects_non_callables(container):
    with pytest.raises(DependencyError):
        container.inspect(42)


def test_override_installs_bindings_for_the_scope(bound):
    seen = []

    def scoped(done):
        seen.append(bound.call(lambda plugin, extra: (plugin, extra)))
        done()

    bound.override({"plugin": "web", "extra": 1}, scoped)

    assert seen == [("web", 1)]


def test_override_restores_previous_bindings_after_done(bound):
    before = bound.snapshot()

    bound.override({"plugin": "web", "extra": 1}, lambda done: done())

    assert bound.snapshot() == before
    assert not bound.has("extra")


def test_override_restores_bindings_when_scoped_callable_raises(bound):
    before = bound.snapshot()

    def scoped(done):
        raise ValueError("failed before done")

    with pytest.raises(ValueError):
        bound.override({"plugin": "web", "extra": 1}, scoped)

    assert bound.snapshot() == before


def test_override_restoration_happens_before_exception_propagates(bound):
    observed = []

    def scoped(done):
        raise ValueError("boom")

    try:
        bound.override({"plugin": "web"}, scoped)
    except ValueError:
        observed.append(bound.get("plugin"))

    assert observed == ["db"]


def test_override_keeps_bindings_until_done_is_signalled(bound):
    pending = []

    bound.override({"plugin": "web"}, pending.append)

    assert bound.get("plugin") == "web"
    pending[0]()
    assert bound.get("plugin") == "db"


def test_override_done_is_idempotent(bound):
    signals = []

    def scoped(done):
        done()
        signals.append(done)

    bound.override({"plugin": "web"}, scoped)
    bound.register("plugin", "changed-later")
    signals[0]()

    assert bound.get("plugin") == "changed-later"


def test_nested_overrides_unwind_in_order(bound):
    seen = []

    def inner(done):
        seen.append(bound.get("plugin"))
        done()

    def outer(done):
        seen.append(bound.get("plugin"))
        bound.override({"plugin": "inner"}, inner)
        seen.append(bound.get("plugin"))
        done()

    bound.override({"plugin": "outer"}, outer)

    assert seen == ["outer", "inner", "outer"]
    assert bound.get("plugin") == "db"


def test_deferred_overrides_finished_last_in_first_out(bound):
    dones = []

    bound.override({"plugin": "outer"}, dones.append)
    bound.override({"plugin": "inner", "extra": 1}, dones.append)
    assert bound.get("plugin") == "inner"

    inner_done, outer_done = dones[1], dones[0]
    inner_done()
    assert bound.get("plugin") == "outer"
    assert not bound.has("extra")

    outer_done()
    assert bound.get("plugin") == "db"


def test_scoped_context_manager_restores_on_error(bound):
    with pytest.raises(KeyError):
        with bound.scoped({"app": "other", "new": True}):
            assert bound.get("app") == "other"
            raise KeyError("boom")

    assert bound.get("app") == "my-app"
    assert not bound.has("new")


def test_override_async_keeps_bindings_while_awaiting(bound):
    async def scoped():
        await asyncio.sleep(0)
        return bound.get("plugin")

    result = asyncio.run(bound.override_async({"plugin": "async"}, scoped))

    assert result == "async"
    assert bound.get("plugin") == "db"


def test_override_async_restores_on_error(bound):
    async def scoped():
        await asyncio.sleep(0)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(bound.override_async({"plugin": "async"}, scoped))

    assert bound.get("plugin") == "db"


def test_unregister_reports_whether_name_was_bound(bound):
    assert bound.unregister("plugin") is True
    assert bound.unregister("plugin") is False
