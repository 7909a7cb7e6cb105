from pathlib import Path
from textwrap import dedent

import pytest

from core.config import GlobalConfig
from core.context import KboxContext
from deps import DependencyContainer
from plugins import PluginLoader
from tasks import TaskRegistry


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests independent of the developer's kbox.toml and environment."""
    for name in ("KBOX_SRC_ROOT", "KBOX_ROOT", "KBOX_GLOBAL_PLUGINS", "KBOX_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def container() -> DependencyContainer:
    return DependencyContainer()


@pytest.fixture
def registry(container) -> TaskRegistry:
    registry = TaskRegistry(container)
    registry.init()
    return registry


@pytest.fixture
def loader(container) -> PluginLoader:
    return PluginLoader(container)


@pytest.fixture
def write_plugin():
    """Write a plugin entry module (and optional manifest) under a root."""

    def write(root: Path, name: str, source: str, kind: str = "plugins", manifest: str | None = None) -> Path:
        plugin_dir = root / kind / name
        plugin_dir.mkdir(parents=True, exist_ok=True)
        entry = plugin_dir / "plugin.py"
        entry.write_text(dedent(source))
        if manifest is not None:
            (plugin_dir / "plugin.yaml").write_text(dedent(manifest))
        return entry

    return write


@pytest.fixture
def kbox(tmp_path) -> KboxContext:
    config = GlobalConfig(src_root=str(tmp_path / "src"), kalabox_root=str(tmp_path / "home"))
    with KboxContext(config) as kbox:
        yield kbox
