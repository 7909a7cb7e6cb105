import pytest
from typer.testing import CliRunner

from cli.kbox.cli import app

runner = CliRunner()


@pytest.fixture
def project(tmp_path, write_plugin):
    write_plugin(
        tmp_path,
        "db",
        """
        def start(argv, task):
            \"\"\"Start the database.\"\"\"
            return "db " + task + " " + " ".join(argv)


        def init(tasks, plugin):
            tasks.register_task([plugin, "start"], start)
            tasks.register_task([plugin, "stop"], lambda: "stopped", 1)
        """,
    )
    write_plugin(tmp_path, "broken", "def init(plugin):\n    raise RuntimeError('cannot start')\n")
    (tmp_path / "kbox.toml").write_text(
        f"""
src_root = "{tmp_path.as_posix()}"
kalabox_root = ""
global_plugins = ["db"]
"""
    )
    return tmp_path


def test_tasks_shows_registered_tree(project):
    result = runner.invoke(app, ["tasks"])

    assert result.exit_code == 0
    assert "db" in result.output
    assert "start" in result.output
    assert "Total: 2 tasks" in result.output


def test_tasks_plain_prints_command_menu(project):
    result = runner.invoke(app, ["tasks", "--plain"])

    assert result.exit_code == 0
    assert "--- Command Menu ---" in result.output
    assert "    start" in result.output


def test_run_passes_remaining_segments(project):
    result = runner.invoke(app, ["run", "db", "start", "now"])

    assert result.exit_code == 0
    assert "db start now" in result.output


def test_run_awaits_async_task(project, write_plugin, monkeypatch):
    write_plugin(
        project,
        "jobs",
        """
        import asyncio


        async def fetch(argv):
            await asyncio.sleep(0)
            return "FETCHED " + " ".join(argv)


        def init(tasks, plugin):
            tasks.register_task([plugin, "fetch"], fetch)
        """,
    )
    monkeypatch.setenv("KBOX_GLOBAL_PLUGINS", "db,jobs")

    result = runner.invoke(app, ["run", "jobs", "fetch", "all"])

    assert result.exit_code == 0
    assert "FETCHED all" in result.output
    assert "coroutine" not in result.output


def test_run_unknown_task_fails(project):
    result = runner.invoke(app, ["run", "db", "restart"])

    assert result.exit_code == 1
    assert "No task found" in result.output


def test_run_group_lists_available_tasks(project):
    result = runner.invoke(app, ["run", "db"])

    assert result.exit_code == 1
    assert "start, stop" in result.output


def test_failing_global_plugin_is_reported_and_others_load(project, monkeypatch):
    monkeypatch.setenv("KBOX_GLOBAL_PLUGINS", "broken,db")

    result = runner.invoke(app, ["plugins", "list"])

    assert result.exit_code == 1
    assert "Unable to load plugin [broken]" in result.output
    assert "loaded" in result.output


def test_config_show(project):
    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    assert "global_plugins" in result.output
    assert "db" in result.output


def test_invalid_config_exits_with_error(tmp_path):
    (tmp_path / "kbox.toml").write_text("[plugins]\nbogus = 1\n")

    result = runner.invoke(app, ["tasks"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
