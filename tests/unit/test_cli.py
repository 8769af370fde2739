from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from rich.console import Console
from typer.testing import CliRunner

import trinity.main as trinity_main
from tests.conftest import BROKEN_TOOL, HELLO_TOOL, WriteTool
from trinity import __version__
from trinity.main import app


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: Any) -> None:
    """Leave the root logger alone so caplog keeps working."""
    monkeypatch.setattr(trinity_main, "setup_logging", lambda *args, **kwargs: None)


def test_version(runner: CliRunner, capture_console: Console) -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in capture_console.export_text()


def test_tools_lists_loaded_tools(
    runner: CliRunner, capture_console: Console, tool_dir: Path, write_tool: WriteTool
) -> None:
    write_tool("hello.py", HELLO_TOOL)

    result = runner.invoke(app, ["tools", "--target", str(tool_dir)])

    output = capture_console.export_text()
    assert result.exit_code == 0
    assert "hello" in output
    assert "Says hello" in output


def test_tools_exits_2_when_a_file_fails(
    runner: CliRunner, capture_console: Console, tool_dir: Path, write_tool: WriteTool
) -> None:
    write_tool("hello.py", HELLO_TOOL)
    write_tool("broken.py", BROKEN_TOOL)

    result = runner.invoke(app, ["tools", "-t", str(tool_dir)])

    output = capture_console.export_text()
    assert result.exit_code == 2
    assert "broken" in output
    assert "error" in output


def test_tools_honours_glob(
    runner: CliRunner, capture_console: Console, tool_dir: Path, write_tool: WriteTool
) -> None:
    write_tool("hello.py", HELLO_TOOL)
    write_tool("skip/broken.py", BROKEN_TOOL)

    result = runner.invoke(app, ["tools", "-t", str(tool_dir), "--glob", "*.py"])
    assert result.exit_code == 0
    assert "broken" not in capture_console.export_text()

    result = runner.invoke(app, ["tools", "-t", str(tool_dir), "--glob", "**/*.py"])
    assert result.exit_code == 2


def test_serve_without_target_exits_1(runner: CliRunner, capture_console: Console) -> None:
    result = runner.invoke(app, ["serve"])

    assert result.exit_code == 1
    output = capture_console.export_text()
    assert "Missing required argument: --target" in output
    assert "Usage: trinity serve" in output


def test_serve_runs_server_with_config(
    runner: CliRunner, capture_console: Console, tool_dir: Path, monkeypatch: Any
) -> None:
    started: list[Any] = []

    async def fake_run_stdio(self: Any) -> None:
        started.append(self.runtime.config)

    monkeypatch.setattr("trinity.mcp.server.TrinityServer.run_stdio", fake_run_stdio)
    monkeypatch.setattr(trinity_main.ApplicationLifecycle, "register_signal_handlers", lambda self: None)

    result = runner.invoke(app, ["serve", "--target", str(tool_dir), "--glob", "**/*_tool.py"])

    assert result.exit_code == 0
    (config,) = started
    assert config.target == tool_dir.resolve()
    assert config.glob == "**/*_tool.py"


def test_lifecycle_second_signal_forces_exit() -> None:
    lifecycle = trinity_main.ApplicationLifecycle()

    with pytest.raises(KeyboardInterrupt):
        lifecycle.handle_shutdown(2, None)
    with pytest.raises(SystemExit):
        lifecycle.handle_shutdown(2, None)
