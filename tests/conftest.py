from __future__ import annotations

import sys
import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console
from typer.testing import CliRunner

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


HELLO_TOOL = """
from pydantic import BaseModel

description = "Says hello"


class input_schema(BaseModel):
    name: str


async def execute(name: str) -> str:
    return "Hello, " + name + "!"
"""

HELLO_UPPER_TOOL = """
from pydantic import BaseModel

description = "Says hello"


class input_schema(BaseModel):
    name: str


async def execute(name: str) -> str:
    return ("Hello, " + name + "!").upper()
"""

BROKEN_TOOL = """
from pydantic import BaseModel


class input_schema(BaseModel):
    name: str


async def execute(name: str) -> str:
    return name
"""


def make_tool(description: str, body: str = "return 'ok'") -> str:
    return textwrap.dedent(
        f"""
        description = {description!r}
        input_schema = {{"type": "object", "properties": {{}}}}


        async def execute(**kwargs):
            {body}
        """
    )


WriteTool = Callable[[str, str], Path]


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolate_config(monkeypatch: Any) -> None:
    """Keep the developer's environment out of config loading."""
    for name in ("MCP_TARGET", "MCP_GLOB", "MCP_LOG_FILE", "MCP_LOG_LEVEL", "LOG_FILE", "TRINITY_CONFIG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def tool_dir(tmp_path: Path) -> Path:
    target = tmp_path / "tools"
    target.mkdir()
    return target


@pytest.fixture
def write_tool(tool_dir: Path) -> WriteTool:
    """Write ``source`` to ``<tool_dir>/<relative>`` and return the path."""

    def _write(relative: str, source: str) -> Path:
        path = tool_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def capture_console(monkeypatch: Any) -> Console:
    """Use an in-memory Rich console during tests."""
    test_console = Console(record=True, width=200)
    import trinity.core.console as core_console
    import trinity.main as trinity_main

    monkeypatch.setattr(core_console, "console", test_console)
    monkeypatch.setattr(trinity_main, "console", test_console)
    monkeypatch.setattr(trinity_main, "stderr_console", test_console)
    return test_console
