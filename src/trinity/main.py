from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path
from types import FrameType

import typer
from rich import box
from rich.table import Table

from . import __version__
from .core.config import AppConfig, ConfigError, load_config
from .core.console import console, setup_logging, stderr_console
from .core.runtime import build_runtime

app = typer.Typer(help="trinity: a hot-reloading MCP tool server.")
logger = logging.getLogger(__name__)

USAGE = "Usage: trinity serve --target <path> [--glob <pattern>]"


class ApplicationLifecycle:
    """Signal handling for the long-running server."""

    def __init__(self) -> None:
        self._shutdown_requested: bool = False

    def handle_shutdown(self, signum: int, frame: FrameType | None) -> None:
        """First signal asks the server to stop; a second one force-exits."""
        if self._shutdown_requested:
            raise SystemExit(128 + signum)
        self._shutdown_requested = True
        logger.info("Received %s, shutting down...", signal.Signals(signum).name)
        raise KeyboardInterrupt

    def register_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self.handle_shutdown)
        signal.signal(signal.SIGTERM, self.handle_shutdown)


def _load_or_exit(config_path: Path | None, target: Path | None, glob: str | None) -> AppConfig:
    try:
        config, meta = load_config(config_path, target=target, glob=glob)
    except ConfigError as exc:
        stderr_console.print(f"[red]{exc}[/red]")
        stderr_console.print(USAGE)
        raise typer.Exit(code=1) from exc
    logger.debug(
        "Loaded configuration (file: %s, env overrides: %s, cli overrides: %s)",
        meta.path if meta.file_loaded else "none",
        sorted(meta.env_overrides),
        sorted(meta.cli_overrides),
    )
    return config


TargetOption = typer.Option(None, "--target", "-t", help="Folder containing tool files.")
GlobOption = typer.Option(None, "--glob", "-g", help="Glob selecting tool files (default **/*.py).")
ConfigOption = typer.Option(None, "--config", "-c", help="Path to a TOML or JSON config file.")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")


@app.command("serve")
def serve(
    target: Path | None = TargetOption,
    glob: str | None = GlobOption,
    config: Path | None = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Serve the tools in TARGET over stdio, reloading them as they change."""
    loaded = _load_or_exit(config, target, glob)
    # stdout belongs to the protocol; logs go to the JSON log file.
    setup_logging(
        level=loaded.log_level, verbose=verbose, log_file=loaded.log_file, console_output=False
    )

    from .mcp.server import create_server

    runtime = build_runtime(loaded)
    server = create_server(runtime)

    lifecycle = ApplicationLifecycle()
    lifecycle.register_signal_handlers()
    try:
        asyncio.run(server.run_stdio())
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        logger.exception("Failed to start server")
        raise typer.Exit(code=1) from exc


@app.command("tools")
def list_tools(
    target: Path | None = TargetOption,
    glob: str | None = GlobOption,
    config: Path | None = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Load every tool once and show what was found."""
    loaded = _load_or_exit(config, target, glob)
    setup_logging(level=loaded.log_level, verbose=verbose)
    runtime = build_runtime(loaded)

    tools = asyncio.run(runtime.registry.load_tools())
    failures = runtime.registry.last_failures

    table = Table(title=f"Tools in {loaded.target_folder}", box=box.SIMPLE_HEAVY, expand=True)
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Detail", overflow="fold")

    for tool in sorted(tools, key=lambda t: t.name):
        summary = tool.description.splitlines()[0] if tool.description else ""
        table.add_row(tool.name, "[green]ok[/green]", summary)
    for path, error in sorted(failures.items()):
        table.add_row(path.stem, "[red]error[/red]", error.message)

    console.print(table)
    if failures:
        raise typer.Exit(code=2)


@app.command("version")
def show_version() -> None:
    """Print the trinity version."""
    console.print(__version__)


def cli() -> None:
    app()


if __name__ == "__main__":
    cli()
