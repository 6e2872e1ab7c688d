"""CLI commands for lazyjj-panel."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from lazyjj_panel import __version__

app = typer.Typer(
    name="lazyjj-panel",
    help="lazyjj-panel - run lazyjj in a floating terminal panel",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"lazyjj-panel v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """lazyjj-panel entrypoint."""
    del version


def _load(config_path: Optional[Path], **overrides):
    from lazyjj_panel.config.loader import load_config

    try:
        return load_config(config_path, **overrides)
    except ValidationError as exc:
        console.print(f"[red]Invalid configuration:[/red]\n{escape(str(exc))}")
        raise typer.Exit(2)


@app.command()
def edit(
    files: Optional[List[Path]] = typer.Argument(None, help="Documents to open."),
    open_now: bool = typer.Option(False, "--open", help="Run LazyJJ right after start-up."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Config file to use."),
    mapping: Optional[str] = typer.Option(None, "--mapping", help="Trigger keys, e.g. '<leader>jj'."),
    no_mapping: bool = typer.Option(False, "--no-mapping", help="Do not register a trigger keymap."),
    width: Optional[float] = typer.Option(None, "--width", help="Panel width as a fraction of the screen."),
    height: Optional[float] = typer.Option(None, "--height", help="Panel height as a fraction of the screen."),
    command: Optional[str] = typer.Option(None, "--command", help="Executable to run in the panel."),
    log_level: str = typer.Option(
        os.getenv("LAZYJJ_PANEL_LOG_LEVEL", "INFO"),
        "--log-level",
        help="Log level for the log file.",
    ),
) -> None:
    """Start the editor with the LazyJJ command and keymap."""
    from lazyjj_panel.host.app import EditorApp
    from lazyjj_panel.utils.helpers import configure_logging

    config = _load(
        config_path,
        mapping=False if no_mapping else mapping,
        col_range=width,
        row_range=height,
        command=command,
    )
    log_path = configure_logging(log_level)
    logger.info(f"[cli] Starting editor, log file {log_path}")

    EditorApp([str(path) for path in files or []], config, open_on_start=open_now).run()


@app.command()
def root(
    path: Optional[Path] = typer.Argument(None, help="File to resolve (default: none, cwd fallback)."),
) -> None:
    """Print the jj repository root for PATH."""
    from lazyjj_panel.root import find_jj_root

    console.print(find_jj_root(str(path) if path else None))


@app.command()
def status(
    config_path: Optional[Path] = typer.Option(None, "--config", help="Config file to use."),
) -> None:
    """Show lazyjj-panel configuration and tool availability."""
    from lazyjj_panel.config.loader import get_config_path
    from lazyjj_panel.utils.helpers import command_exists, get_log_path

    target = config_path or get_config_path()
    config = _load(config_path)

    console.print("lazyjj-panel Status\n")
    console.print(f"Config: {target} {'[green]OK[/green]' if target.exists() else '[dim]defaults[/dim]'}")
    console.print(f"Log file: [dim]{get_log_path()}[/dim]")
    console.print(f"Keymap: [cyan]{config.mapping or 'disabled'}[/cyan] (leader {config.leader!r})")
    console.print(f"Panel size: {config.col_range:.0%} x {config.row_range:.0%}")
    found = command_exists(config.command)
    state = "[green]found[/green]" if found else "[red]not found on PATH[/red]"
    console.print(f"Command: [cyan]{config.command}[/cyan] {state}")
