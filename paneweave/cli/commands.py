"""CLI commands for paneweave."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from paneweave import __version__

app = typer.Typer(
    name="paneweave",
    help="paneweave - multi-pane terminal workspace",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"paneweave v{__version__}")
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
    """paneweave entrypoint."""
    del version


@app.command("open")
def open_workspace(
    path: Path = typer.Argument(Path("."), help="Project folder to open."),
    tool: str = typer.Option("", "--tool", "-t", help="Assistant to start in the first terminal."),
) -> None:
    """Open the workspace on PATH."""
    from paneweave.app import run_workspace
    from paneweave.config.loader import load_config
    from paneweave.errors import ConfigError
    from paneweave.logging_setup import configure_logging
    from paneweave.tools import get_tool

    root = path.expanduser().resolve()
    if not root.is_dir():
        console.print(f"[red]Not a directory: {root}[/red]")
        raise typer.Exit(1)
    if tool:
        try:
            get_tool(tool)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1)
    try:
        config = load_config()
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    configure_logging(config)
    run_workspace(str(root), config, tool=tool)


@app.command()
def tools() -> None:
    """List assistant tools and whether they are installed."""
    from paneweave.tools import SHELL_TOOL, TOOLS

    table = Table(title="Assistant tools")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Command")
    table.add_column("Status")
    for tool in [SHELL_TOOL, *TOOLS.values()]:
        if tool.is_available():
            status = "[green]installed[/green]"
        elif tool.install_command:
            status = f"[yellow]missing[/yellow] ({tool.install_command})"
        else:
            status = "[red]missing[/red]"
        table.add_row(tool.key, tool.name, tool.command_line().strip() or "$SHELL", status)
    console.print(table)


@app.command("config")
def show_config() -> None:
    """Print the config path and the resolved values."""
    from paneweave.config.loader import get_config_path, load_config
    from paneweave.errors import ConfigError

    config_path = get_config_path()
    marker = "" if config_path.exists() else " [dim](not created, using defaults)[/dim]"
    console.print(f"Config: [cyan]{config_path}[/cyan]{marker}")
    try:
        config = load_config()
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    console.print_json(json.dumps(config.model_dump(mode="json")))


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite existing config without prompt.",
    ),
) -> None:
    """Write a default config file."""
    from paneweave.config.loader import get_config_path, save_config
    from paneweave.config.schema import Config

    config_path = get_config_path()
    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()
    save_config(Config(), config_path)
    console.print(f"[green]OK[/green] Created config at {config_path}")
