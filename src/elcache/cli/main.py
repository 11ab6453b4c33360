#!/usr/bin/env python3
"""
elcache CLI Main Application

Typer-based command-line interface sharing cached values between separate
program runs through the cache file of a context.
"""

from typing import Optional

import typer
from rich.console import Console

from elcache.cli import __version__
from elcache.cli.commands import keys, store

console = Console()

app = typer.Typer(
    name="elcache",
    help="File-persisted key-value cache with per-key expiry",
    context_settings={"help_option_names": ["-h", "--help"]},
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.add_typer(keys.app, name="key", help="Read and write cache keys")
app.add_typer(store.app, name="store", help="Maintain a cache context")


def version_callback(value: bool):
    """Show version information."""
    if value:
        console.print(f"[bold cyan]elcache[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def app_callback(
    ctx: typer.Context,
    path: Optional[str] = typer.Option(
        None, "--path", "-p", help="Directory holding the cache files"
    ),
    context: Optional[str] = typer.Option(
        None, "--context", "-c", help="Cache context (one file per context)"
    ),
    config: Optional[str] = typer.Option(
        None, "--config", help="Configuration file (YAML or JSON)"
    ),
    ttl: Optional[int] = typer.Option(
        None, "--default-ttl", help="Default time-to-live in seconds"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", help="Enable debug logging"
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version information and exit"
    ),
):
    """
    elcache - share cached values between program runs through a file.

    [bold]Quick Start:[/bold]

    • Store a value: [cyan]elcache key set greeting hello --ttl 60[/cyan]
    • Read it back: [cyan]elcache key get greeting[/cyan]
    • Use a context: [cyan]elcache --context web key list[/cyan]
    • Drop expired entries: [cyan]elcache store purge[/cyan]
    """
    ctx.obj = {
        'config': config,
        'cli_args': {
            'path': path,
            'context': context,
            'ttl': ttl,
            'verbose': verbose,
        },
    }


def main():
    """Entry point for the elcache console script."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
