"""
Store Commands

Commands operating on a whole cache context: purging, inspection and
configuration scaffolding.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from elcache.cli.config_utils import print_config_summary
from elcache.cli.utils import console, open_cache, print_header
from elcache.core.config import ConfigManager


app = typer.Typer(
    name="store",
    help="Maintain a cache context",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.command("purge")
def store_purge(
    ctx: typer.Context,
    purge_all: Annotated[bool, typer.Option("--all", "-a", help="Remove every entry, not only expired ones")] = False,
    hard: Annotated[bool, typer.Option("--hard", help="With --all, delete the cache file")] = False,
):
    """
    Remove expired entries, or everything with --all.

    [bold cyan]Examples:[/bold cyan]

    • Expired only: [green]elcache store purge[/green]
    • Empty the cache: [green]elcache store purge --all[/green]
    • Delete the file: [green]elcache store purge --all --hard[/green]
    """
    if hard and not purge_all:
        console.print("[red]--hard requires --all[/red]")
        raise typer.Exit(1)

    with open_cache(ctx) as cache:
        if purge_all:
            cache.purge_all(hard=hard)
            removed = None
        else:
            removed = cache.purge_expired(then_write=True)

    if removed is None:
        console.print("[green]✓ Cache emptied[/green]")
    else:
        console.print(f"[green]✓ Removed {removed} expired entries[/green]")


@app.command("info")
def store_info(ctx: typer.Context):
    """Show configuration, entry counts and disk activity of a context."""
    with open_cache(ctx) as cache:
        print_header("elcache", f"Context: {cache.context}")
        print_config_summary(cache.config)
        info = cache.get_cache_info()

    table = Table(title="Entries", show_header=False, border_style="cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Value", style="cyan")
    table.add_row("Total", str(info["entries"]["total"]))
    table.add_row("Expired", str(info["entries"]["expired"]))
    for name, value in info["stats"].items():
        table.add_row(name.replace("_", " ").capitalize(), str(value))

    console.print(table)


@app.command("init-config")
def store_init_config(
    output: Annotated[Path, typer.Argument(help="File to write the default configuration to")] = Path("elcache.yaml"),
    overwrite: Annotated[bool, typer.Option("--overwrite", help="Replace an existing file")] = False,
):
    """Write a YAML configuration file with the default options."""
    if output.exists() and not overwrite:
        console.print(f"[red]{output} already exists (use --overwrite)[/red]")
        raise typer.Exit(1)

    ConfigManager().create_example_config(output)
    console.print(f"[green]✓ Wrote {output}[/green]")
