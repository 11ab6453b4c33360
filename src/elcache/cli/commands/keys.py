"""
Key Commands

Commands reading and writing individual cache keys.
"""

from typing import Annotated, Optional

import typer
from rich.table import Table

from elcache.cli.utils import console, format_expiry, format_value, open_cache, parse_value


app = typer.Typer(
    name="key",
    help="Read and write cache keys",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.command("get")
def key_get(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
    with_expiry: Annotated[bool, typer.Option("--with-expiry", "-e", help="Also show when the value expires")] = False,
):
    """
    Print the value of a key. Exits with code 1 if the key is absent or expired.

    [bold cyan]Examples:[/bold cyan]

    • Plain value: [green]elcache key get greeting[/green]
    • With expiry: [green]elcache key get greeting --with-expiry[/green]
    """
    with open_cache(ctx) as cache:
        value, expiry = cache.get(key, with_expiry=True)

    if value is None:
        console.print(f"[yellow]Key not found: {key}[/yellow]")
        raise typer.Exit(1)

    console.print(format_value(value), markup=False, highlight=False)
    if with_expiry:
        console.print(f"[dim]expires {format_expiry(expiry)}[/dim]")


@app.command("set")
def key_set(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
    value: Annotated[str, typer.Argument(help="Value (JSON literal or plain text)")],
    ttl: Annotated[Optional[int], typer.Option("--ttl", "-t", help="Time-to-live in seconds; 0 or less revokes")] = None,
):
    """
    Store a value.

    [bold cyan]Examples:[/bold cyan]

    • Text: [green]elcache key set greeting hello[/green]
    • JSON with TTL: [green]elcache key set ids '[1, 2]' --ttl 60[/green]
    """
    with open_cache(ctx) as cache:
        cache.set(key, parse_value(value), ttl)
        stored = cache.get(key) is not None

    if stored:
        console.print(f"[green]✓ Stored {key}[/green]")
    else:
        console.print(f"[yellow]Revoked {key}[/yellow]")


@app.command("revoke")
def key_revoke(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
):
    """Remove a key."""
    with open_cache(ctx) as cache:
        cache.revoke(key)

    console.print(f"[green]✓ Revoked {key}[/green]")


@app.command("check")
def key_check(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
    value: Annotated[str, typer.Argument(help="Expected value (JSON literal or plain text)")],
    strict: Annotated[bool, typer.Option("--strict", "-s", help="Require identical types")] = False,
):
    """
    Compare the cached value with an expected one. Exit code 0 on match, 1 otherwise.
    """
    with open_cache(ctx) as cache:
        matched = cache.check(key, parse_value(value), strict=strict)

    if matched:
        console.print("[green]match[/green]")
        return

    console.print("[yellow]no match[/yellow]")
    raise typer.Exit(1)


@app.command("push")
def key_push(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key holding a list or object")],
    value: Annotated[str, typer.Argument(help="Value to add (JSON literal or plain text)")],
    index: Annotated[Optional[str], typer.Option("--index", "-i", help="List position or object key")] = None,
    ttl: Annotated[Optional[int], typer.Option("--ttl", "-t", help="Time-to-live in seconds")] = None,
):
    """
    Add a value to the list or object stored under a key.

    [bold cyan]Examples:[/bold cyan]

    • Append: [green]elcache key push queue job-1[/green]
    • Insert first: [green]elcache key push queue job-0 --index 0[/green]
    • Set an object key: [green]elcache key push user Ada --index name[/green]
    """
    with open_cache(ctx) as cache:
        container = cache.push(key, parse_value(value), index, ttl)

    console.print(format_value(container), markup=False, highlight=False)


@app.command("list")
def key_list(ctx: typer.Context):
    """List live keys with their expiry."""
    with open_cache(ctx) as cache:
        entries = sorted(cache.items())

    if not entries:
        console.print("[dim]Cache is empty[/dim]")
        return

    table = Table(title=f"{len(entries)} keys")
    table.add_column("Key", style="bold")
    table.add_column("Value", style="cyan", overflow="fold")
    table.add_column("Expires", style="dim")

    for key, entry in entries:
        table.add_row(key, format_value(entry.value), format_expiry(entry.expiry))

    console.print(table)
