"""
CLI Utilities

Shared utilities for CLI commands including value parsing, formatting and
opening a cache context for the duration of one command.
"""

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from elcache.core.cache.manager import CacheManager
from elcache.core.exceptions import ElcacheError

console = Console()


def setup_logging(level: str = "WARNING") -> None:
    """Set up logging configuration for the command-line interface."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def parse_value(text: str) -> Any:
    """
    Parse a command-line value.

    JSON literals (numbers, true/false, lists, objects, quoted strings) are
    decoded; anything else is kept as a plain string.
    """
    try:
        return json.loads(text)
    except ValueError:
        return text


def format_value(value: Any) -> str:
    """Render a cached value for display."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def format_expiry(expiry: float) -> str:
    """Render an absolute expiry timestamp."""
    if not expiry:
        return "-"
    return datetime.fromtimestamp(expiry).strftime('%Y-%m-%d %H:%M:%S')


def print_header(title: str, subtitle: Optional[str] = None) -> None:
    """Print a formatted header for CLI output."""
    if subtitle:
        header_text = f"[bold cyan]{title}[/bold cyan]\n[dim]{subtitle}[/dim]"
    else:
        header_text = f"[bold cyan]{title}[/bold cyan]"

    console.print(Panel(header_text, border_style="cyan"))


@contextmanager
def open_cache(ctx: typer.Context) -> Iterator[CacheManager]:
    """
    Open the cache context selected by the global options.

    The cache is closed (reconciled and flushed) on every exit path. Cache
    errors, including a flush that failed on close, are rendered and turned
    into exit code 1.
    """
    from elcache.cli.config_utils import load_config_from_cli
    from elcache.cli.error_handling import handle_error

    options: Dict[str, Any] = ctx.obj or {}
    config = load_config_from_cli(
        config_file=options.get('config'),
        cli_args=options.get('cli_args'),
    )

    try:
        with CacheManager(config) as cache:
            yield cache
    except ElcacheError as e:
        handle_error(e)

    if cache.flush_error is not None:
        handle_error(cache.flush_error)
