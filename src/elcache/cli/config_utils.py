"""
Configuration Utilities for CLI Commands

Shared helpers for turning CLI options into a validated CacheConfig and
displaying it.
"""

from typing import Dict, Any, Optional

import typer
from rich.table import Table

from elcache.core.config import ConfigManager, CacheConfig
from elcache.core.exceptions import ConfigurationError
from elcache.cli.utils import console, setup_logging


def load_config_from_cli(
    config_file: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> CacheConfig:
    """
    Load configuration from CLI arguments with proper error handling.

    Args:
        config_file: Optional path to configuration file
        cli_args: Dictionary of CLI arguments to override config

    Returns:
        Validated CacheConfig instance

    Raises:
        typer.Exit: If configuration is invalid
    """
    cli_args = dict(cli_args or {})
    verbose = cli_args.pop('verbose', False)

    try:
        config = ConfigManager(config_file=config_file).load_config(overrides=cli_args)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e.message}[/red]")
        raise typer.Exit(1)

    setup_logging("DEBUG" if verbose else config.log_level)
    return config


def print_config_summary(config: CacheConfig) -> None:
    """Print a summary of the current configuration."""
    table = Table(title="Configuration", show_header=False, border_style="green")
    table.add_column("Option", style="bold")
    table.add_column("Value", style="cyan")

    table.add_row("Context", config.context)
    table.add_row("Cache file", str(config.file_path))
    table.add_row("Default TTL", f"{config.ttl}s")
    table.add_row(
        "Max buffer",
        f"{config.max_buffer} KiB" if config.max_buffer is not None else "unlimited"
    )
    table.add_row("Purge on init", "yes" if config.purge_on_init else "no")

    console.print(table)
