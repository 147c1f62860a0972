"""Shared console and config access for CLI commands."""

import sys
from pathlib import Path
from typing import NoReturn

import click  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]

from timecard.core.config import ConfigManager

console = Console()
error_console = Console(stderr=True)


def get_config(ctx: click.Context) -> ConfigManager:
    """Get the ConfigManager for the --config path given to the root command."""
    root = ctx.find_root()
    config_path = root.obj.get("config_path") if root.obj else None
    return ConfigManager(Path(config_path) if config_path else None)


def fail(message: object) -> NoReturn:
    """Print an error line on stderr and exit with status 1."""
    error_console.print(f"[red]Error:[/red] {message}")
    sys.exit(1)
