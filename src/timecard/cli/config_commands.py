"""CLI commands for configuration management."""

import json
import shutil
from typing import Any

import click  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from timecard.cli.context import console, fail, get_config

# Values never printed in full
SECRET_KEYS = {
    "salesforce.password",
    "salesforce.security_token",
    "api.authentication.secret_key",
    "client.token",
}


def _mask(key: str, value: Any) -> str:
    if key in SECRET_KEYS and value:
        return "********"
    return str(value)


def _convert(value: str) -> Any:
    """Convert a command-line string to bool, None, int or leave it as text."""
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    if lowered == "null":
        return None
    try:
        return int(value)
    except ValueError:
        return value


@click.group()  # type: ignore[misc]
def config() -> None:
    """Manage Timecard configuration.

    Configuration is stored in ~/.timecard/config.yml
    """
    pass


@config.command("show")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show all configuration settings (secrets masked).

    Example:
        timecard config show
        timecard config show --json
    """
    config_mgr = get_config(ctx)

    rows: list[tuple[str, str]] = []

    def collect(prefix: str, data: dict[str, Any]) -> None:
        for key, value in data.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                collect(full_key, value)
            else:
                rows.append((full_key, _mask(full_key, value)))

    collect("", config_mgr.to_dict())

    if as_json:
        click.echo(json.dumps(dict(rows), indent=2))
        return

    table = Table(title="Timecard Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in rows:
        table.add_row(key, value)

    console.print(table)
    console.print(f"\nConfig file: {config_mgr.config_path}")


@config.command("get")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_get(ctx: click.Context, key: str) -> None:
    """Get a specific configuration value.

    Uses dot notation to access nested values.

    Example:
        timecard config get general.timezone
        timecard config get store.backend
    """
    value = get_config(ctx).get(key)

    if value is None:
        fail(f"Configuration key '{key}' not found")

    if isinstance(value, dict):
        click.echo(json.dumps(value, indent=2))
    else:
        click.echo(str(value))


@config.command("set")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.argument("value")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a configuration value.

    Use 'true'/'false' for booleans, numbers for integers and 'null' to
    clear a value.

    Example:
        timecard config set store.backend local
        timecard config set idle_detection.idle_timeout 300
        timecard config set general.timezone "America/Chicago"
    """
    config_mgr = get_config(ctx)
    converted_value = _convert(value)

    try:
        config_mgr.set(key, converted_value)
    except ValueError as e:
        fail(e)

    console.print(f"[green]✓[/green] Set {key} = {_mask(key, converted_value)}")


@config.command("reset")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Reset configuration to defaults.

    Example:
        timecard config reset --yes
    """
    config_mgr = get_config(ctx)

    if not yes:
        console.print("[yellow]Warning:[/yellow] This will reset all configuration to defaults.")
        if not click.confirm("Continue?"):
            console.print("Cancelled")
            return

    backup_path = config_mgr.config_path.with_suffix(".yml.backup")
    if config_mgr.config_path.exists():
        shutil.copy(config_mgr.config_path, backup_path)
        console.print(f"Backed up current config to {backup_path}")

    config_mgr.reset()
    console.print("[green]✓[/green] Configuration reset to defaults")
