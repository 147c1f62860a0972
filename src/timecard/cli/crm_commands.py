"""CLI commands for checking the Salesforce connection."""

import click  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from timecard.cli.context import console, fail, get_config
from timecard.store import SalesforceStore, StoreAuthError, StoreError


@click.group()  # type: ignore[misc]
def crm() -> None:
    """Inspect the Salesforce org time cards are stored in."""
    pass


@crm.command()  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def check(ctx: click.Context) -> None:
    """Log in and describe the time sheet object.

    Credentials come from the salesforce config section or the
    SALESFORCE_USERNAME, SALESFORCE_PASSWORD, SALESFORCE_TOKEN and
    SALESFORCE_LOGIN_URL environment variables.

    Example:
        timecard crm check
    """
    store = SalesforceStore.from_config(get_config(ctx))

    try:
        store.connect()
        description = store.describe()
    except StoreAuthError as e:
        fail(f"Login failed: {e}")
    except StoreError as e:
        fail(e)

    fields = description.get("fields", [])
    console.print(f"[green]✓[/green] Connected to {store.instance_url}")
    console.print(f"  Object: {description.get('name', store.object_name)} ({len(fields)} fields)")
    console.print(f"  Createable: {description.get('createable', False)}")
    console.print(f"  Deletable: {description.get('deletable', False)}")


@crm.command()  # type: ignore[misc]
@click.option("-n", "--limit", type=int, default=10, help="Number of records to show")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def recent(ctx: click.Context, limit: int) -> None:
    """Show the latest time sheet records for every user, as stored.

    Example:
        timecard crm recent -n 5
    """
    store = SalesforceStore.from_config(get_config(ctx))

    try:
        records = store.recent_time_entries(limit)
    except StoreError as e:
        fail(e)

    if not records:
        console.print("[yellow]No time sheet records found.[/yellow]")
        return

    table = Table(title=f"Latest {store.object_name} records")
    table.add_column("Id", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("In")
    table.add_column("Out")
    table.add_column("Hours", justify="right", style="bold blue")
    table.add_column("User")

    for record in records:
        table.add_row(
            str(record.get("Id", "")),
            str(record.get("Date__c") or ""),
            str(record.get("Time_in__c") or ""),
            str(record.get("Time_Out__c") or ""),
            str(record.get("Duration_Hours__c") or ""),
            str(record.get("User_Email__c") or ""),
        )

    console.print(table)
