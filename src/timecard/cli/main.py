"""Main CLI application."""

import time
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Optional

import click  # type: ignore[import-not-found]
from rich.console import Group  # type: ignore[import-not-found]
from rich.live import Live  # type: ignore[import-not-found]
from rich.panel import Panel  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from timecard import __version__
from timecard.analysis.history import HistoryView, filter_and_sort, month_total
from timecard.automation.idle_detector import IdleDetector, get_system_idle_seconds
from timecard.cli.api_commands import api
from timecard.cli.config_commands import config
from timecard.cli.context import console, fail, get_config
from timecard.cli.crm_commands import crm
from timecard.client import ClientError, TimecardClient
from timecard.core.config import ConfigManager, configure_logging
from timecard.core.formatting import format_duration, format_readable_duration
from timecard.core.mapper import get_timezone
from timecard.core.models import Entry
from timecard.core.timer import Timer, build_manual_entry, local_now, system_clock
from timecard.export_import import get_exporter

TICK_SECONDS = 1.0


def get_client(config: ConfigManager) -> TimecardClient:
    return TimecardClient.from_config(config)


def get_tz(config: ConfigManager) -> tzinfo:
    return get_timezone(config.get("general.timezone", "America/New_York"))


def confirmation_panel(entry: Entry, first_name: str) -> Panel:
    """Panel shown after a time card was saved."""
    body = Text.assemble(
        ("Time card submitted successfully!\n\n", "bold green"),
        ("Total Hours: ", "dim"),
        (format_readable_duration(entry.duration), "bold blue"),
    )
    return Panel(body, title=f"Time card for {first_name}", border_style="green", expand=False)


def render_timer(timer: Timer, detector: Optional[IdleDetector] = None) -> Group:
    """Live timer display: elapsed time, state and the inactivity prompt."""
    state = Text("RUNNING", style="bold green") if timer.is_running else Text("PAUSED", style="bold yellow")
    display = Panel(
        Text.assemble((format_duration(timer.display_time()), "bold"), "  ", state),
        title="Timecard",
        subtitle="Ctrl+C for options",
        expand=False,
    )
    if detector is not None and detector.prompt_open:
        prompt = Panel(
            "Timer paused due to inactivity.\nPress Ctrl+C to resume or save.",
            title="Are you still there?",
            border_style="yellow",
            expand=False,
        )
        return Group(display, prompt)
    return Group(display)


def watch_timer(timer: Timer, detector: Optional[IdleDetector] = None) -> None:
    """Show the live timer until the user presses Ctrl+C."""
    with Live(render_timer(timer, detector), console=console, refresh_per_second=4, transient=True) as live:
        try:
            while True:
                if detector is not None:
                    detector.poll()
                live.update(render_timer(timer, detector))
                time.sleep(TICK_SECONDS)
        except KeyboardInterrupt:
            pass


def save_entry(client: TimecardClient, entry: Entry) -> None:
    """Post an entry and show the confirmation, or fail."""
    try:
        client.save_entry(entry)
    except ClientError as e:
        fail(f"Failed to save time card: {e.detail}")

    user = client.current_user()
    console.print(confirmation_panel(entry, user.first_name if user else "User"))


@click.group()  # type: ignore[misc]
@click.version_option(version=__version__)  # type: ignore[misc]
@click.option("--config", "config_path", type=click.Path(), help="Path to config file")  # type: ignore[misc]
@click.option("--no-color", is_flag=True, help="Disable colored output")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def cli(ctx: click.Context, config_path: Optional[str], no_color: bool) -> None:
    """Timecard - log work hours to Salesforce time sheets.

    Run a timer or enter hours by hand, then review, export or delete
    what was logged.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    if no_color:
        console.no_color = True

    try:
        configure_logging(get_config(ctx))
    except ValueError as e:
        fail(e)


cli.add_command(api)
cli.add_command(config)
cli.add_command(crm)


@cli.command()  # type: ignore[misc]
@click.option("--no-idle", is_flag=True, help="Disable inactivity detection")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def timer(ctx: click.Context, no_idle: bool) -> None:
    """Run the timer and save the result as a time card.

    The timer starts immediately. Press Ctrl+C to pause, then resume, save
    or discard. After a period without keyboard or mouse input the timer
    pauses itself.

    Example:
        timecard timer
    """
    config_mgr = get_config(ctx)
    client = get_client(config_mgr)

    session_timer = Timer(clock=system_clock)
    detector: Optional[IdleDetector] = None
    if config_mgr.get("idle_detection.enabled", True) and not no_idle:
        detector = IdleDetector(
            session_timer,
            idle_timeout=config_mgr.get("idle_detection.idle_timeout", 180),
            prompt_timeout=config_mgr.get("idle_detection.prompt_timeout", 180),
            idle_source=get_system_idle_seconds,
        )

    session_timer.start()
    while True:
        watch_timer(session_timer, detector)
        session_timer.stop()
        console.print(f"Paused at [bold]{format_duration(session_timer.display_time())}[/bold]")

        choice = click.prompt(
            "Resume, save or discard?",
            type=click.Choice(["resume", "save", "discard"]),
            default="save",
        )
        if choice == "resume":
            if detector is not None:
                detector.resume()
            else:
                session_timer.start()
            continue

        if choice == "discard":
            session_timer.reset()
            console.print("[yellow]Time discarded[/yellow]")
            return

        summary = click.prompt("Summary", default="", show_default=False)
        entry = session_timer.build_entry(summary)
        if entry is None:
            console.print("[yellow]Nothing to save[/yellow]")
            return
        save_entry(client, entry)
        return


@cli.command()  # type: ignore[misc]
@click.option("-d", "--date", "day", help="Date (YYYY-MM-DD, default: today)")  # type: ignore[misc]
@click.option("-s", "--start", required=True, help="Start time (HH:MM)")  # type: ignore[misc]
@click.option("-e", "--end", required=True, help="End time (HH:MM)")  # type: ignore[misc]
@click.option("-m", "--summary", default="", help="Work summary")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def log(ctx: click.Context, day: Optional[str], start: str, end: str, summary: str) -> None:
    """Log hours for a time range entered by hand.

    Example:
        timecard log --date 2026-02-08 --start 09:00 --end 17:30 -m "Inventory"
    """
    config_mgr = get_config(ctx)
    tz = get_tz(config_mgr)

    if not day:
        day = local_now(tz).date().isoformat()

    try:
        entry = build_manual_entry(day, start, end, tz, summary)
    except ValueError as e:
        fail(e)

    save_entry(get_client(config_mgr), entry)


@cli.command()  # type: ignore[misc]
@click.option("--search", help="Filter by date (M/D/YYYY or YYYY-MM-DD), id or summary")  # type: ignore[misc]
@click.option(  # type: ignore[misc]
    "--sort",
    "order",
    type=click.Choice(["recent", "duration"]),
    default="recent",
    help="Sort order",
)
@click.pass_context  # type: ignore[misc]
def history(ctx: click.Context, search: Optional[str], order: str) -> None:
    """Show logged time cards and this month's total.

    Examples:
        timecard history
        timecard history --search 2/8/2026
        timecard history --sort duration
    """
    config_mgr = get_config(ctx)
    tz = get_tz(config_mgr)

    try:
        entries = get_client(config_mgr).list_entries()
    except ClientError as e:
        fail(f"Failed to fetch history: {e.detail}")

    now = datetime.now(timezone.utc)
    HistoryView(tz, console).render(
        filter_and_sort(entries, search, order, tz),
        now,
        total=month_total(entries, now, tz),
    )


@cli.command()  # type: ignore[misc]
@click.option("-o", "--output", type=click.Path(), help="Output file (default: timecard_history.<format>)")  # type: ignore[misc]
@click.option("-f", "--format", "fmt", type=click.Choice(["csv", "json"]), default="csv", help="Export format")  # type: ignore[misc]
@click.option("--search", help="Filter by date, id or summary")  # type: ignore[misc]
@click.option("--sort", "order", type=click.Choice(["recent", "duration"]), default="recent")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def export(
    ctx: click.Context,
    output: Optional[str],
    fmt: str,
    search: Optional[str],
    order: str,
) -> None:
    """Export the history to a CSV or JSON file.

    Examples:
        timecard export
        timecard export -f json -o ~/hours.json --search 2026-02
    """
    config_mgr = get_config(ctx)
    tz = get_tz(config_mgr)

    try:
        entries = get_client(config_mgr).list_entries()
    except ClientError as e:
        fail(f"Failed to fetch history: {e.detail}")

    output_path = Path(output) if output else Path(f"timecard_history.{fmt}")
    exporter = get_exporter(fmt, output_path, tz)
    count = exporter.export_entries(filter_and_sort(entries, search, order, tz))

    console.print(f"[green]✓[/green] Exported {count} entries to {output_path}")


@cli.command()  # type: ignore[misc]
@click.argument("entry_id")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def delete(ctx: click.Context, entry_id: str, yes: bool) -> None:
    """Delete a time card by id.

    Example:
        timecard delete a0L5e00000AbCdEFGH
    """
    if not yes and not click.confirm("Are you sure you want to delete this entry?"):
        console.print("Cancelled")
        return

    try:
        get_client(get_config(ctx)).delete_entry(entry_id)
    except ClientError as e:
        fail(f"Failed to delete entry: {e.detail}")

    console.print(f"[green]✓[/green] Deleted entry {entry_id}")


if __name__ == "__main__":
    cli(obj={})
