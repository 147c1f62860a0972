"""History list: search, sort, monthly total and rendering."""

from datetime import datetime, tzinfo
from typing import Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from timecard.core.formatting import format_decimal_hours
from timecard.core.models import Entry

SORT_ORDERS = ("recent", "duration")


def local_date_labels(entry: Entry, tz: tzinfo) -> list[str]:
    """Date strings an entry can be found by: M/D/YYYY and YYYY-MM-DD."""
    start = entry.start_datetime(tz)
    return [f"{start.month}/{start.day}/{start.year}", start.date().isoformat()]


def search_entries(entries: list[Entry], term: Optional[str], tz: tzinfo) -> list[Entry]:
    """Keep entries whose local date, id or summary contains term.

    Summary matching is case-insensitive. An empty term keeps everything.
    """
    if not term:
        return list(entries)

    needle = term.strip().lower()
    result = []
    for entry in entries:
        if any(needle in label for label in local_date_labels(entry, tz)):
            result.append(entry)
        elif needle in entry.id.lower():
            result.append(entry)
        elif entry.summary and needle in entry.summary.lower():
            result.append(entry)
    return result


def sort_entries(entries: list[Entry], order: str = "recent") -> list[Entry]:
    """Sort newest first ('recent') or longest first ('duration').

    Raises:
        ValueError: If order is unknown
    """
    if order == "recent":
        return sorted(entries, key=lambda e: e.start_time, reverse=True)
    if order == "duration":
        return sorted(entries, key=lambda e: e.duration, reverse=True)
    raise ValueError(f"Unknown sort order: {order}. Use one of {', '.join(SORT_ORDERS)}")


def filter_and_sort(
    entries: list[Entry], term: Optional[str], order: str, tz: tzinfo
) -> list[Entry]:
    return sort_entries(search_entries(entries, term, tz), order)


def entries_in_month(entries: list[Entry], now: datetime, tz: tzinfo) -> list[Entry]:
    """Entries that started in now's local month."""
    local_now = now.astimezone(tz)
    result = []
    for entry in entries:
        start = entry.start_datetime(tz)
        if start.year == local_now.year and start.month == local_now.month:
            result.append(entry)
    return result


def month_total(entries: list[Entry], now: datetime, tz: tzinfo) -> int:
    """Total milliseconds of entries that started in now's local month."""
    return sum(e.duration for e in entries_in_month(entries, now, tz))


class HistoryView:
    """Render the history list to a rich console."""

    def __init__(self, tz: tzinfo, console: Optional[Console] = None):
        self.tz = tz
        self.console = console or Console()

    def render(
        self, entries: list[Entry], now: datetime, total: Optional[int] = None
    ) -> None:
        """Print the month total followed by the entry table.

        Args:
            entries: Entries to list, already searched and sorted
            now: Current instant, selects the month
            total: Month total in milliseconds. Computed from entries if None,
                pass it when entries is a filtered subset.
        """
        if total is None:
            total = month_total(entries, now, self.tz)
        self.console.print(
            f"\n[bold]History[/bold]  [dim]This Month:[/dim] "
            f"[bold blue]{format_decimal_hours(total)}[/bold blue] hrs\n"
        )

        if not entries:
            self.console.print("[yellow]No entries found.[/yellow]")
            return

        table = Table(title=f"Time Cards (showing {len(entries)})")
        table.add_column("Date", style="cyan")
        table.add_column("Time", style="magenta")
        table.add_column("Hours", style="bold blue", justify="right")
        table.add_column("Summary")
        table.add_column("ID", style="dim")

        for entry in entries:
            start = entry.start_datetime(self.tz)
            end = entry.end_datetime(self.tz)
            table.add_row(
                start.strftime("%a, %b ") + str(start.day),
                f"{start:%H:%M} - {end:%H:%M} {start.tzname()}",
                format_decimal_hours(entry.duration),
                entry.summary or "-",
                entry.id,
            )

        self.console.print(table)
