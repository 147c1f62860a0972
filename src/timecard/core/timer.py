"""Start/stop timer and entry builders for the timer and manual modes."""

import time as _time
from datetime import date, datetime, tzinfo
from typing import Callable, Optional

from timecard.core.mapper import parse_time_of_day, wall_clock_to_ms
from timecard.core.models import Entry, iso_instant

Clock = Callable[[], int]

INVALID_RANGE_MESSAGE = "Invalid time range. End time must be after start time."


def system_clock() -> int:
    """Current time in epoch milliseconds."""
    return int(_time.time() * 1000)


class Timer:
    """Elapsed-time counter that survives any number of start/stop cycles.

    Completed sessions are folded into ``accumulated``; the running session is
    only measured on demand, so the display value is always derived from the
    clock and never drifts.
    """

    def __init__(self, clock: Optional[Clock] = None, initial_time: int = 0):
        """Initialize timer.

        Args:
            clock: Callable returning epoch milliseconds. Defaults to system time.
            initial_time: Milliseconds already accumulated
        """
        self.clock = clock or system_clock
        self.accumulated = initial_time
        self.session_start: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self.session_start is not None

    def start(self) -> None:
        """Start a session. Does nothing if already running."""
        if self.is_running:
            return
        self.session_start = self.clock()

    def stop(self) -> None:
        """Stop the running session and fold it into the accumulated time."""
        if self.session_start is None:
            return
        self.accumulated += max(0, self.clock() - self.session_start)
        self.session_start = None

    def reset(self) -> None:
        """Stop and clear all accumulated time."""
        self.session_start = None
        self.accumulated = 0

    def set_accumulated(self, milliseconds: int) -> None:
        self.accumulated = max(0, milliseconds)

    def display_time(self) -> int:
        """Milliseconds to show: accumulated plus the running session, if any."""
        if self.session_start is None:
            return self.accumulated
        return self.accumulated + max(0, self.clock() - self.session_start)

    def build_entry(self, summary: str = "") -> Optional[Entry]:
        """Build an entry from the timer value.

        The entry ends now and starts ``display_time`` earlier, so paused
        periods are not counted.

        Returns:
            The entry, or None when nothing has been timed
        """
        duration = self.display_time()
        if duration == 0:
            return None
        now = self.clock()
        return Entry(
            start_time=now - duration,
            end_time=now,
            duration=duration,
            summary=summary,
            date=iso_instant(now),
        )


def build_manual_entry(
    day: str,
    start: str,
    end: str,
    tz: tzinfo,
    summary: str = "",
    clock: Optional[Clock] = None,
) -> Entry:
    """Build an entry from a manually entered date and HH:MM range.

    Args:
        day: Date as YYYY-MM-DD
        start: Start time of day (HH:MM)
        end: End time of day (HH:MM)
        tz: Timezone the wall-clock values are in
        summary: Work summary
        clock: Clock used for the entry's creation stamp

    Raises:
        ValueError: If the values cannot be parsed or end is not after start
    """
    try:
        parsed_day = date.fromisoformat(day)
        start_ms = wall_clock_to_ms(parsed_day, parse_time_of_day(start), tz)
        end_ms = wall_clock_to_ms(parsed_day, parse_time_of_day(end), tz)
    except ValueError as e:
        raise ValueError(INVALID_RANGE_MESSAGE) from e

    if end_ms <= start_ms:
        raise ValueError(INVALID_RANGE_MESSAGE)

    now = (clock or system_clock)()
    return Entry(
        start_time=start_ms,
        end_time=end_ms,
        duration=end_ms - start_ms,
        summary=summary,
        date=iso_instant(now),
    )


def local_now(tz: tzinfo, clock: Optional[Clock] = None) -> datetime:
    """Current wall-clock time in tz."""
    epoch_ms = (clock or system_clock)()
    return datetime.fromtimestamp(epoch_ms / 1000, tz=tz)
