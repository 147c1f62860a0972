"""Mapping between application entries and Salesforce time sheet records.

The remote object stores one entry as a calendar date plus two time-of-day
strings. Those strings carry a trailing ``Z`` because that is how the remote
Time type serializes, but the values are wall-clock times in the configured
timezone, not UTC. Every conversion here goes through ``zoneinfo`` so that
daylight-saving transitions resolve the same way in both directions.
"""

import logging
import re
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timecard.core.formatting import round_hours
from timecard.core.models import MS_PER_HOUR, Contact, Entry, User, datetime_to_ms, iso_instant

logger = logging.getLogger(__name__)

_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d{1,6}))?)?Z?$")


def get_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name.

    Raises:
        ValueError: If the zone is unknown
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e


def parse_time_of_day(value: str) -> time:
    """Parse HH:MM, HH:MM:SS or HH:MM:SS.sss with an optional trailing Z.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    match = _TIME_OF_DAY.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time of day: {value!r}")
    hour, minute, second, fraction = match.groups()
    microsecond = int((fraction or "0").ljust(6, "0"))
    return time(int(hour), int(minute), int(second or 0), microsecond)


def format_time_of_day(dt: datetime) -> str:
    """Format the wall-clock part of dt as HH:MM:SS.sssZ."""
    return dt.strftime("%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def wall_clock_to_ms(day: date, time_of_day: time, tz: tzinfo, fold: int = 0) -> int:
    """Interpret a local date and time in tz and return epoch milliseconds.

    Ambiguous times (the repeated hour when clocks fall back) resolve to the
    first occurrence unless fold=1 asks for the second.
    """
    local = datetime.combine(day, time_of_day).replace(tzinfo=tz, fold=fold)
    return datetime_to_ms(local)


def format_record_name(user: User, start_local: datetime) -> str:
    """Build the record Name, e.g. 'Ada Lovelace - 2/8/2026, 3:05:01 PM EST'."""
    hour12 = start_local.hour % 12 or 12
    meridiem = "AM" if start_local.hour < 12 else "PM"
    stamp = (
        f"{start_local.month}/{start_local.day}/{start_local.year}, "
        f"{hour12}:{start_local:%M:%S} {meridiem}"
    )
    return f"{user.display_name} - {stamp} {start_local.tzname()}"


def entry_to_record(
    entry: Entry,
    user: User,
    tz: tzinfo,
    contact: Optional[Contact] = None,
) -> dict[str, Any]:
    """Convert an application entry into a Time_Sheet__c record.

    Args:
        entry: Entry to persist
        user: Caller that owns the entry
        tz: Timezone the remote date and time fields are expressed in
        contact: Contact found for the caller's email, if any

    Returns:
        Record fields ready for the create call
    """
    start_local = entry.start_datetime(tz)
    end_local = entry.end_datetime(tz)

    record: dict[str, Any] = {
        "Name": format_record_name(user, start_local),
        "Date__c": start_local.date().isoformat(),
        "Time_in__c": format_time_of_day(start_local),
        "Time_Out__c": format_time_of_day(end_local),
        "Duration_Hours__c": float(round_hours(entry.duration)),
        "Summary__c": entry.summary or "",
        "User_Email__c": user.email,
        "Day_of_the_week__c": start_local.strftime("%A"),
    }
    if contact is not None:
        record["Contact__c"] = contact.id
        if contact.account_id:
            record["Account__c"] = contact.account_id
    return record


def record_to_entry(record: dict[str, Any], tz: tzinfo) -> Entry:
    """Convert a Time_Sheet__c record back into an application entry.

    Raises:
        ValueError: If the record has no usable date or time values
    """
    raw_date = record.get("Date__c")
    if not raw_date:
        raise ValueError(f"Record {record.get('Id')} has no Date__c")
    day = date.fromisoformat(str(raw_date)[:10])

    time_in = parse_time_of_day(record["Time_in__c"]) if record.get("Time_in__c") else time(0)
    time_out = parse_time_of_day(record["Time_Out__c"]) if record.get("Time_Out__c") else time_in

    start_ms = wall_clock_to_ms(day, time_in, tz)
    end_ms = wall_clock_to_ms(day, time_out, tz)
    if end_ms < start_ms:
        # the second pass through the repeated hour, or else past local midnight
        end_ms = wall_clock_to_ms(day, time_out, tz, fold=1)
        if end_ms < start_ms:
            end_ms = wall_clock_to_ms(day + timedelta(days=1), time_out, tz)

    hours = record.get("Duration_Hours__c")
    if hours is None:
        duration = end_ms - start_ms
    else:
        duration = int(round(float(hours) * MS_PER_HOUR))

    return Entry(
        id=str(record.get("Id") or ""),
        start_time=start_ms,
        end_time=end_ms,
        duration=duration,
        summary=record.get("Summary__c") or "",
        date=iso_instant(start_ms),
        user_email=record.get("User_Email__c"),
    )


def records_to_entries(records: list[dict[str, Any]], tz: tzinfo) -> list[Entry]:
    """Map records, logging and skipping the ones that cannot be mapped."""
    entries = []
    for record in records:
        try:
            entries.append(record_to_entry(record, tz))
        except (KeyError, ValueError) as e:
            logger.warning(f"Skipping unmappable record {record.get('Id')}: {e}")
    return entries
