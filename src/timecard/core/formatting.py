"""Duration formatting helpers."""

from decimal import ROUND_HALF_UP, Decimal

from timecard.core.models import MS_PER_HOUR


def round_hours(milliseconds: int) -> Decimal:
    """Convert milliseconds to decimal hours rounded half-up to 2 places."""
    hours = Decimal(milliseconds) / Decimal(MS_PER_HOUR)
    return hours.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_duration(milliseconds: int) -> str:
    """Format milliseconds as HH:MM:SS.

    Example:
        >>> format_duration(3_723_000)
        '01:02:03'
    """
    total_seconds = max(0, milliseconds) // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_decimal_hours(milliseconds: int) -> str:
    """Format milliseconds as decimal hours without trailing zeros.

    Example:
        >>> format_decimal_hours(30 * 60 * 1000)
        '0.5'
        >>> format_decimal_hours(5 * 3_600_000)
        '5'
    """
    text = format(round_hours(milliseconds), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_readable_duration(milliseconds: int) -> str:
    """Format milliseconds as e.g. '1mins 19secs'; hours are omitted when zero."""
    total_seconds = max(0, milliseconds) // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}hrs")
    if minutes > 0 or hours > 0:
        parts.append(f"{minutes}mins")
    parts.append(f"{seconds}secs")
    return " ".join(parts)
