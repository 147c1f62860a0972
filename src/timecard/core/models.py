"""Core data models for time tracking."""

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Optional
from uuid import uuid4

MS_PER_HOUR = 3_600_000


def ms_to_datetime(epoch_ms: int, tz: Optional[tzinfo] = None) -> datetime:
    """Convert epoch milliseconds to an aware datetime (UTC unless tz given)."""
    dt = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return dt.astimezone(tz) if tz is not None else dt


def datetime_to_ms(dt: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    return int(round(dt.timestamp() * 1000))


def iso_instant(epoch_ms: int) -> str:
    """Format epoch milliseconds as an ISO-8601 UTC instant, e.g. 2026-02-08T20:05:01.000Z."""
    dt = ms_to_datetime(epoch_ms)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


@dataclass
class Entry:
    """Time card entry in the application shape.

    Attributes:
        start_time: Start instant in epoch milliseconds
        end_time: End instant in epoch milliseconds
        duration: Worked time in milliseconds
        id: Remote record id, or a client-generated uuid before saving
        summary: Free-text work summary
        date: ISO-8601 UTC instant of the start
        user_email: Owner of the entry
    """

    start_time: int
    end_time: int
    duration: int
    id: str = field(default_factory=lambda: str(uuid4()))
    summary: str = ""
    date: str = ""
    user_email: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.date:
            self.date = iso_instant(self.start_time)

    @property
    def duration_hours(self) -> float:
        """Duration in decimal hours (unrounded)."""
        return self.duration / MS_PER_HOUR

    def start_datetime(self, tz: Optional[tzinfo] = None) -> datetime:
        return ms_to_datetime(self.start_time, tz)

    def end_datetime(self, tz: Optional[tzinfo] = None) -> datetime:
        return ms_to_datetime(self.end_time, tz)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase JSON shape used on the wire."""
        return {
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "summary": self.summary,
            "date": self.date,
            "userEmail": self.user_email,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entry":
        """Create Entry from the camelCase JSON shape."""
        return cls(
            id=str(data["id"]) if data.get("id") else str(uuid4()),
            start_time=int(data["startTime"]),
            end_time=int(data["endTime"]),
            duration=int(data["duration"]),
            summary=data.get("summary") or "",
            date=data.get("date") or "",
            user_email=data.get("userEmail"),
        )


@dataclass
class Contact:
    """Row of the CRM reference table, looked up by email.

    Attributes:
        id: Contact record id
        account_id: Owning account (department), if any
    """

    id: str
    account_id: Optional[str] = None


@dataclass
class User:
    """Authenticated caller."""

    email: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email

    @property
    def first_name(self) -> str:
        if self.name and self.name.split():
            return self.name.split()[0]
        return "User"
