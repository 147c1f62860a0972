"""Pydantic models for API requests and responses.

Field names are snake_case in Python and camelCase on the wire, matching the
JSON shape the front-end has always used.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator  # type: ignore[import-untyped]

from timecard.core.models import Entry

# 9999-12-30T23:59:59.999Z, one day inside datetime.max so every zone can show it
MAX_EPOCH_MS = 253_402_214_399_999

# ============================================================================
# Response Models
# ============================================================================


class EntryResponse(BaseModel):
    """Response model for a time card entry."""

    id: str
    start_time: int = Field(..., alias="startTime", description="Start, epoch milliseconds")
    end_time: int = Field(..., alias="endTime", description="End, epoch milliseconds")
    duration: int = Field(..., description="Duration in milliseconds")
    summary: str = ""
    date: str = Field(..., description="ISO-8601 UTC instant of the start")
    user_email: Optional[str] = Field(None, alias="userEmail")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntryResponse":
        """Create response from an Entry."""
        return cls(
            id=entry.id,
            start_time=entry.start_time,
            end_time=entry.end_time,
            duration=entry.duration,
            summary=entry.summary,
            date=entry.date,
            user_email=entry.user_email,
        )


class SaveEntryResponse(BaseModel):
    """Response model for a created entry."""

    success: bool = True
    id: Optional[str] = None


class DeleteEntryResponse(BaseModel):
    """Response model for a deleted entry."""

    success: bool = True


class MonthSummaryResponse(BaseModel):
    """Total time logged in the current month."""

    month: str = Field(..., description="YYYY-MM in the configured timezone")
    month_total_ms: int = Field(..., alias="monthTotalMs")
    month_total_hours: str = Field(..., alias="monthTotalHours")
    entry_count: int = Field(..., alias="entryCount")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


# ============================================================================
# Request Models
# ============================================================================


class CreateEntryRequest(BaseModel):
    """Request model for saving a time card entry."""

    start_time: int = Field(..., alias="startTime", ge=0, le=MAX_EPOCH_MS)
    end_time: int = Field(..., alias="endTime", ge=0, le=MAX_EPOCH_MS)
    duration: int = Field(..., ge=0, le=MAX_EPOCH_MS, description="Milliseconds")
    summary: Optional[str] = Field(None, max_length=5000)

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    @model_validator(mode="after")
    def check_range(self) -> "CreateEntryRequest":
        if self.end_time < self.start_time:
            raise ValueError("endTime must not be before startTime")
        return self

    def to_entry(self, email: str) -> Entry:
        return Entry(
            start_time=self.start_time,
            end_time=self.end_time,
            duration=self.duration,
            summary=self.summary or "",
            user_email=email,
        )


# ============================================================================
# System Models
# ============================================================================


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status (healthy, degraded, unhealthy)")
    timestamp: datetime = Field(..., description="Current server time")
    version: str = Field(..., description="API version")


class StatusResponse(BaseModel):
    """Response model for system status."""

    authentication_enabled: bool
    cors_enabled: bool
    store_backend: str
    store_connected: bool
    timezone: str
    uptime_seconds: float
