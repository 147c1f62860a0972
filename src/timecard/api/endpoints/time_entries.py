"""Time entry endpoints.

Entries are stored as Time_Sheet__c records; these handlers authenticate the
caller, validate input and translate between the two shapes.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, status  # type: ignore[import-untyped]
from fastapi.responses import Response  # type: ignore[import-untyped]

from timecard.analysis.history import entries_in_month, filter_and_sort
from timecard.api.auth import get_current_user
from timecard.api.dependencies import get_store, get_tz
from timecard.api.models import (
    CreateEntryRequest,
    DeleteEntryResponse,
    EntryResponse,
    MonthSummaryResponse,
    SaveEntryResponse,
)
from timecard.core.formatting import format_decimal_hours
from timecard.core.mapper import entry_to_record, records_to_entries
from timecard.core.models import Contact, Entry, User
from timecard.export_import.csv_format import CSVExporter
from timecard.store import StoreError, TimeSheetStore, is_record_id

logger = logging.getLogger(__name__)

router = APIRouter()

EXPORT_FILENAME = "timecard_history.csv"


def _load_entries(store: TimeSheetStore, user: User, tz: ZoneInfo) -> list[Entry]:
    """Fetch the caller's records and map them to entries.

    Raises:
        HTTPException: 500 if the store call fails
    """
    try:
        records = store.query_time_entries(user.email)
    except StoreError:
        logger.exception("Fetching time entries failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch",
        )
    return records_to_entries(records, tz)


@router.get("", response_model=list[EntryResponse])
def list_time_entries(
    user: User = Depends(get_current_user),
    store: TimeSheetStore = Depends(get_store),
    tz: ZoneInfo = Depends(get_tz),
) -> list[EntryResponse]:
    """List the caller's time entries, newest first.

    Example:
        >>> GET /api/v1/time-entries
        [
            {
                "id": "a0L5e00000AbCdE",
                "startTime": 1770581101000,
                "endTime": 1770584701000,
                "duration": 3600000,
                "summary": "Inventory",
                "date": "2026-02-08T20:05:01.000Z",
                "userEmail": "ada@example.com"
            }
        ]
    """
    entries = _load_entries(store, user, tz)
    return [EntryResponse.from_entry(e) for e in entries]


@router.post("", response_model=SaveEntryResponse, status_code=status.HTTP_201_CREATED)
def create_time_entry(
    request: CreateEntryRequest,
    user: User = Depends(get_current_user),
    store: TimeSheetStore = Depends(get_store),
    tz: ZoneInfo = Depends(get_tz),
) -> SaveEntryResponse:
    """Save a time entry for the caller.

    The caller's Contact (and its Account) are linked when one exists for
    their email; a failed lookup only drops the links.

    Raises:
        HTTPException: 500 if the record could not be created

    Example:
        >>> POST /api/v1/time-entries
        {"startTime": 1770581101000, "endTime": 1770584701000, "duration": 3600000}
    """
    contact: Optional[Contact] = None
    try:
        contact = store.find_contact(user.email)
    except StoreError as e:
        logger.warning(f"Contact lookup for {user.email} failed, saving without links: {e}")

    record = entry_to_record(request.to_entry(user.email), user, tz, contact)

    try:
        result = store.create_time_entry(record)
    except StoreError as e:
        logger.exception("Saving time entry failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save: {e}",
        )

    if not result.success:
        logger.error(f"Create rejected: {result.errors}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save: create failed: {result.errors}",
        )

    return SaveEntryResponse(success=True, id=result.id)


@router.delete("", response_model=DeleteEntryResponse)
def delete_time_entry(
    id: Optional[str] = Query(None, description="Record id to delete"),
    user: User = Depends(get_current_user),
    store: TimeSheetStore = Depends(get_store),
) -> DeleteEntryResponse:
    """Delete a time entry.

    Raises:
        HTTPException: 400 without a well-formed id, 500 if the delete fails

    Example:
        >>> DELETE /api/v1/time-entries?id=a0L5e00000AbCdE
    """
    if not id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="ID required")
    if not is_record_id(id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid ID")

    try:
        store.delete_time_entry(id)
    except StoreError:
        logger.exception(f"Deleting time entry {id} failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete",
        )

    logger.info(f"{user.email} deleted time entry {id}")
    return DeleteEntryResponse(success=True)


@router.get("/summary", response_model=MonthSummaryResponse)
def month_summary(
    user: User = Depends(get_current_user),
    store: TimeSheetStore = Depends(get_store),
    tz: ZoneInfo = Depends(get_tz),
) -> MonthSummaryResponse:
    """Total time logged by the caller in the current local month."""
    now = datetime.now(timezone.utc)
    this_month = entries_in_month(_load_entries(store, user, tz), now, tz)
    total = sum(e.duration for e in this_month)
    return MonthSummaryResponse(
        month=now.astimezone(tz).strftime("%Y-%m"),
        month_total_ms=total,
        month_total_hours=format_decimal_hours(total),
        entry_count=len(this_month),
    )


@router.get("/export")
def export_time_entries(
    search: Optional[str] = Query(None, description="Date (M/D/YYYY or YYYY-MM-DD), id or summary text"),
    sort: str = Query("recent", pattern="^(recent|duration)$"),
    user: User = Depends(get_current_user),
    store: TimeSheetStore = Depends(get_store),
    tz: ZoneInfo = Depends(get_tz),
) -> Response:
    """Download the filtered history as CSV."""
    entries = filter_and_sort(_load_entries(store, user, tz), search, sort, tz)
    content = CSVExporter(Path(EXPORT_FILENAME), tz).render(entries)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )
