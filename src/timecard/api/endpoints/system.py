"""Health and status endpoints."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends  # type: ignore[import-untyped]

from timecard import __version__
from timecard.api.dependencies import get_config, get_store
from timecard.api.models import HealthResponse, StatusResponse
from timecard.core.config import ConfigManager
from timecard.store import TimeSheetStore

router = APIRouter()

_started_at = time.time()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe. Public, never touches the datastore."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
    )


@router.get("/status", response_model=StatusResponse)
async def status(
    config: ConfigManager = Depends(get_config),
    store: TimeSheetStore = Depends(get_store),
) -> StatusResponse:
    """Report the server settings that matter when debugging a deployment.

    ``store_connected`` is false for Salesforce until the first request has
    logged in; no login is attempted here.
    """
    return StatusResponse(
        authentication_enabled=config.get("api.authentication.enabled", True),
        cors_enabled=config.get("api.cors.enabled", True),
        store_backend=store.name,
        store_connected=getattr(store, "is_connected", True),
        timezone=config.get("general.timezone", "America/New_York"),
        uptime_seconds=time.time() - _started_at,
    )
