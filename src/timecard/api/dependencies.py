"""Dependency injection for FastAPI endpoints.

These dependencies give endpoints the configuration, the shared datastore
and the timezone remote records are expressed in.
"""

from zoneinfo import ZoneInfo

from fastapi import Request  # type: ignore[import-untyped]

from timecard.core.config import ConfigManager
from timecard.core.mapper import get_timezone
from timecard.store import TimeSheetStore, create_store


def get_config(request: Request = None) -> ConfigManager:  # type: ignore[assignment,misc]
    """Get configuration manager instance.

    Returns:
        ConfigManager from app state, or a default instance when called
        outside a request
    """
    if request is not None and hasattr(request, "app"):
        if hasattr(request.app.state, "config"):
            config: ConfigManager = request.app.state.config
            return config
    return ConfigManager()


def get_store(request: Request = None) -> TimeSheetStore:  # type: ignore[assignment,misc]
    """Get the datastore.

    Note:
        The application keeps one store (and therefore one remote session)
        in its state; a new store is only built when called outside a request.
    """
    if request is not None and hasattr(request, "app"):
        store = getattr(request.app.state, "store", None)
        if store is not None:
            return store  # type: ignore[no-any-return]
    return create_store(get_config(request))


def get_tz(request: Request = None) -> ZoneInfo:  # type: ignore[assignment,misc]
    """Get the timezone configured in general.timezone."""
    config = get_config(request)
    return get_timezone(config.get("general.timezone", "America/New_York"))
