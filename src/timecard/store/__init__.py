"""Datastores for time sheet records."""

from pathlib import Path

from timecard.core.config import ConfigManager
from timecard.store.base import (
    CreateResult,
    StoreAuthError,
    StoreError,
    TimeSheetStore,
    is_record_id,
)
from timecard.store.local import LocalStore
from timecard.store.salesforce import SalesforceStore

__all__ = [
    "CreateResult",
    "LocalStore",
    "SalesforceStore",
    "StoreAuthError",
    "StoreError",
    "TimeSheetStore",
    "create_store",
    "is_record_id",
]


def create_store(config: ConfigManager) -> TimeSheetStore:
    """Create the datastore selected by ``store.backend``."""
    if config.get("store.backend", "salesforce") == "local":
        data_dir = Path(config.get("general.data_dir", "~/.timecard/data")).expanduser()
        return LocalStore(data_dir)
    return SalesforceStore.from_config(config)
