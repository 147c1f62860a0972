"""Base classes for time sheet datastores."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from timecard.core.models import Contact

# Fields selected when reading time sheet records back
TIME_SHEET_FIELDS = [
    "Id",
    "Date__c",
    "Time_in__c",
    "Time_Out__c",
    "Duration_Hours__c",
    "User_Email__c",
    "Summary__c",
]

RECORD_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+$")


def is_record_id(value: str) -> bool:
    """Record ids are alphanumeric (15 or 18 characters on Salesforce)."""
    return bool(RECORD_ID_PATTERN.match(value))


class StoreError(Exception):
    """Datastore call failed."""

    pass


class StoreAuthError(StoreError):
    """Datastore credentials are missing or were rejected."""

    pass


@dataclass
class CreateResult:
    """Outcome of a record create call."""

    id: Optional[str]
    success: bool
    errors: list[Any] = field(default_factory=list)


class TimeSheetStore(ABC):
    """Persistence for time sheet records and the contact reference table.

    Records use the remote field names (Date__c, Time_in__c, ...); mapping to
    application entries happens in timecard.core.mapper.
    """

    name = "base"

    @abstractmethod
    def create_time_entry(self, record: dict[str, Any]) -> CreateResult:
        """Create one time sheet record."""
        pass

    @abstractmethod
    def query_time_entries(self, email: str, limit: int = 100) -> list[dict[str, Any]]:
        """Return the owner's records, newest date and time-in first."""
        pass

    @abstractmethod
    def delete_time_entry(self, record_id: str) -> None:
        """Delete a record.

        Raises:
            StoreError: If the record could not be deleted
        """
        pass

    @abstractmethod
    def find_contact(self, email: str) -> Optional[Contact]:
        """Look up the contact whose Email matches."""
        pass
