"""CSV-backed datastore for development and offline use.

Records are kept in the same shape the Salesforce object uses, so the mapper
is exercised identically against either backend.
"""

import csv
import logging
import os
import sys
import threading
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

from timecard.core.models import Contact
from timecard.store.base import CreateResult, StoreError, TimeSheetStore

logger = logging.getLogger(__name__)

TIME_SHEET_COLUMNS = [
    "Id",
    "Name",
    "Date__c",
    "Time_in__c",
    "Time_Out__c",
    "Duration_Hours__c",
    "User_Email__c",
    "Summary__c",
    "Contact__c",
    "Account__c",
    "Day_of_the_week__c",
]

CONTACT_COLUMNS = ["Id", "Email", "AccountId"]


def _lock_file(file_obj: Any, exclusive: bool = True) -> None:
    """Lock a file in a cross-platform way."""
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        mode = msvcrt.LK_NBLCK if exclusive else msvcrt.LK_NBRLCK
        msvcrt.locking(file_obj.fileno(), mode, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(file_obj.fileno(), mode)


def _unlock_file(file_obj: Any) -> None:
    """Unlock a file in a cross-platform way."""
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)


def _new_record_id() -> str:
    # 18 characters, like a Salesforce id
    return "a0L" + uuid4().hex[:15].upper()


class LocalStore(TimeSheetStore):
    """Time sheet store kept in CSV files with atomic writes."""

    name = "local"

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize local store.

        Args:
            data_dir: Directory holding the CSV files. Defaults to ~/.timecard/data
        """
        if data_dir is None:
            data_dir = Path.home() / ".timecard" / "data"

        self.data_dir = Path(data_dir)
        self.time_sheets_file = self.data_dir / "time_sheets.csv"
        self.contacts_file = self.data_dir / "contacts.csv"
        self._lock = threading.Lock()

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._initialize_files()

    def _initialize_files(self) -> None:
        """Create CSV files with headers if they don't exist."""
        if not self.time_sheets_file.exists():
            self._write_csv_atomic(self.time_sheets_file, TIME_SHEET_COLUMNS, [])
        if not self.contacts_file.exists():
            self._write_csv_atomic(self.contacts_file, CONTACT_COLUMNS, [])

    def _write_csv_atomic(
        self, file_path: Path, fieldnames: list[str], rows: list[dict[str, Any]]
    ) -> None:
        """Write CSV file atomically using temporary file and rename."""
        temp_file = file_path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", newline="", encoding="utf-8") as f:
                _lock_file(f, exclusive=True)

                writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
                writer.writeheader()
                writer.writerows(rows)

                f.flush()
                os.fsync(f.fileno())

                _unlock_file(f)

            temp_file.replace(file_path)

        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise StoreError(f"Failed to write {file_path.name}: {e}") from e

    def _read_csv(self, file_path: Path) -> list[dict[str, Any]]:
        """Read CSV file with a shared lock."""
        if not file_path.exists():
            return []

        with open(file_path, encoding="utf-8") as f:
            _lock_file(f, exclusive=False)
            try:
                rows = list(csv.DictReader(f))
            finally:
                _unlock_file(f)

        return rows

    @staticmethod
    def _from_row(row: dict[str, Any]) -> dict[str, Any]:
        """Restore types lost in CSV (empty strings become None, hours become float)."""
        record: dict[str, Any] = {key: (value if value != "" else None) for key, value in row.items()}
        if record.get("Duration_Hours__c") is not None:
            record["Duration_Hours__c"] = float(record["Duration_Hours__c"])
        return record

    def create_time_entry(self, record: dict[str, Any]) -> CreateResult:
        missing = [f for f in ("Date__c", "User_Email__c") if not record.get(f)]
        if missing:
            return CreateResult(
                id=None,
                success=False,
                errors=[{"message": f"Required fields are missing: {missing}"}],
            )

        with self._lock:
            rows = self._read_csv(self.time_sheets_file)
            record_id = _new_record_id()
            rows.append({**record, "Id": record_id})
            self._write_csv_atomic(self.time_sheets_file, TIME_SHEET_COLUMNS, rows)

        logger.debug(f"Created local time sheet {record_id}")
        return CreateResult(id=record_id, success=True)

    def query_time_entries(self, email: str, limit: int = 100) -> list[dict[str, Any]]:
        rows = [r for r in self._read_csv(self.time_sheets_file) if r["User_Email__c"] == email]
        # Date__c and Time_in__c are fixed-width, so string order is chronological
        rows.sort(key=lambda r: (r["Date__c"], r["Time_in__c"]), reverse=True)
        return [self._from_row(r) for r in rows[:limit]]

    def delete_time_entry(self, record_id: str) -> None:
        with self._lock:
            rows = self._read_csv(self.time_sheets_file)
            remaining = [r for r in rows if r["Id"] != record_id]
            if len(remaining) == len(rows):
                raise StoreError(f"Time sheet not found: {record_id}")
            self._write_csv_atomic(self.time_sheets_file, TIME_SHEET_COLUMNS, remaining)

    def find_contact(self, email: str) -> Optional[Contact]:
        for row in self._read_csv(self.contacts_file):
            if row["Email"].lower() == email.lower():
                return Contact(id=row["Id"], account_id=row["AccountId"] or None)
        return None

    def add_contact(self, email: str, account_id: Optional[str] = None) -> Contact:
        """Add a row to the contact reference table."""
        contact = Contact(id="003" + uuid4().hex[:15].upper(), account_id=account_id)
        with self._lock:
            rows = self._read_csv(self.contacts_file)
            rows.append({"Id": contact.id, "Email": email, "AccountId": account_id or ""})
            self._write_csv_atomic(self.contacts_file, CONTACT_COLUMNS, rows)
        return contact
