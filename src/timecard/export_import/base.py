"""Base class for exporters."""

from abc import ABC, abstractmethod
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Optional

from timecard.core.models import Entry


class Exporter(ABC):
    """Base class for all exporters."""

    def __init__(self, output_path: Path, tz: tzinfo):
        """Initialize exporter.

        Args:
            output_path: Path where exported data will be written
            tz: Timezone local dates and times are rendered in
        """
        self.output_path = Path(output_path)
        self.tz = tz

    @abstractmethod
    def render(self, entries: list[Entry], **kwargs: Any) -> str:
        """Render entries to the output format as text."""
        pass

    @abstractmethod
    def get_file_extension(self) -> str:
        """Get the file extension for this format (e.g., '.csv').

        Returns:
            File extension including the dot
        """
        pass

    def ensure_output_path(self) -> None:
        """Ensure the output path's parent directory exists."""
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def filter_entries(
        self,
        entries: list[Entry],
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Entry]:
        """Filter entries by start instant (both bounds inclusive, aware datetimes)."""
        filtered = entries

        if start_date:
            filtered = [e for e in filtered if e.start_datetime() >= start_date]

        if end_date:
            filtered = [e for e in filtered if e.start_datetime() <= end_date]

        return filtered

    def export_entries(
        self,
        entries: list[Entry],
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        **kwargs: Any,
    ) -> int:
        """Write entries to the output path.

        Returns:
            Number of entries written
        """
        self.ensure_output_path()
        filtered = self.filter_entries(entries, start_date, end_date)
        with open(self.output_path, "w", encoding="utf-8", newline="") as f:
            f.write(self.render(filtered, **kwargs))
        return len(filtered)
