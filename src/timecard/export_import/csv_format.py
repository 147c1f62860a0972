"""CSV export of the history list."""

import csv
import io
from typing import Any

from timecard.core.formatting import format_decimal_hours
from timecard.core.models import Entry
from timecard.export_import.base import Exporter

CSV_HEADERS = ["ID", "Date", "Start Time", "End Time", "Duration (ms)", "Duration (hrs)"]


class CSVExporter(Exporter):
    """Export entries as timecard_history.csv rows."""

    def get_file_extension(self) -> str:
        return ".csv"

    def render(self, entries: list[Entry], **kwargs: Any) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for entry in entries:
            start = entry.start_datetime(self.tz)
            end = entry.end_datetime(self.tz)
            writer.writerow(
                [
                    entry.id,
                    f"{start.month}/{start.day}/{start.year}",
                    start.strftime("%H:%M:%S"),
                    end.strftime("%H:%M:%S"),
                    entry.duration,
                    format_decimal_hours(entry.duration),
                ]
            )
        return buffer.getvalue()
