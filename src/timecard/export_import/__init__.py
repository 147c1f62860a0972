"""Export functionality for Timecard history."""

from datetime import tzinfo
from pathlib import Path

from timecard.export_import.base import Exporter
from timecard.export_import.csv_format import CSVExporter
from timecard.export_import.json_format import JSONExporter

__all__ = ["Exporter", "CSVExporter", "JSONExporter", "get_exporter"]

EXPORTERS: dict[str, type[Exporter]] = {"csv": CSVExporter, "json": JSONExporter}


def get_exporter(fmt: str, output_path: Path, tz: tzinfo) -> Exporter:
    """Create the exporter registered for fmt ('csv' or 'json').

    Raises:
        ValueError: If the format is unknown
    """
    try:
        exporter_cls = EXPORTERS[fmt]
    except KeyError:
        raise ValueError(f"Unsupported export format: {fmt}")
    return exporter_cls(output_path, tz)
