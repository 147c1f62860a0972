"""JSON export functionality."""

import json
from datetime import datetime, timezone
from typing import Any

from timecard.core.models import Entry
from timecard.export_import.base import Exporter


class JSONExporter(Exporter):
    """Export entries to JSON format."""

    def get_file_extension(self) -> str:
        return ".json"

    def render(self, entries: list[Entry], **kwargs: Any) -> str:
        """Render entries as JSON.

        Args:
            entries: Entries to export
            **kwargs: Additional options
                - indent (int): JSON indentation level (default: 2)
                - include_metadata (bool): Include export metadata (default: True)
        """
        export_data: dict[str, Any] = {
            "entries": [entry.to_dict() for entry in entries],
        }

        if kwargs.get("include_metadata", True):
            export_data["metadata"] = {
                "export_date": datetime.now(timezone.utc).isoformat(),
                "entry_count": len(entries),
                "timezone": str(self.tz),
                "format_version": "1.0",
            }

        return json.dumps(export_data, indent=kwargs.get("indent", 2), ensure_ascii=False)
