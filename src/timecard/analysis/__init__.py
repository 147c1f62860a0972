"""History analysis for time card entries."""

from timecard.analysis.history import HistoryView, month_total, search_entries, sort_entries

__all__ = ["HistoryView", "month_total", "search_entries", "sort_entries"]
