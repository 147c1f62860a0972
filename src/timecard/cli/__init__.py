"""Command-line interface for Timecard."""
