"""Automation features for Timecard."""

from timecard.automation.idle_detector import IdleDetector, get_system_idle_seconds

__all__ = ["IdleDetector", "get_system_idle_seconds"]
