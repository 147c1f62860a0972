"""Core functionality for time tracking."""

from timecard.core.models import Contact, Entry, User
from timecard.core.timer import Timer

__all__ = ["Entry", "Contact", "User", "Timer"]
