"""API endpoints.

Available routers:
- system: Health checks and system status
- time_entries: Time card entries backed by the datastore
"""

__all__ = ["system", "time_entries"]

from timecard.api.endpoints import system, time_entries  # noqa: F401
