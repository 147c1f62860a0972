"""REST API for Timecard.

Usage:
    # Generate a token for a user
    timecard api token create --email ada@example.com --name "Ada Lovelace"

    # Start server
    timecard api serve

    # Access API docs
    http://localhost:8000/docs
"""

__all__ = ["create_app", "run_server"]

from timecard.api.server import create_app, run_server  # noqa: F401
