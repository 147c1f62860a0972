"""HTTP client for the Timecard REST API.

The terminal UI talks to the datastore only through the API, the same way the
web front-end does, so both share authentication and the record mapping.
"""

import logging
from typing import Any, Optional

import requests  # type: ignore[import-untyped]
from jose import JWTError, jwt  # type: ignore[import-untyped]

from timecard.core.config import ConfigManager
from timecard.core.models import Entry, User

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class ClientError(Exception):
    """Non-2xx answer from the API, or a transport failure (status 0)."""

    def __init__(self, status: int, detail: str):
        self.status = status
        self.detail = detail
        super().__init__(f"{status}: {detail}" if status else detail)


class TimecardClient:
    """Thin wrapper over the /api/v1/time-entries endpoints."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """Initialize client.

        Args:
            base_url: Server root, e.g. http://localhost:8000
            token: JWT bearer token (omit when the server has auth disabled)
            timeout: Request timeout in seconds
            session: HTTP session to use (a new one if None)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: ConfigManager) -> "TimecardClient":
        return cls(
            base_url=config.get("client.base_url", "http://localhost:8000"),
            token=config.get("client.token"),
        )

    def current_user(self) -> Optional[User]:
        """User named by the token's claims, read without verifying it."""
        if not self.token:
            return None
        try:
            claims = jwt.get_unverified_claims(self.token)
        except JWTError:
            return None
        email = claims.get("sub")
        if not email:
            return None
        return User(email=str(email), name=claims.get("name"))

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        url = f"{self.base_url}{API_PREFIX}{path}"
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise ClientError(0, f"Could not reach {self.base_url}: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            logger.debug(f"{method} {url} -> {response.status_code}: {detail}")
            raise ClientError(response.status_code, str(detail))
        return response

    def list_entries(self) -> list[Entry]:
        """Fetch the caller's entries, newest first."""
        response = self._request("GET", "/time-entries")
        return [Entry.from_dict(item) for item in response.json()]

    def save_entry(self, entry: Entry) -> str:
        """Save an entry.

        Returns:
            Id of the created record
        """
        body: dict[str, Any] = {
            "startTime": entry.start_time,
            "endTime": entry.end_time,
            "duration": entry.duration,
        }
        if entry.summary:
            body["summary"] = entry.summary
        response = self._request("POST", "/time-entries", json=body)
        return str(response.json().get("id") or "")

    def delete_entry(self, entry_id: str) -> None:
        self._request("DELETE", "/time-entries", params={"id": entry_id})

    def month_summary(self) -> dict[str, Any]:
        """This month's total: month, monthTotalMs, monthTotalHours, entryCount."""
        result: dict[str, Any] = self._request("GET", "/time-entries/summary").json()
        return result
