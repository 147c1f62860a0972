"""Salesforce datastore built on simple-salesforce."""

import logging
import threading
from typing import Any, Callable, Optional, TypeVar
from urllib.parse import urlparse

import requests  # type: ignore[import-untyped]
from simple_salesforce import Salesforce  # type: ignore[import-untyped]
from simple_salesforce.exceptions import (  # type: ignore[import-untyped]
    SalesforceAuthenticationFailed,
    SalesforceError,
)

from timecard.core.config import ConfigManager
from timecard.core.models import Contact
from timecard.store.base import (
    TIME_SHEET_FIELDS,
    CreateResult,
    StoreAuthError,
    StoreError,
    TimeSheetStore,
    is_record_id,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def soql_quote(value: str) -> str:
    """Quote a string literal for a SOQL WHERE clause."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def login_domain(login_url: str) -> str:
    """Turn a login URL into the domain argument simple-salesforce expects.

    Example:
        >>> login_domain("https://test.salesforce.com")
        'test'
        >>> login_domain("https://acme.my.salesforce.com")
        'acme.my'
    """
    host = urlparse(login_url).netloc or login_url.strip("/")
    suffix = ".salesforce.com"
    return host[: -len(suffix)] if host.endswith(suffix) else host


def _error_message(error: SalesforceError) -> str:
    """Readable message from a failed REST call's error payload."""
    content = error.content
    if isinstance(content, list) and content:
        return "; ".join(
            f"{item.get('errorCode', 'ERROR')}: {item.get('message', '')}"
            for item in content
            if isinstance(item, dict)
        )
    return str(content)


class SalesforceStore(TimeSheetStore):
    """Time sheet store backed by a Salesforce org.

    One session is opened lazily on first use and shared by every later call
    on this instance. Sessions are not refreshed; an expired session surfaces
    as a StoreError.
    """

    name = "salesforce"

    def __init__(
        self,
        username: Optional[str],
        password: Optional[str],
        security_token: Optional[str] = None,
        login_url: str = "https://login.salesforce.com",
        api_version: str = "59.0",
        object_name: str = "Time_Sheet__c",
        query_limit: int = 100,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the store without connecting.

        Args:
            username: Integration user name
            password: Password
            security_token: Security token, if the org requires one
            login_url: Login host, e.g. https://test.salesforce.com for sandboxes
            api_version: REST API version
            object_name: Custom object holding time sheet records
            query_limit: Default maximum records returned by a query
            session: HTTP session handed to simple-salesforce
        """
        self.username = username
        self.password = password
        self.security_token = security_token or ""
        self.login_url = login_url.rstrip("/")
        self.api_version = api_version
        self.object_name = object_name
        self.query_limit = query_limit
        self.http = session

        self.sf: Optional[Salesforce] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: ConfigManager) -> "SalesforceStore":
        """Create a store from the salesforce config section (env overrides applied)."""
        settings = config.salesforce_settings()
        return cls(
            username=settings.get("username"),
            password=settings.get("password"),
            security_token=settings.get("security_token"),
            login_url=settings.get("login_url") or "https://login.salesforce.com",
            api_version=settings.get("api_version") or "59.0",
            object_name=settings.get("object_name") or "Time_Sheet__c",
            query_limit=settings.get("query_limit") or 100,
        )

    @property
    def is_connected(self) -> bool:
        return self.sf is not None

    @property
    def instance_url(self) -> Optional[str]:
        if self.sf is None:
            return None
        return f"https://{self.sf.sf_instance}"

    def connect(self) -> Salesforce:
        """Log in if no session is open yet.

        Returns:
            The shared simple-salesforce connection

        Raises:
            StoreAuthError: If credentials are missing or rejected
            StoreError: If the login endpoint cannot be reached
        """
        with self._lock:
            if self.sf is not None:
                return self.sf

            if not self.username or not self.password:
                logger.warning("Salesforce credentials missing")
                raise StoreAuthError("Salesforce credentials missing")

            try:
                self.sf = Salesforce(
                    username=self.username,
                    password=self.password,
                    security_token=self.security_token,
                    domain=login_domain(self.login_url),
                    version=self.api_version,
                    session=self.http,
                )
            except SalesforceAuthenticationFailed as e:
                logger.error(f"Salesforce login failed: {e}")
                raise StoreAuthError(f"Salesforce login failed: {e}") from e
            except requests.RequestException as e:
                logger.error(f"Salesforce login request failed: {e}")
                raise StoreError(f"Salesforce login request failed: {e}") from e

            logger.info(f"Connected to Salesforce at {self.instance_url}")
            return self.sf

    def _call(self, action: str, func: Callable[[Salesforce], T]) -> T:
        """Run func against the connection, translating library errors.

        Raises:
            StoreError: On transport failure or an error answer
        """
        sf = self.connect()
        try:
            return func(sf)
        except SalesforceError as e:
            raise StoreError(f"Salesforce {action} failed: {_error_message(e)}") from e
        except requests.RequestException as e:
            raise StoreError(f"Salesforce request failed: {e}") from e

    def query(self, soql: str) -> list[dict[str, Any]]:
        """Run a SOQL query and return its records without the attributes key."""
        payload = self._call("query", lambda sf: sf.query(soql))
        return [
            {key: value for key, value in record.items() if key != "attributes"}
            for record in payload.get("records", [])
        ]

    def describe(self) -> dict[str, Any]:
        """Describe the time sheet object (used to check access)."""
        description: dict[str, Any] = self._call(
            "describe", lambda sf: getattr(sf, self.object_name).describe()
        )
        return description

    def create_time_entry(self, record: dict[str, Any]) -> CreateResult:
        payload = self._call("create", lambda sf: getattr(sf, self.object_name).create(record))
        return CreateResult(
            id=payload.get("id"),
            success=bool(payload.get("success")),
            errors=payload.get("errors") or [],
        )

    def query_time_entries(self, email: str, limit: Optional[int] = None) -> list[dict[str, Any]]:
        soql = (
            f"SELECT {', '.join(TIME_SHEET_FIELDS)} "
            f"FROM {self.object_name} "
            f"WHERE User_Email__c = {soql_quote(email)} "
            f"ORDER BY Date__c DESC, Time_in__c DESC LIMIT {int(limit or self.query_limit)}"
        )
        return self.query(soql)

    def recent_time_entries(self, limit: int = 10) -> list[dict[str, Any]]:
        """Latest records for every user, newest created first."""
        soql = (
            f"SELECT {', '.join(TIME_SHEET_FIELDS)}, CreatedDate "
            f"FROM {self.object_name} ORDER BY CreatedDate DESC LIMIT {int(limit)}"
        )
        return self.query(soql)

    def delete_time_entry(self, record_id: str) -> None:
        # the id ends up as a URL path segment
        if not is_record_id(record_id):
            raise StoreError(f"Invalid record id: {record_id!r}")
        self._call("delete", lambda sf: getattr(sf, self.object_name).delete(record_id))

    def find_contact(self, email: str) -> Optional[Contact]:
        records = self.query(f"SELECT Id, AccountId FROM Contact WHERE Email = {soql_quote(email)} LIMIT 1")
        if not records:
            return None
        return Contact(id=records[0]["Id"], account_id=records[0].get("AccountId"))
