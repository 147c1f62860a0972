"""Tests for the Salesforce datastore with a mocked simple-salesforce connection."""

from typing import Optional
from unittest.mock import Mock, patch
from urllib.parse import urljoin

import pytest  # type: ignore[import-not-found]
import requests  # type: ignore[import-untyped]
from simple_salesforce.exceptions import (  # type: ignore[import-untyped]
    SalesforceAuthenticationFailed,
    SalesforceExpiredSession,
    SalesforceMalformedRequest,
)

from timecard.store import SalesforceStore, StoreAuthError, StoreError, is_record_id
from timecard.store.salesforce import login_domain, soql_quote

SOBJECT_URL = "https://acme.my.salesforce.com/services/data/v59.0/sobjects/Time_Sheet__c/"


def make_store(username: Optional[str] = "integration@acme.com") -> SalesforceStore:
    return SalesforceStore(
        username=username,
        password="secret",
        security_token="TOKEN",
        login_url="https://login.salesforce.com/",
    )


@pytest.fixture
def salesforce_cls():
    """Patch the simple-salesforce class; its return value is the connection."""
    with patch("timecard.store.salesforce.Salesforce") as cls:
        sf = cls.return_value
        sf.sf_instance = "acme.my.salesforce.com"
        sf.query.return_value = {"totalSize": 0, "done": True, "records": []}
        yield cls


@pytest.fixture
def sf(salesforce_cls: Mock) -> Mock:
    return salesforce_cls.return_value


class TestHelpers:
    def test_soql_quote_plain(self) -> None:
        assert soql_quote("ada@example.com") == "'ada@example.com'"

    def test_soql_quote_escapes_quotes_and_backslashes(self) -> None:
        assert soql_quote("o'hara\\x") == "'o\\'hara\\\\x'"

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://login.salesforce.com", "login"),
            ("https://test.salesforce.com/", "test"),
            ("https://acme.my.salesforce.com", "acme.my"),
        ],
    )
    def test_login_domain(self, url: str, expected: str) -> None:
        assert login_domain(url) == expected

    @pytest.mark.parametrize("value", ["a0L5e00000AbCdE", "a0L5e00000AbCdEFGH", "a0L1"])
    def test_record_ids(self, value: str) -> None:
        assert is_record_id(value)

    @pytest.mark.parametrize("value", ["", "..", "../Account/001ABC", "a0L1/", "a0L 1", "a0L1?x=1"])
    def test_not_record_ids(self, value: str) -> None:
        assert not is_record_id(value)


class TestLogin:
    """Test the lazy login."""

    def test_connect(self, salesforce_cls: Mock) -> None:
        store = make_store()

        store.connect()

        assert store.is_connected
        assert store.instance_url == "https://acme.my.salesforce.com"
        kwargs = salesforce_cls.call_args[1]
        assert kwargs["username"] == "integration@acme.com"
        assert kwargs["password"] == "secret"
        assert kwargs["security_token"] == "TOKEN"
        assert kwargs["domain"] == "login"
        assert kwargs["version"] == "59.0"

    def test_not_connected_before_first_call(self, salesforce_cls: Mock) -> None:
        store = make_store()

        assert not store.is_connected
        assert store.instance_url is None
        salesforce_cls.assert_not_called()

    def test_connect_once(self, salesforce_cls: Mock) -> None:
        store = make_store()

        store.connect()
        store.connect()

        assert salesforce_cls.call_count == 1

    def test_missing_credentials(self, salesforce_cls: Mock) -> None:
        store = make_store(username=None)

        with pytest.raises(StoreAuthError, match="missing"):
            store.connect()
        salesforce_cls.assert_not_called()

    def test_login_rejected(self, salesforce_cls: Mock) -> None:
        salesforce_cls.side_effect = SalesforceAuthenticationFailed(
            "INVALID_LOGIN", "Invalid username, password, security token; or user locked out."
        )
        store = make_store()

        with pytest.raises(StoreAuthError, match="INVALID_LOGIN"):
            store.connect()
        assert not store.is_connected

    def test_login_unreachable(self, salesforce_cls: Mock) -> None:
        salesforce_cls.side_effect = requests.ConnectionError("refused")
        store = make_store()

        with pytest.raises(StoreError, match="refused"):
            store.connect()

    def test_sandbox_login_url(self, salesforce_cls: Mock) -> None:
        store = SalesforceStore(
            username="integration@acme.com", password="secret", login_url="https://test.salesforce.com"
        )

        store.connect()

        assert salesforce_cls.call_args[1]["domain"] == "test"


class TestDataCalls:
    """Test calls made after login."""

    def test_query_time_entries(self, sf: Mock) -> None:
        sf.query.return_value = {
            "totalSize": 1,
            "records": [
                {
                    "attributes": {"type": "Time_Sheet__c"},
                    "Id": "a0L1",
                    "Date__c": "2026-02-08",
                }
            ],
        }
        store = make_store()

        records = store.query_time_entries("o'hara@example.com")

        assert records == [{"Id": "a0L1", "Date__c": "2026-02-08"}]
        soql = sf.query.call_args[0][0]
        assert "FROM Time_Sheet__c" in soql
        assert "User_Email__c = 'o\\'hara@example.com'" in soql
        assert "ORDER BY Date__c DESC, Time_in__c DESC" in soql
        assert soql.endswith("LIMIT 100")

    def test_create_time_entry(self, sf: Mock) -> None:
        sf.Time_Sheet__c.create.return_value = {"id": "a0L9", "success": True, "errors": []}
        store = make_store()

        result = store.create_time_entry({"Date__c": "2026-02-08"})

        assert result.success
        assert result.id == "a0L9"
        sf.Time_Sheet__c.create.assert_called_once_with({"Date__c": "2026-02-08"})

    def test_create_rejected(self, sf: Mock) -> None:
        sf.Time_Sheet__c.create.side_effect = SalesforceMalformedRequest(
            SOBJECT_URL,
            400,
            "Time_Sheet__c",
            [{"errorCode": "REQUIRED_FIELD_MISSING", "message": "Required fields are missing: [Date__c]"}],
        )
        store = make_store()

        with pytest.raises(StoreError, match="REQUIRED_FIELD_MISSING"):
            store.create_time_entry({})

    def test_delete(self, sf: Mock) -> None:
        store = make_store()

        store.delete_time_entry("a0L1")

        sf.Time_Sheet__c.delete.assert_called_once_with("a0L1")

    @pytest.mark.parametrize("record_id", ["../Account/001ABC", "..", "a0L1/../../Account/001"])
    def test_delete_rejects_path_segments(self, sf: Mock, record_id: str) -> None:
        store = make_store()

        with pytest.raises(StoreError, match="Invalid record id"):
            store.delete_time_entry(record_id)

        sf.Time_Sheet__c.delete.assert_not_called()
        # what the id would have resolved to against the object's URL
        assert not urljoin(SOBJECT_URL, record_id).startswith(SOBJECT_URL)

    def test_find_contact(self, sf: Mock) -> None:
        sf.query.return_value = {"records": [{"attributes": {}, "Id": "003A", "AccountId": "001B"}]}
        store = make_store()

        contact = store.find_contact("ada@example.com")

        assert contact is not None
        assert contact.id == "003A"
        assert contact.account_id == "001B"
        assert "FROM Contact WHERE Email = 'ada@example.com'" in sf.query.call_args[0][0]

    def test_find_contact_none(self, sf: Mock) -> None:
        assert make_store().find_contact("ada@example.com") is None

    def test_transport_error(self, sf: Mock) -> None:
        sf.query.side_effect = requests.Timeout("timed out")
        store = make_store()

        with pytest.raises(StoreError, match="timed out"):
            store.query_time_entries("ada@example.com")

    def test_session_is_reused(self, salesforce_cls: Mock, sf: Mock) -> None:
        store = make_store()

        store.query_time_entries("ada@example.com")
        store.find_contact("ada@example.com")

        assert salesforce_cls.call_count == 1
        assert sf.query.call_count == 2

    def test_expired_session_is_not_refreshed(self, salesforce_cls: Mock, sf: Mock) -> None:
        sf.query.side_effect = SalesforceExpiredSession(
            SOBJECT_URL,
            401,
            "query",
            [{"errorCode": "INVALID_SESSION_ID", "message": "Session expired or invalid"}],
        )
        store = make_store()

        with pytest.raises(StoreError, match="INVALID_SESSION_ID"):
            store.query_time_entries("ada@example.com")
        assert salesforce_cls.call_count == 1

    def test_describe(self, sf: Mock) -> None:
        sf.Time_Sheet__c.describe.return_value = {"name": "Time_Sheet__c", "fields": [{"name": "Id"}]}

        description = make_store().describe()

        assert description["name"] == "Time_Sheet__c"

    def test_recent_time_entries(self, sf: Mock) -> None:
        make_store().recent_time_entries(5)

        soql = sf.query.call_args[0][0]
        assert "ORDER BY CreatedDate DESC LIMIT 5" in soql
