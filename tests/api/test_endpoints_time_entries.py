"""Tests for time entry endpoints."""

import csv
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest  # type: ignore[import-not-found]
from fastapi.testclient import TestClient  # type: ignore[import-untyped]

from timecard.api import create_app
from timecard.api.auth import create_token_for_user
from timecard.api.models import MAX_EPOCH_MS
from timecard.core.config import ConfigManager
from timecard.core.models import datetime_to_ms
from timecard.store import LocalStore, StoreError

HOUR = 3_600_000


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path):
    """Create a test configuration."""
    return ConfigManager(temp_dir / "config.yml")


@pytest.fixture
def store(temp_dir: Path):
    return LocalStore(temp_dir / "data")


@pytest.fixture
def client(test_config: ConfigManager, store: LocalStore):
    """Create a test client."""
    return TestClient(create_app(test_config, store))


@pytest.fixture
def auth_headers(test_config: ConfigManager):
    """Get authentication headers for Ada."""
    token_data = create_token_for_user(test_config, "ada@example.com", name="Ada Lovelace")
    return {"Authorization": f"Bearer {token_data['access_token']}"}


@pytest.fixture
def grace_headers(test_config: ConfigManager):
    token_data = create_token_for_user(test_config, "grace@example.com", name="Grace Hopper")
    return {"Authorization": f"Bearer {token_data['access_token']}"}


def eastern_ms(*args: int) -> int:
    return datetime_to_ms(datetime(*args, tzinfo=ZoneInfo("America/New_York")))


def entry_body(start: int, minutes: int, summary: str = "") -> dict:
    body = {"startTime": start, "endTime": start + minutes * 60_000, "duration": minutes * 60_000}
    if summary:
        body["summary"] = summary
    return body


class TestCreateTimeEntry:
    """Test POST /api/v1/time-entries."""

    def test_create(self, client: TestClient, auth_headers: dict, store: LocalStore) -> None:
        start = eastern_ms(2026, 2, 8, 15, 5, 1)

        response = client.post(
            "/api/v1/time-entries", json=entry_body(start, 60, "Inventory"), headers=auth_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["id"]

        records = store.query_time_entries("ada@example.com")
        assert len(records) == 1
        record = records[0]
        assert record["Id"] == data["id"]
        assert record["Name"] == "Ada Lovelace - 2/8/2026, 3:05:01 PM EST"
        assert record["Date__c"] == "2026-02-08"
        assert record["Time_in__c"] == "15:05:01.000Z"
        assert record["Time_Out__c"] == "16:05:01.000Z"
        assert record["Duration_Hours__c"] == 1.0
        assert record["Summary__c"] == "Inventory"
        assert record["Contact__c"] is None

    def test_create_links_contact(
        self, client: TestClient, auth_headers: dict, store: LocalStore
    ) -> None:
        contact = store.add_contact("ada@example.com", account_id="001DEPT")

        response = client.post(
            "/api/v1/time-entries", json=entry_body(eastern_ms(2026, 2, 8, 9, 0), 30), headers=auth_headers
        )

        assert response.status_code == 201
        record = store.query_time_entries("ada@example.com")[0]
        assert record["Contact__c"] == contact.id
        assert record["Account__c"] == "001DEPT"

    def test_contact_lookup_failure_still_saves(
        self, client: TestClient, auth_headers: dict, store: LocalStore
    ) -> None:
        with patch.object(store, "find_contact", side_effect=StoreError("boom")):
            response = client.post(
                "/api/v1/time-entries", json=entry_body(eastern_ms(2026, 2, 8, 9, 0), 30), headers=auth_headers
            )

        assert response.status_code == 201
        assert store.query_time_entries("ada@example.com")[0]["Contact__c"] is None

    @pytest.mark.parametrize("missing", ["startTime", "endTime", "duration"])
    def test_missing_field(self, client: TestClient, auth_headers: dict, missing: str) -> None:
        body = entry_body(eastern_ms(2026, 2, 8, 9, 0), 30)
        del body[missing]

        response = client.post("/api/v1/time-entries", json=body, headers=auth_headers)

        assert response.status_code == 422

    def test_end_before_start(self, client: TestClient, auth_headers: dict) -> None:
        body = {"startTime": 5000, "endTime": 1000, "duration": 0}

        response = client.post("/api/v1/time-entries", json=body, headers=auth_headers)

        assert response.status_code == 422

    @pytest.mark.parametrize(
        "body",
        [
            {"startTime": 10**16, "endTime": 10**16, "duration": 0},
            {"startTime": 0, "endTime": 10**16, "duration": 10**16},
            {"startTime": 0, "endTime": 1000, "duration": 10**16},
        ],
    )
    def test_timestamps_out_of_range(self, client: TestClient, auth_headers: dict, body: dict) -> None:
        response = client.post("/api/v1/time-entries", json=body, headers=auth_headers)

        assert response.status_code == 422

    def test_latest_accepted_timestamp(self, client: TestClient, auth_headers: dict) -> None:
        body = {"startTime": MAX_EPOCH_MS - 60_000, "endTime": MAX_EPOCH_MS, "duration": 60_000}

        response = client.post("/api/v1/time-entries", json=body, headers=auth_headers)

        assert response.status_code == 201

    def test_store_failure(self, client: TestClient, auth_headers: dict, store: LocalStore) -> None:
        with patch.object(store, "create_time_entry", side_effect=StoreError("REQUIRED_FIELD_MISSING")):
            response = client.post(
                "/api/v1/time-entries", json=entry_body(eastern_ms(2026, 2, 8, 9, 0), 30), headers=auth_headers
            )

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail.startswith("Failed to save")
        assert "REQUIRED_FIELD_MISSING" in detail

    def test_requires_auth(self, client: TestClient) -> None:
        response = client.post("/api/v1/time-entries", json=entry_body(0, 30))
        assert response.status_code == 401


class TestListTimeEntries:
    """Test GET /api/v1/time-entries."""

    def test_empty(self, client: TestClient, auth_headers: dict) -> None:
        response = client.get("/api/v1/time-entries", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == []

    def test_round_trip(self, client: TestClient, auth_headers: dict) -> None:
        start = eastern_ms(2026, 7, 4, 22, 30)
        client.post("/api/v1/time-entries", json=entry_body(start, 150, "Late shift"), headers=auth_headers)

        entries = client.get("/api/v1/time-entries", headers=auth_headers).json()

        assert len(entries) == 1
        entry = entries[0]
        assert entry["startTime"] == start
        assert entry["endTime"] == start + 150 * 60_000
        assert entry["duration"] == 150 * 60_000
        assert entry["summary"] == "Late shift"
        assert entry["userEmail"] == "ada@example.com"
        assert entry["date"].endswith("Z")

    def test_only_callers_entries(
        self, client: TestClient, auth_headers: dict, grace_headers: dict
    ) -> None:
        client.post("/api/v1/time-entries", json=entry_body(eastern_ms(2026, 2, 8, 9, 0), 30), headers=auth_headers)
        client.post("/api/v1/time-entries", json=entry_body(eastern_ms(2026, 2, 8, 9, 0), 45), headers=grace_headers)

        entries = client.get("/api/v1/time-entries", headers=grace_headers).json()

        assert [e["duration"] for e in entries] == [45 * 60_000]

    def test_newest_first(self, client: TestClient, auth_headers: dict) -> None:
        for day in (6, 8, 7):
            client.post(
                "/api/v1/time-entries", json=entry_body(eastern_ms(2026, 2, day, 9, 0), 30), headers=auth_headers
            )

        entries = client.get("/api/v1/time-entries", headers=auth_headers).json()

        starts = [e["startTime"] for e in entries]
        assert starts == sorted(starts, reverse=True)

    def test_unmappable_records_skipped(
        self, client: TestClient, auth_headers: dict, store: LocalStore
    ) -> None:
        client.post("/api/v1/time-entries", json=entry_body(eastern_ms(2026, 2, 8, 9, 0), 30), headers=auth_headers)
        store.create_time_entry(
            {"Date__c": "2026-02-09", "Time_in__c": "garbage", "User_Email__c": "ada@example.com"}
        )

        entries = client.get("/api/v1/time-entries", headers=auth_headers).json()

        assert len(entries) == 1

    def test_store_failure(self, client: TestClient, auth_headers: dict, store: LocalStore) -> None:
        with patch.object(store, "query_time_entries", side_effect=StoreError("down")):
            response = client.get("/api/v1/time-entries", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to fetch"


class TestDeleteTimeEntry:
    """Test DELETE /api/v1/time-entries."""

    def test_delete(self, client: TestClient, auth_headers: dict) -> None:
        created = client.post(
            "/api/v1/time-entries", json=entry_body(eastern_ms(2026, 2, 8, 9, 0), 30), headers=auth_headers
        ).json()

        response = client.delete(f"/api/v1/time-entries?id={created['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get("/api/v1/time-entries", headers=auth_headers).json() == []

    def test_missing_id(self, client: TestClient, auth_headers: dict) -> None:
        response = client.delete("/api/v1/time-entries", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "ID required"

    @pytest.mark.parametrize("bad_id", ["../Account/001ABC", "..", "a0L1/../../Account/001"])
    def test_rejects_ids_with_path_segments(
        self, client: TestClient, auth_headers: dict, store: LocalStore, bad_id: str
    ) -> None:
        with patch.object(store, "delete_time_entry") as delete:
            response = client.delete("/api/v1/time-entries", params={"id": bad_id}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid ID"
        delete.assert_not_called()

    def test_unknown_id(self, client: TestClient, auth_headers: dict) -> None:
        response = client.delete("/api/v1/time-entries?id=a0LNOPE", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to delete"

    def test_requires_auth(self, client: TestClient) -> None:
        assert client.delete("/api/v1/time-entries?id=x").status_code == 401


class TestSummaryAndExport:
    """Test the month summary and CSV download."""

    def test_month_summary(self, client: TestClient, auth_headers: dict) -> None:
        now = datetime.now(timezone.utc)
        client.post(
            "/api/v1/time-entries",
            json={"startTime": datetime_to_ms(now) - 1000, "endTime": datetime_to_ms(now), "duration": HOUR // 2},
            headers=auth_headers,
        )
        # far in the past, never in the current month
        client.post("/api/v1/time-entries", json=entry_body(eastern_ms(2020, 1, 15, 9, 0), 60), headers=auth_headers)

        response = client.get("/api/v1/time-entries/summary", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["monthTotalMs"] == HOUR // 2
        assert data["monthTotalHours"] == "0.5"
        assert data["entryCount"] == 1
        assert len(data["month"]) == 7

    def test_export_csv(self, client: TestClient, auth_headers: dict) -> None:
        client.post(
            "/api/v1/time-entries", json=entry_body(eastern_ms(2026, 2, 8, 9, 0), 90, "Inventory"), headers=auth_headers
        )
        client.post(
            "/api/v1/time-entries", json=entry_body(eastern_ms(2026, 2, 9, 9, 0), 30, "Desk"), headers=auth_headers
        )

        response = client.get(
            "/api/v1/time-entries/export", params={"search": "2/8/2026"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="timecard_history.csv"' in response.headers["content-disposition"]
        rows = list(csv.reader(response.text.splitlines()))
        assert rows[0][0] == "ID"
        assert len(rows) == 2
        assert rows[1][1:] == ["2/8/2026", "09:00:00", "10:30:00", "5400000", "1.5"]

    def test_export_bad_sort(self, client: TestClient, auth_headers: dict) -> None:
        response = client.get(
            "/api/v1/time-entries/export", params={"sort": "alphabetical"}, headers=auth_headers
        )
        assert response.status_code == 422
