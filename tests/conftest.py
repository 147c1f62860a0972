"""Pytest configuration and shared fixtures."""

import tempfile
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest  # type: ignore[import-not-found]

from timecard.core.models import datetime_to_ms

NEW_YORK = ZoneInfo("America/New_York")


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, now: int = 1_770_581_101_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


def local_ms(*args: int, tz: ZoneInfo = NEW_YORK) -> int:
    """Epoch milliseconds of a wall-clock time, e.g. local_ms(2026, 2, 8, 15, 5, 1)."""
    return datetime_to_ms(datetime(*args, tzinfo=tz))


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")


@pytest.fixture
def tz() -> ZoneInfo:
    return NEW_YORK


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
