from datetime import datetime, timezone

import pytest

from study_planner.cache import ReadCache
from study_planner.context import open_context


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_planner.db")
    return db_path


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ctx(tmp_db, clock):
    """An initialized planner context whose cache runs on the fake clock."""
    return open_context(tmp_db, cache=ReadCache(clock=clock))


@pytest.fixture
def now():
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
