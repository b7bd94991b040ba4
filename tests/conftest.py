from datetime import datetime, timedelta, timezone

import pytest

from keyrecall.application.item_store import ItemStore
from keyrecall.application.review_service import ReviewService
from keyrecall.infrastructure.adapters.memory_store import InMemoryItemRepository

T0 = datetime(2023, 5, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def repo():
    return InMemoryItemRepository()


@pytest.fixture
def store(repo):
    return ItemStore(repository=repo)


@pytest.fixture
def service(store, clock):
    return ReviewService(store, clock=clock)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks HOME to a temp dir so no real config file is read."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in ("KEYRECALL_STORAGE", "KEYRECALL_DATA_FILE", "KEYRECALL_CATALOG_FILE"):
        monkeypatch.delenv(key, raising=False)
    return home
