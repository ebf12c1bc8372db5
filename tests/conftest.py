import pytest

import diary_api.main as main
from diary_api.repositories import InMemoryDiaryStore


@pytest.fixture(autouse=True)
def disable_db_lifecycle(monkeypatch):
    async def noop():
        return None

    monkeypatch.setattr(main, "startup_db", noop)
    monkeypatch.setattr(main, "shutdown_db", noop)
    yield


@pytest.fixture
def store() -> InMemoryDiaryStore:
    return InMemoryDiaryStore()
