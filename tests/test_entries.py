from datetime import date

import pytest

from diary_api.errors import Conflict, NotFound
from diary_api.hashing import hash_password
from diary_api.services import EntryGate, EntryService, StatusReporter
from tests.utils import DAY, seed_pair


@pytest.mark.asyncio
async def test_create_entry_stores_digest(store):
    await seed_pair(store, with_entries=False)

    entry = await EntryService(store).create_entry("abc", "Alice", DAY, "hello", "alice1")

    assert entry["password_hash"] == hash_password("alice1")
    assert entry["content"] == "hello"
    assert entry["date"] == DAY


@pytest.mark.asyncio
async def test_second_entry_same_day_rejected(store):
    await seed_pair(store)

    with pytest.raises(Conflict):
        await EntryService(store).create_entry("abc", "Alice", DAY, "again", "alice1")


@pytest.mark.asyncio
async def test_create_entry_missing_diary(store):
    with pytest.raises(NotFound):
        await EntryService(store).create_entry("nope", "Alice", DAY, "hello", "pw")


@pytest.mark.asyncio
async def test_status_before_and_after_submission(store):
    await seed_pair(store, with_entries=False)
    reporter = StatusReporter(store)
    await EntryService(store).create_entry("abc", "Bob", DAY, "hey", "bob12345")

    status = await reporter.status("abc", DAY)

    assert status.all_submitted is False
    assert status.expected == 2
    assert status.actual == 1
    assert status.submitted_users == ["Bob"]
    assert status.missing_users == ["Alice"]

    await EntryService(store).create_entry("abc", "Alice", DAY, "hi", "alice1")
    status = await reporter.status("abc", DAY)

    assert status.all_submitted is True
    assert status.actual == 2
    assert status.missing_users == []


@pytest.mark.asyncio
async def test_status_missing_diary(store):
    with pytest.raises(NotFound):
        await StatusReporter(store).status("nope", DAY)


@pytest.mark.asyncio
async def test_unlocked_reads_only_return_unlocked_entries(store):
    await seed_pair(store)
    later = date(2024, 1, 2)
    entries = EntryService(store)
    await entries.create_entry("abc", "Alice", later, "Sunny walk", "a")

    assert await entries.unlocked_entries("abc") == []
    assert await entries.search("abc", "day") == []

    await EntryGate(store).unlock("abc", DAY, ["alice1", "bob12345"])

    unlocked = await entries.unlocked_entries("abc")
    assert [entry["user_name"] for entry in unlocked] == ["Alice", "Bob"]
    found = await entries.search("abc", "BOB'S")
    assert [entry["user_name"] for entry in found] == ["Bob"]
    assert await entries.search("abc", "sunny") == []
    assert await entries.entry_dates("abc") == [later, DAY]
