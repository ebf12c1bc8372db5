from datetime import date
from uuid import UUID

import pytest

from diary_api.errors import (
    CountMismatch,
    InvalidPassword,
    NotFound,
    PartialUnlockError,
    UnknownUser,
)
from diary_api.hashing import hash_password
from diary_api.repositories import InMemoryDiaryStore
from diary_api.services import EntryGate, MembershipService
from tests.utils import DAY, seed_pair


class FlakyStore(InMemoryDiaryStore):
    def __init__(self) -> None:
        super().__init__()
        self.fail_for: set[UUID] = set()

    async def clear_password_hash(self, entry_id: UUID) -> bool:
        if entry_id in self.fail_for:
            raise RuntimeError("write failed")
        return await super().clear_password_hash(entry_id)


@pytest.mark.asyncio
async def test_verify_all_valid(store):
    await seed_pair(store)

    verification = await EntryGate(store).verify("abc", DAY, ["alice1", "bob12345"])

    assert verification.results == [
        {"user": "Alice", "valid": True},
        {"user": "Bob", "valid": True},
    ]
    assert [entry["user_name"] for entry in verification.entries] == ["Alice", "Bob"]
    # verify alone never unlocks
    assert all(entry["password_hash"] is not None for entry in verification.entries)
    stored = await store.list_entries_by_date("abc", DAY)
    assert stored[0]["password_hash"] == hash_password("alice1")


@pytest.mark.asyncio
async def test_verify_empty_date_succeeds(store):
    await seed_pair(store)

    verification = await EntryGate(store).verify("abc", date(2024, 2, 2), ["x", "y"])

    assert verification.results == []
    assert verification.entries == []


@pytest.mark.asyncio
async def test_verify_missing_diary(store):
    with pytest.raises(NotFound):
        await EntryGate(store).verify("nope", DAY, ["x"])


@pytest.mark.asyncio
async def test_verify_count_mismatch(store):
    await seed_pair(store)

    with pytest.raises(CountMismatch) as exc_info:
        await EntryGate(store).verify("abc", DAY, ["alice1"])

    assert exc_info.value.expected == 2
    assert exc_info.value.provided == 1
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_verify_stops_at_first_bad_password(store):
    await seed_pair(store)

    with pytest.raises(InvalidPassword) as exc_info:
        await EntryGate(store).verify("abc", DAY, ["wrong", "bob12345"])

    assert exc_info.value.user == "Alice"
    assert exc_info.value.results == [{"user": "Alice", "valid": False}]


@pytest.mark.asyncio
async def test_verify_reports_partial_results(store):
    await seed_pair(store)

    with pytest.raises(InvalidPassword) as exc_info:
        await EntryGate(store).verify("abc", DAY, ["alice1", "wrong"])

    assert exc_info.value.user == "Bob"
    assert exc_info.value.results == [
        {"user": "Alice", "valid": True},
        {"user": "Bob", "valid": False},
    ]


@pytest.mark.asyncio
async def test_passwords_follow_membership_order(store):
    await seed_pair(store)

    with pytest.raises(InvalidPassword):
        await EntryGate(store).verify("abc", DAY, ["bob12345", "alice1"])


@pytest.mark.asyncio
async def test_entry_from_non_member_is_fatal(store):
    await seed_pair(store)
    await store.create_entry(
        diary_id="abc",
        user_name="Mallory",
        entry_date=DAY,
        content="sneaky",
        password_hash=hash_password("m"),
    )

    with pytest.raises(UnknownUser) as exc_info:
        await EntryGate(store).verify("abc", DAY, ["alice1", "bob12345"])

    assert exc_info.value.user == "Mallory"


@pytest.mark.asyncio
async def test_verify_does_not_require_every_member(store):
    await seed_pair(store, with_entries=False)
    await store.create_entry(
        diary_id="abc",
        user_name="Bob",
        entry_date=DAY,
        content="only me",
        password_hash=hash_password("bob12345"),
    )

    verification = await EntryGate(store).verify("abc", DAY, ["", "bob12345"])

    assert verification.results == [{"user": "Bob", "valid": True}]


@pytest.mark.asyncio
async def test_unlock_clears_digests(store):
    await seed_pair(store)

    unlocked = await EntryGate(store).unlock("abc", DAY, ["alice1", "bob12345"])

    assert unlocked == 2
    entries = await store.list_entries_by_date("abc", DAY)
    assert [entry["password_hash"] for entry in entries] == [None, None]


@pytest.mark.asyncio
async def test_unlock_is_idempotent(store):
    await seed_pair(store)
    gate = EntryGate(store)

    assert await gate.unlock("abc", DAY, ["alice1", "bob12345"]) == 2
    assert await gate.unlock("abc", DAY, ["alice1", "bob12345"]) == 0


@pytest.mark.asyncio
async def test_unlock_with_bad_password_changes_nothing(store):
    await seed_pair(store)

    with pytest.raises(InvalidPassword) as exc_info:
        await EntryGate(store).unlock("abc", DAY, ["wrong", "bob12345"])

    assert exc_info.value.user == "Alice"
    entries = await store.list_entries_by_date("abc", DAY)
    assert all(entry["password_hash"] is not None for entry in entries)


@pytest.mark.asyncio
async def test_unlock_empty_date_is_noop(store):
    await seed_pair(store)

    assert await EntryGate(store).unlock("abc", date(2030, 1, 1), ["a", "b"]) == 0


@pytest.mark.asyncio
async def test_partial_unlock_failure_is_reported_and_retryable():
    store = FlakyStore()
    await seed_pair(store)
    entries = await store.list_entries_by_date("abc", DAY)
    store.fail_for = {entries[1]["id"]}
    gate = EntryGate(store)

    with pytest.raises(PartialUnlockError) as exc_info:
        await gate.unlock("abc", DAY, ["alice1", "bob12345"])

    assert exc_info.value.unlocked == 1
    assert exc_info.value.failed == 1
    after = await store.list_entries_by_date("abc", DAY)
    assert after[0]["password_hash"] is None
    assert after[1]["password_hash"] is not None

    store.fail_for = set()
    assert await gate.unlock("abc", DAY, ["alice1", "bob12345"]) == 1


@pytest.mark.asyncio
async def test_group_diary_unlock():
    store = InMemoryDiaryStore()
    membership = MembershipService(store, require_secret=False)
    await membership.create_diary("club", "Ann", "group")
    for name in ("Ben", "Cat"):
        await membership.join_diary("club", name)
    for name, password in (("Cat", "c"), ("Ann", "a"), ("Ben", "b")):
        await store.create_entry(
            diary_id="club",
            user_name=name,
            entry_date=DAY,
            content=f"{name} wrote",
            password_hash=hash_password(password),
        )

    assert await EntryGate(store).unlock("club", DAY, ["a", "b", "c"]) == 3
