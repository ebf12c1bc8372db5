from contextlib import asynccontextmanager
from datetime import date

import httpx

from diary_api.main import app, get_store
from diary_api.repositories import DiaryStore
from diary_api.services import EntryService, MembershipService

DAY = date(2024, 1, 1)


@asynccontextmanager
async def app_client(store: DiaryStore, *, raise_app_exceptions: bool = True):
    app.dependency_overrides[get_store] = lambda: store
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


async def seed_pair(store: DiaryStore, *, with_entries: bool = True) -> None:
    """Alice creates "abc", Bob joins, and both write for DAY."""
    membership = MembershipService(store, require_secret=True)
    await membership.create_diary("abc", "Alice", "pair", "open-sesame")
    await membership.join_diary("abc", "Bob", "open-sesame")
    if with_entries:
        entries = EntryService(store)
        await entries.create_entry("abc", "Alice", DAY, "Alice's day", "alice1")
        await entries.create_entry("abc", "Bob", DAY, "Bob's day", "bob12345")
