from __future__ import annotations

from datetime import date
from typing import Any, Protocol
from uuid import UUID

DiaryRecord = dict[str, Any]
EntryRecord = dict[str, Any]


class DiaryStore(Protocol):
    """Persistent storage for diaries and their entries.

    Every write touches exactly one row and is atomic on its own; there are no
    multi-row transactions. Reads always return fresh copies.
    """

    async def ping(self) -> None:
        ...

    async def get_diary(self, diary_id: str) -> DiaryRecord | None:
        ...

    async def create_diary(
        self,
        *,
        diary_id: str,
        type: str,
        members: list[str],
        member_secrets: dict[str, str],
    ) -> DiaryRecord:
        """Insert a diary. Raises Conflict if the id is taken."""
        ...

    async def update_members(
        self,
        diary_id: str,
        *,
        members: list[str],
        member_secrets: dict[str, str],
    ) -> DiaryRecord | None:
        ...

    async def delete_diary(self, diary_id: str) -> bool:
        """Delete a diary together with all of its entries."""
        ...

    async def create_entry(
        self,
        *,
        diary_id: str,
        user_name: str,
        entry_date: date,
        content: str,
        password_hash: str,
    ) -> EntryRecord:
        """Insert an entry. Raises Conflict on a second entry for the same user and date."""
        ...

    async def get_user_entry(
        self, diary_id: str, user_name: str, entry_date: date
    ) -> EntryRecord | None:
        ...

    async def list_entries_by_date(self, diary_id: str, entry_date: date) -> list[EntryRecord]:
        ...

    async def list_unlocked_entries(self, diary_id: str) -> list[EntryRecord]:
        ...

    async def list_entry_dates(self, diary_id: str) -> list[date]:
        ...

    async def search_unlocked_entries(self, diary_id: str, term: str) -> list[EntryRecord]:
        ...

    async def clear_password_hash(self, entry_id: UUID) -> bool:
        """Null the digest of one entry. Returns False if the entry does not exist."""
        ...
