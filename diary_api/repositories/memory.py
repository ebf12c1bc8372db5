from __future__ import annotations

import copy
from datetime import date, datetime, timezone
from uuid import UUID, uuid4

from ..errors import Conflict
from .base import DiaryRecord, EntryRecord


class InMemoryDiaryStore:
    """Process-local DiaryStore. Records are copied on the way in and out."""

    def __init__(self) -> None:
        self._diaries: dict[str, DiaryRecord] = {}
        self._entries: dict[UUID, EntryRecord] = {}

    async def ping(self) -> None:
        return None

    async def get_diary(self, diary_id: str) -> DiaryRecord | None:
        diary = self._diaries.get(diary_id)
        return copy.deepcopy(diary) if diary else None

    async def create_diary(
        self,
        *,
        diary_id: str,
        type: str,
        members: list[str],
        member_secrets: dict[str, str],
    ) -> DiaryRecord:
        if diary_id in self._diaries:
            raise Conflict("Diary ID already exists", diary_id=diary_id)
        self._diaries[diary_id] = {
            "diary_id": diary_id,
            "type": type,
            "members": list(members),
            "member_secrets": dict(member_secrets),
            "created_at": datetime.now(timezone.utc),
        }
        return copy.deepcopy(self._diaries[diary_id])

    async def update_members(
        self,
        diary_id: str,
        *,
        members: list[str],
        member_secrets: dict[str, str],
    ) -> DiaryRecord | None:
        diary = self._diaries.get(diary_id)
        if diary is None:
            return None
        diary["members"] = list(members)
        diary["member_secrets"] = dict(member_secrets)
        return copy.deepcopy(diary)

    async def delete_diary(self, diary_id: str) -> bool:
        self._entries = {
            entry_id: entry
            for entry_id, entry in self._entries.items()
            if entry["diary_id"] != diary_id
        }
        return self._diaries.pop(diary_id, None) is not None

    async def create_entry(
        self,
        *,
        diary_id: str,
        user_name: str,
        entry_date: date,
        content: str,
        password_hash: str,
    ) -> EntryRecord:
        if await self.get_user_entry(diary_id, user_name, entry_date) is not None:
            raise Conflict("You already have an entry for this date", user=user_name)
        entry_id = uuid4()
        self._entries[entry_id] = {
            "id": entry_id,
            "diary_id": diary_id,
            "user_name": user_name,
            "date": entry_date,
            "content": content,
            "password_hash": password_hash,
            "created_at": datetime.now(timezone.utc),
        }
        return dict(self._entries[entry_id])

    async def get_user_entry(
        self, diary_id: str, user_name: str, entry_date: date
    ) -> EntryRecord | None:
        for entry in self._entries.values():
            if (
                entry["diary_id"] == diary_id
                and entry["user_name"] == user_name
                and entry["date"] == entry_date
            ):
                return dict(entry)
        return None

    async def list_entries_by_date(self, diary_id: str, entry_date: date) -> list[EntryRecord]:
        # dict preserves insertion order, so equal timestamps keep creation order
        entries = [
            dict(entry)
            for entry in self._entries.values()
            if entry["diary_id"] == diary_id and entry["date"] == entry_date
        ]
        return sorted(entries, key=lambda entry: entry["created_at"])

    def _unlocked(self, diary_id: str) -> list[EntryRecord]:
        entries = [
            dict(entry)
            for entry in self._entries.values()
            if entry["diary_id"] == diary_id and entry["password_hash"] is None
        ]
        entries.sort(key=lambda entry: entry["created_at"])
        entries.sort(key=lambda entry: entry["date"], reverse=True)
        return entries

    async def list_unlocked_entries(self, diary_id: str) -> list[EntryRecord]:
        return self._unlocked(diary_id)

    async def list_entry_dates(self, diary_id: str) -> list[date]:
        dates = {
            entry["date"] for entry in self._entries.values() if entry["diary_id"] == diary_id
        }
        return sorted(dates, reverse=True)

    async def search_unlocked_entries(self, diary_id: str, term: str) -> list[EntryRecord]:
        needle = term.casefold()
        return [entry for entry in self._unlocked(diary_id) if needle in entry["content"].casefold()]

    async def clear_password_hash(self, entry_id: UUID) -> bool:
        entry = self._entries.get(entry_id)
        if entry is None:
            return False
        entry["password_hash"] = None
        return True
