from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..errors import NotFound
from ..repositories import DiaryStore, EntryRecord


@dataclass
class EntryStatus:
    all_submitted: bool
    expected: int
    actual: int
    submitted_users: list[str]
    missing_users: list[str]
    entries: list[EntryRecord]


class StatusReporter:
    """Reports who has and has not written for a diary date."""

    def __init__(self, store: DiaryStore):
        self._store = store

    async def status(self, diary_id: str, entry_date: date) -> EntryStatus:
        diary = await self._store.get_diary(diary_id)
        if diary is None:
            raise NotFound("Diary not found", diary_id=diary_id)
        entries = await self._store.list_entries_by_date(diary_id, entry_date)

        members: list[str] = diary["members"]
        submitted = [entry["user_name"] for entry in entries]
        return EntryStatus(
            all_submitted=len(entries) >= len(members),
            expected=len(members),
            actual=len(entries),
            submitted_users=submitted,
            missing_users=[user for user in members if user not in submitted],
            entries=entries,
        )
