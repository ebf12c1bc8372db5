from __future__ import annotations

import logging
from datetime import date

from ..errors import Conflict, NotAMember, NotFound
from ..hashing import hash_password
from ..repositories import DiaryRecord, DiaryStore, EntryRecord

LOGGER = logging.getLogger(__name__)


class EntryService:
    """Writes locked entries and reads the ones that have been unlocked."""

    def __init__(self, store: DiaryStore):
        self._store = store

    async def _require_diary(self, diary_id: str) -> DiaryRecord:
        diary = await self._store.get_diary(diary_id)
        if diary is None:
            raise NotFound("Diary not found", diary_id=diary_id)
        return diary

    async def create_entry(
        self,
        diary_id: str,
        user_name: str,
        entry_date: date,
        content: str,
        password: str,
    ) -> EntryRecord:
        diary = await self._require_diary(diary_id)
        if user_name not in diary["members"]:
            raise NotAMember(f"{user_name} is not a member of this diary", user=user_name)
        if await self._store.get_user_entry(diary_id, user_name, entry_date) is not None:
            raise Conflict("You already have an entry for this date", user=user_name)

        entry = await self._store.create_entry(
            diary_id=diary_id,
            user_name=user_name,
            entry_date=entry_date,
            content=content,
            password_hash=hash_password(password),
        )
        LOGGER.info("%s wrote an entry in diary %s for %s", user_name, diary_id, entry_date)
        return entry

    async def unlocked_entries(self, diary_id: str) -> list[EntryRecord]:
        await self._require_diary(diary_id)
        return await self._store.list_unlocked_entries(diary_id)

    async def entry_dates(self, diary_id: str) -> list[date]:
        await self._require_diary(diary_id)
        return await self._store.list_entry_dates(diary_id)

    async def search(self, diary_id: str, term: str) -> list[EntryRecord]:
        await self._require_diary(diary_id)
        return await self._store.search_unlocked_entries(diary_id, term)

