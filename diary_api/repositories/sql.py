from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import Conflict, StoreError
from ..models import Diary, Entry
from .base import DiaryRecord, EntryRecord

LOGGER = logging.getLogger(__name__)


def _diary_to_dict(diary: Diary) -> DiaryRecord:
    return {
        "diary_id": diary.diary_id,
        "type": diary.type,
        "members": list(diary.members or []),
        "member_secrets": dict(diary.member_secrets or {}),
        "created_at": diary.created_at,
    }


def _entry_to_dict(entry: Entry) -> EntryRecord:
    return {
        "id": entry.id,
        "diary_id": entry.diary_id,
        "user_name": entry.user_name,
        "date": entry.entry_date,
        "content": entry.content,
        "password_hash": entry.password_hash,
        "created_at": entry.created_at,
    }


class SqlDiaryStore:
    """DiaryStore backed by SQLAlchemy; one session per operation."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker() as session:
                yield session
        except IntegrityError:
            raise
        except (SQLAlchemyError, OSError) as exc:
            LOGGER.exception("Store operation %s failed", operation)
            raise StoreError(f"Failed to {operation}") from exc

    async def ping(self) -> None:
        async with self._session("reach the database") as session:
            await session.execute(text("SELECT 1"))

    # -------------------------------------------------------------------------
    # Diaries
    # -------------------------------------------------------------------------

    async def get_diary(self, diary_id: str) -> DiaryRecord | None:
        async with self._session("load diary") as session:
            diary = await session.get(Diary, diary_id)
            return _diary_to_dict(diary) if diary else None

    async def create_diary(
        self,
        *,
        diary_id: str,
        type: str,
        members: list[str],
        member_secrets: dict[str, str],
    ) -> DiaryRecord:
        diary = Diary(
            diary_id=diary_id,
            type=type,
            members=list(members),
            member_secrets=dict(member_secrets),
        )
        try:
            async with self._session("create diary") as session:
                session.add(diary)
                await session.commit()
                await session.refresh(diary)
                return _diary_to_dict(diary)
        except IntegrityError as exc:
            raise Conflict("Diary ID already exists", diary_id=diary_id) from exc

    async def update_members(
        self,
        diary_id: str,
        *,
        members: list[str],
        member_secrets: dict[str, str],
    ) -> DiaryRecord | None:
        async with self._session("update diary members") as session:
            result = await session.execute(
                update(Diary)
                .where(Diary.diary_id == diary_id)
                .values(members=list(members), member_secrets=dict(member_secrets))
                .returning(Diary)
            )
            diary = result.scalar_one_or_none()
            await session.commit()
            return _diary_to_dict(diary) if diary else None

    async def delete_diary(self, diary_id: str) -> bool:
        async with self._session("delete diary") as session:
            await session.execute(delete(Entry).where(Entry.diary_id == diary_id))
            result = await session.execute(delete(Diary).where(Diary.diary_id == diary_id))
            await session.commit()
            return result.rowcount > 0

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    async def create_entry(
        self,
        *,
        diary_id: str,
        user_name: str,
        entry_date: date,
        content: str,
        password_hash: str,
    ) -> EntryRecord:
        entry = Entry(
            id=uuid4(),
            diary_id=diary_id,
            user_name=user_name,
            entry_date=entry_date,
            content=content,
            password_hash=password_hash,
        )
        try:
            async with self._session("create entry") as session:
                session.add(entry)
                await session.commit()
                await session.refresh(entry)
                return _entry_to_dict(entry)
        except IntegrityError as exc:
            raise Conflict(
                "You already have an entry for this date", user=user_name
            ) from exc

    async def get_user_entry(
        self, diary_id: str, user_name: str, entry_date: date
    ) -> EntryRecord | None:
        async with self._session("load entry") as session:
            result = await session.execute(
                select(Entry).where(
                    Entry.diary_id == diary_id,
                    Entry.user_name == user_name,
                    Entry.entry_date == entry_date,
                )
            )
            entry = result.scalars().first()
            return _entry_to_dict(entry) if entry else None

    async def list_entries_by_date(self, diary_id: str, entry_date: date) -> list[EntryRecord]:
        async with self._session("fetch entries") as session:
            result = await session.execute(
                select(Entry)
                .where(Entry.diary_id == diary_id, Entry.entry_date == entry_date)
                .order_by(Entry.created_at.asc(), Entry.id.asc())
            )
            return [_entry_to_dict(item) for item in result.scalars().all()]

    async def list_unlocked_entries(self, diary_id: str) -> list[EntryRecord]:
        async with self._session("fetch unlocked entries") as session:
            result = await session.execute(
                select(Entry)
                .where(Entry.diary_id == diary_id, Entry.password_hash.is_(None))
                .order_by(Entry.entry_date.desc(), Entry.created_at.asc())
            )
            return [_entry_to_dict(item) for item in result.scalars().all()]

    async def list_entry_dates(self, diary_id: str) -> list[date]:
        async with self._session("fetch entry dates") as session:
            result = await session.execute(
                select(Entry.entry_date)
                .where(Entry.diary_id == diary_id)
                .distinct()
                .order_by(Entry.entry_date.desc())
            )
            return list(result.scalars().all())

    async def search_unlocked_entries(self, diary_id: str, term: str) -> list[EntryRecord]:
        async with self._session("search entries") as session:
            result = await session.execute(
                select(Entry)
                .where(
                    Entry.diary_id == diary_id,
                    Entry.password_hash.is_(None),
                    Entry.content.icontains(term, autoescape=True),
                )
                .order_by(Entry.entry_date.desc(), Entry.created_at.asc())
            )
            return [_entry_to_dict(item) for item in result.scalars().all()]

    async def clear_password_hash(self, entry_id: UUID) -> bool:
        async with self._session("unlock entry") as session:
            result = await session.execute(
                update(Entry).where(Entry.id == entry_id).values(password_hash=None)
            )
            await session.commit()
            return result.rowcount > 0
