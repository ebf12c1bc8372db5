"""Unlock protocol for the entries of one diary date.

Entries stay hidden until the passwords of every author on that date are
presented together. ``passwords`` is aligned by position with the diary's
member list as stored, so ``passwords[i]`` belongs to ``members[i]``.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..errors import CountMismatch, InvalidPassword, NotFound, PartialUnlockError, UnknownUser
from ..hashing import verify_password
from ..repositories import DiaryStore, EntryRecord

LOGGER = logging.getLogger(__name__)


@dataclass
class Verification:
    results: list[dict[str, Any]] = field(default_factory=list)
    entries: list[EntryRecord] = field(default_factory=list)


class EntryGate:
    def __init__(self, store: DiaryStore):
        self._store = store

    async def verify(self, diary_id: str, entry_date: date, passwords: list[str]) -> Verification:
        """Check every entry for the date against its author's positional password.

        Stops at the first wrong password. Entries that were already unlocked
        have nothing left to check and count as valid.
        """
        diary = await self._store.get_diary(diary_id)
        if diary is None:
            raise NotFound("Diary not found", diary_id=diary_id)
        members: list[str] = diary["members"]
        if len(passwords) != len(members):
            raise CountMismatch(expected=len(members), provided=len(passwords))

        entries = await self._store.list_entries_by_date(diary_id, entry_date)
        verification = Verification()
        for entry in entries:
            user = entry["user_name"]
            try:
                index = members.index(user)
            except ValueError:
                raise UnknownUser(user) from None
            if index >= len(passwords):
                raise CountMismatch(expected=len(members), provided=len(passwords))

            digest = entry["password_hash"]
            valid = digest is None or verify_password(passwords[index], digest)
            verification.results.append({"user": user, "valid": valid})
            if not valid:
                LOGGER.warning(
                    "Rejected unlock of diary %s on %s: bad password for %s",
                    diary_id,
                    entry_date,
                    user,
                )
                raise InvalidPassword(user, verification.results)
            verification.entries.append(entry)
        return verification

    async def unlock(self, diary_id: str, entry_date: date, passwords: list[str]) -> int:
        """Verify, then clear the digest of every still-locked entry for the date.

        Returns how many entries this call unlocked. The clears are independent
        single-row writes; a failure part way is not rolled back and the whole
        call can be retried with the same passwords.
        """
        verification = await self.verify(diary_id, entry_date, passwords)
        locked = [entry for entry in verification.entries if entry["password_hash"] is not None]
        if not locked:
            return 0

        outcomes = await asyncio.gather(
            *(self._store.clear_password_hash(entry["id"]) for entry in locked),
            return_exceptions=True,
        )
        unlocked = 0
        failed = 0
        for entry, outcome in zip(locked, outcomes):
            if outcome is True:
                unlocked += 1
                continue
            failed += 1
            if isinstance(outcome, BaseException):
                LOGGER.warning(
                    "Failed to unlock entry %s in diary %s", entry["id"], diary_id, exc_info=outcome
                )
            else:
                LOGGER.warning("Entry %s vanished before it could be unlocked", entry["id"])
        if failed:
            raise PartialUnlockError(unlocked=unlocked, failed=failed)

        LOGGER.info("Unlocked %s entries in diary %s for %s", unlocked, diary_id, entry_date)
        return unlocked
