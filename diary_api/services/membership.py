from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from ..errors import Conflict, NotFound, Unauthorized, ValidationError
from ..hashing import hash_password, verify_password
from ..repositories import DiaryRecord, DiaryStore

LOGGER = logging.getLogger(__name__)

JOIN_SECRET_REQUIRED = os.getenv("JOIN_SECRET_REQUIRED", "true").lower() == "true"


@dataclass
class JoinResult:
    diary: DiaryRecord
    already_member: bool = False


class MembershipService:
    """Creates diaries and adds members to them.

    With ``require_secret`` set, a newcomer must present the join secret of at
    least one existing member. Secrets are stored as digests keyed by member.
    Members are only ever appended, never removed.
    """

    def __init__(self, store: DiaryStore, require_secret: bool = JOIN_SECRET_REQUIRED):
        self._store = store
        self._require_secret = require_secret

    def _check_secret_present(self, secret: str | None) -> None:
        if self._require_secret and not secret:
            raise ValidationError("Missing required parameters", missing=["secret"])

    async def create_diary(
        self,
        diary_id: str,
        creator_name: str,
        type: str,
        secret: str | None = None,
    ) -> DiaryRecord:
        self._check_secret_present(secret)
        if await self._store.get_diary(diary_id) is not None:
            raise Conflict("Diary ID already exists", diary_id=diary_id)

        secrets = {creator_name: hash_password(secret)} if secret else {}
        diary = await self._store.create_diary(
            diary_id=diary_id,
            type=type,
            members=[creator_name],
            member_secrets=secrets,
        )
        LOGGER.info("Created %s diary %s for %s", type, diary_id, creator_name)
        return diary

    async def join_diary(
        self,
        diary_id: str,
        user_name: str,
        secret: str | None = None,
    ) -> JoinResult:
        self._check_secret_present(secret)
        diary = await self._store.get_diary(diary_id)
        if diary is None:
            raise NotFound("Diary not found", diary_id=diary_id)
        if user_name in diary["members"]:
            return JoinResult(diary=diary, already_member=True)

        secrets: dict[str, str] = dict(diary.get("member_secrets") or {})
        if self._require_secret and not secrets:
            # created while joins were ungated; no secret can ever match
            LOGGER.warning(
                "Rejected join of %s to diary %s: no join secret set", user_name, diary_id
            )
            raise Unauthorized(
                "This diary has no join secret, so nobody can join it", diary_id=diary_id
            )
        if self._require_secret and not any(
            verify_password(secret or "", digest) for digest in secrets.values()
        ):
            LOGGER.warning("Rejected join of %s to diary %s: bad secret", user_name, diary_id)
            raise Unauthorized("Invalid diary secret", diary_id=diary_id)

        if secret:
            secrets[user_name] = hash_password(secret)
        updated = await self._store.update_members(
            diary_id,
            members=[*diary["members"], user_name],
            member_secrets=secrets,
        )
        if updated is None:
            raise NotFound("Diary not found", diary_id=diary_id)
        LOGGER.info("%s joined diary %s", user_name, diary_id)
        return JoinResult(diary=updated)

    async def delete_diary(self, diary_id: str) -> None:
        """Tear down a diary together with all of its entries."""
        if not await self._store.delete_diary(diary_id):
            raise NotFound("Diary not found", diary_id=diary_id)
        LOGGER.info("Deleted diary %s", diary_id)
