"""Client-side request dispatch.

A client normally talks to the server endpoint, but can also run the very same
handlers directly against a store it holds itself. ``FallbackTransport`` tries
its transports in order and moves on only when one is unreachable; any answer
from a reachable transport, including an error, is final.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from datetime import date
from typing import Any, Protocol

import httpx
from pydantic import BaseModel

from .dispatch import dispatch
from .errors import error_from_payload
from .repositories import DiaryStore
from .schemas import (
    CheckEntryStatusRequest,
    CreateDiaryRequest,
    CreateEntryRequest,
    DeleteDiaryRequest,
    GetDiaryInfoRequest,
    GetEntryDatesRequest,
    GetUnlockedEntriesRequest,
    JoinDiaryRequest,
    SearchEntriesRequest,
    UnlockEntriesRequest,
    VerifyPasswordsRequest,
)

LOGGER = logging.getLogger(__name__)

DIARY_API_URL = os.getenv("DIARY_API_URL", "http://localhost:8000/api")
DIARY_API_TIMEOUT = float(os.getenv("DIARY_API_TIMEOUT", "10"))


class TransportUnavailable(Exception):
    """The transport could not reach anything that would answer the request."""


class Transport(Protocol):
    name: str

    async def send(self, request: BaseModel) -> dict[str, Any]:
        ...


def _request_body(request: BaseModel) -> dict[str, Any]:
    return request.model_dump(mode="json", by_alias=True, exclude_none=True)


class HttpTransport:
    name = "server"

    def __init__(self, client: httpx.AsyncClient, url: str = DIARY_API_URL):
        self._client = client
        self._url = url

    async def send(self, request: BaseModel) -> dict[str, Any]:
        try:
            response = await self._client.post(self._url, json=_request_body(request))
        except httpx.TransportError as exc:
            raise TransportUnavailable(f"Server unreachable: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict) or "success" not in payload:
            # no API envelope: the endpoint is missing or a proxy answered
            raise TransportUnavailable(f"Server function unavailable ({response.status_code})")
        if response.is_error or payload["success"] is False:
            raise error_from_payload(response.status_code, payload)
        return payload


class DirectStoreTransport:
    name = "store"

    def __init__(self, store: DiaryStore):
        self._store = store

    async def send(self, request: BaseModel) -> dict[str, Any]:
        response = await dispatch(request, self._store)
        return response.model_dump(mode="json", by_alias=True)


class FallbackTransport:
    name = "fallback"

    def __init__(self, transports: Sequence[Transport]):
        self._transports = list(transports)

    async def send(self, request: BaseModel) -> dict[str, Any]:
        last_error: TransportUnavailable | None = None
        for transport in self._transports:
            try:
                return await transport.send(request)
            except TransportUnavailable as exc:
                LOGGER.warning("%s transport unavailable, trying next: %s", transport.name, exc)
                last_error = exc
        if last_error is None:
            raise TransportUnavailable("No transport answered")
        raise last_error


def build_http_client(timeout: float = DIARY_API_TIMEOUT) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout))


def build_fallback_transport(
    store: DiaryStore,
    client: httpx.AsyncClient | None = None,
    url: str = DIARY_API_URL,
) -> FallbackTransport:
    """Server endpoint first, then the store directly."""
    return FallbackTransport(
        [HttpTransport(client or build_http_client(), url), DirectStoreTransport(store)]
    )


class DiaryClient:
    """Typed calls into the diary API for the presentation layer."""

    def __init__(self, transport: Transport):
        self._transport = transport

    async def create_diary(
        self, diary_id: str, user_name: str, type: str, secret: str | None = None
    ) -> dict[str, Any]:
        return await self._transport.send(
            CreateDiaryRequest(
                action="createDiary",
                diary_id=diary_id,
                user_name=user_name,
                type=type,
                secret=secret,
            )
        )

    async def join_diary(
        self, diary_id: str, user_name: str, secret: str | None = None
    ) -> dict[str, Any]:
        return await self._transport.send(
            JoinDiaryRequest(
                action="joinDiary", diary_id=diary_id, user_name=user_name, secret=secret
            )
        )

    async def create_entry(
        self, diary_id: str, user_name: str, entry_date: date, content: str, password: str
    ) -> dict[str, Any]:
        return await self._transport.send(
            CreateEntryRequest(
                action="createEntry",
                diary_id=diary_id,
                user_name=user_name,
                date=entry_date,
                content=content,
                password=password,
            )
        )

    async def verify_passwords(
        self, diary_id: str, entry_date: date, passwords: list[str]
    ) -> dict[str, Any]:
        return await self._transport.send(
            VerifyPasswordsRequest(
                action="verifyPasswords", diary_id=diary_id, date=entry_date, passwords=passwords
            )
        )

    async def unlock_entries(
        self, diary_id: str, entry_date: date, passwords: list[str]
    ) -> dict[str, Any]:
        return await self._transport.send(
            UnlockEntriesRequest(
                action="unlockEntries", diary_id=diary_id, date=entry_date, passwords=passwords
            )
        )

    async def get_diary_info(self, diary_id: str) -> dict[str, Any]:
        return await self._transport.send(
            GetDiaryInfoRequest(action="getDiaryInfo", diary_id=diary_id)
        )

    async def check_entry_status(self, diary_id: str, entry_date: date) -> dict[str, Any]:
        return await self._transport.send(
            CheckEntryStatusRequest(action="checkEntryStatus", diary_id=diary_id, date=entry_date)
        )

    async def get_unlocked_entries(self, diary_id: str) -> dict[str, Any]:
        return await self._transport.send(
            GetUnlockedEntriesRequest(action="getUnlockedEntries", diary_id=diary_id)
        )

    async def get_entry_dates(self, diary_id: str) -> dict[str, Any]:
        return await self._transport.send(
            GetEntryDatesRequest(action="getEntryDates", diary_id=diary_id)
        )

    async def search_entries(self, diary_id: str, term: str) -> dict[str, Any]:
        return await self._transport.send(
            SearchEntriesRequest(action="searchEntries", diary_id=diary_id, term=term)
        )

    async def delete_diary(self, diary_id: str) -> dict[str, Any]:
        return await self._transport.send(
            DeleteDiaryRequest(action="deleteDiary", diary_id=diary_id)
        )
