"""Maps each request variant of ``ApiRequest`` to the handler that serves it.

Both the HTTP endpoint and the direct-to-store client transport go through
``dispatch`` so the two paths cannot drift apart.
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar, get_args

import pydantic
from pydantic import TypeAdapter

from .errors import NotFound, ValidationError
from .repositories import DiaryStore
from .schemas import (
    ApiRequest,
    ApiResponse,
    CheckEntryStatusRequest,
    CreateDiaryRequest,
    CreateEntryRequest,
    DeleteDiaryRequest,
    DiaryInfoResponse,
    DiaryResponse,
    EntriesResponse,
    EntryDatesResponse,
    EntryResponse,
    EntryStatusResponse,
    GetDiaryInfoRequest,
    GetEntryDatesRequest,
    GetUnlockedEntriesRequest,
    JoinDiaryRequest,
    JoinDiaryResponse,
    PingRequest,
    PingResponse,
    SearchEntriesRequest,
    UnlockEntriesRequest,
    UnlockEntriesResponse,
    VerifyPasswordsRequest,
    VerifyPasswordsResponse,
)
from .services import EntryGate, EntryService, MembershipService, StatusReporter

RequestT = TypeVar("RequestT")
Handler = Callable[[Any, DiaryStore], Awaitable[ApiResponse]]

HANDLERS: dict[type, Handler] = {}
REQUEST_TYPES: tuple[type, ...] = get_args(get_args(ApiRequest)[0])
ACTIONS = {
    get_args(request_type.model_fields["action"].annotation)[0]: request_type
    for request_type in REQUEST_TYPES
}

_request_adapter: TypeAdapter[Any] = TypeAdapter(ApiRequest)


def handles(request_type: type[RequestT]):
    def register(func: Callable[[RequestT, DiaryStore], Awaitable[ApiResponse]]):
        HANDLERS[request_type] = func
        return func

    return register


def parse_request(payload: Any) -> Any:
    """Validate a raw JSON body into one of the request variants."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    action = payload.get("action")
    if not isinstance(action, str) or action not in ACTIONS:
        raise ValidationError("Invalid action", action=action)
    try:
        return _request_adapter.validate_python(payload)
    except pydantic.ValidationError as exc:
        errors = exc.errors()
        fields = sorted({".".join(str(part) for part in error["loc"][1:]) for error in errors})
        if all(error["type"] == "missing" for error in errors):
            raise ValidationError("Missing required parameters", fields=fields) from None
        raise ValidationError("Invalid request parameters", fields=fields) from None


async def dispatch(request: Any, store: DiaryStore) -> ApiResponse:
    handler = HANDLERS.get(type(request))
    if handler is None:
        raise ValidationError("Invalid action")
    return await handler(request, store)


@handles(PingRequest)
async def _ping(request: PingRequest, store: DiaryStore) -> ApiResponse:
    return PingResponse(message="API is working", timestamp=datetime.now(timezone.utc))


@handles(CreateDiaryRequest)
async def _create_diary(request: CreateDiaryRequest, store: DiaryStore) -> ApiResponse:
    diary = await MembershipService(store).create_diary(
        request.diary_id, request.user_name, request.type, request.secret
    )
    return DiaryResponse(data=diary)


@handles(JoinDiaryRequest)
async def _join_diary(request: JoinDiaryRequest, store: DiaryStore) -> ApiResponse:
    result = await MembershipService(store).join_diary(
        request.diary_id, request.user_name, request.secret
    )
    return JoinDiaryResponse(
        data=result.diary,
        already_member=result.already_member,
        message="Already a member" if result.already_member else None,
    )


@handles(DeleteDiaryRequest)
async def _delete_diary(request: DeleteDiaryRequest, store: DiaryStore) -> ApiResponse:
    await MembershipService(store).delete_diary(request.diary_id)
    return ApiResponse(message="Diary deleted")


@handles(GetDiaryInfoRequest)
async def _get_diary_info(request: GetDiaryInfoRequest, store: DiaryStore) -> ApiResponse:
    diary = await store.get_diary(request.diary_id)
    if diary is None:
        raise NotFound("Diary not found", diary_id=request.diary_id)
    return DiaryInfoResponse(diary=diary)


@handles(CreateEntryRequest)
async def _create_entry(request: CreateEntryRequest, store: DiaryStore) -> ApiResponse:
    entry = await EntryService(store).create_entry(
        request.diary_id, request.user_name, request.date, request.content, request.password
    )
    return EntryResponse(data=entry)


@handles(VerifyPasswordsRequest)
async def _verify_passwords(request: VerifyPasswordsRequest, store: DiaryStore) -> ApiResponse:
    verification = await EntryGate(store).verify(request.diary_id, request.date, request.passwords)
    return VerifyPasswordsResponse(
        message="All passwords verified successfully",
        results=verification.results,
        entries=verification.entries,
    )


@handles(UnlockEntriesRequest)
async def _unlock_entries(request: UnlockEntriesRequest, store: DiaryStore) -> ApiResponse:
    unlocked = await EntryGate(store).unlock(request.diary_id, request.date, request.passwords)
    return UnlockEntriesResponse(message="Entries unlocked successfully", unlocked_count=unlocked)


@handles(CheckEntryStatusRequest)
async def _check_entry_status(request: CheckEntryStatusRequest, store: DiaryStore) -> ApiResponse:
    status = await StatusReporter(store).status(request.diary_id, request.date)
    return EntryStatusResponse(
        all_submitted=status.all_submitted,
        expected=status.expected,
        actual=status.actual,
        submitted_users=status.submitted_users,
        missing_users=status.missing_users,
        entries=status.entries,
    )


@handles(GetUnlockedEntriesRequest)
async def _get_unlocked_entries(request: GetUnlockedEntriesRequest, store: DiaryStore) -> ApiResponse:
    entries = await EntryService(store).unlocked_entries(request.diary_id)
    return EntriesResponse(entries=entries)


@handles(GetEntryDatesRequest)
async def _get_entry_dates(request: GetEntryDatesRequest, store: DiaryStore) -> ApiResponse:
    dates = await EntryService(store).entry_dates(request.diary_id)
    return EntryDatesResponse(dates=dates)


@handles(SearchEntriesRequest)
async def _search_entries(request: SearchEntriesRequest, store: DiaryStore) -> ApiResponse:
    entries = await EntryService(store).search(request.diary_id, request.term)
    return EntriesResponse(entries=entries)


_unhandled = set(REQUEST_TYPES) - set(HANDLERS)
if _unhandled:
    raise RuntimeError(f"No handler for {sorted(cls.__name__ for cls in _unhandled)}")
