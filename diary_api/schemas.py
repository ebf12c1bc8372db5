from datetime import date, datetime
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Name = Annotated[str, Field(min_length=1, max_length=100)]
DiaryId = Annotated[str, Field(min_length=1, max_length=64)]
DiaryType = Literal["pair", "group"]


class ApiModel(BaseModel):
    """Accepts snake_case or camelCase field names, emits camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


class PingRequest(ApiModel):
    action: Literal["test"]


class CreateDiaryRequest(ApiModel):
    action: Literal["createDiary"]
    diary_id: DiaryId
    user_name: Name
    type: DiaryType
    secret: str | None = Field(
        default=None, validation_alias=AliasChoices("secret", "userPassword")
    )

    @field_validator("type", mode="before")
    @classmethod
    def _couple_is_pair(cls, value: Any) -> Any:
        return "pair" if value == "couple" else value


class JoinDiaryRequest(ApiModel):
    action: Literal["joinDiary"]
    diary_id: DiaryId
    user_name: Name
    secret: str | None = Field(
        default=None, validation_alias=AliasChoices("secret", "userPassword")
    )


class CreateEntryRequest(ApiModel):
    action: Literal["createEntry"]
    diary_id: DiaryId
    user_name: Name
    date: date
    content: str
    password: str = Field(min_length=1)


class VerifyPasswordsRequest(ApiModel):
    action: Literal["verifyPasswords"]
    diary_id: DiaryId
    date: date
    passwords: list[str]


class UnlockEntriesRequest(ApiModel):
    action: Literal["unlockEntries"]
    diary_id: DiaryId
    date: date
    passwords: list[str]


class GetDiaryInfoRequest(ApiModel):
    action: Literal["getDiaryInfo"]
    diary_id: DiaryId


class CheckEntryStatusRequest(ApiModel):
    action: Literal["checkEntryStatus"]
    diary_id: DiaryId
    date: date


class GetUnlockedEntriesRequest(ApiModel):
    action: Literal["getUnlockedEntries"]
    diary_id: DiaryId


class GetEntryDatesRequest(ApiModel):
    action: Literal["getEntryDates"]
    diary_id: DiaryId


class SearchEntriesRequest(ApiModel):
    action: Literal["searchEntries"]
    diary_id: DiaryId
    term: str = Field(min_length=1)


class DeleteDiaryRequest(ApiModel):
    action: Literal["deleteDiary"]
    diary_id: DiaryId


ApiRequest = Annotated[
    Union[
        PingRequest,
        CreateDiaryRequest,
        JoinDiaryRequest,
        CreateEntryRequest,
        VerifyPasswordsRequest,
        UnlockEntriesRequest,
        GetDiaryInfoRequest,
        CheckEntryStatusRequest,
        GetUnlockedEntriesRequest,
        GetEntryDatesRequest,
        SearchEntriesRequest,
        DeleteDiaryRequest,
    ],
    Field(discriminator="action"),
]


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------


class Diary(BaseModel):
    diary_id: str
    type: str
    members: list[str]
    created_at: datetime


class Entry(BaseModel):
    id: UUID
    diary_id: str
    user_name: str
    date: date
    content: str | None = None
    password_hash: str | None = None
    created_at: datetime
    locked: bool = False

    @model_validator(mode="before")
    @classmethod
    def _hide_locked_content(cls, data: Any) -> Any:
        if isinstance(data, dict):
            locked = data.get("password_hash") is not None
            data = {**data, "locked": locked}
            if locked:
                data["content"] = None
        return data


class VerificationResult(BaseModel):
    user: str
    valid: bool


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------


class ApiResponse(ApiModel):
    success: bool = True
    message: str | None = None


class PingResponse(ApiResponse):
    timestamp: datetime


class DiaryResponse(ApiResponse):
    data: Diary


class JoinDiaryResponse(ApiResponse):
    data: Diary
    already_member: bool = False


class DiaryInfoResponse(ApiResponse):
    diary: Diary


class EntryResponse(ApiResponse):
    data: Entry


class VerifyPasswordsResponse(ApiResponse):
    results: list[VerificationResult]
    entries: list[Entry]


class UnlockEntriesResponse(ApiResponse):
    unlocked_count: int


class EntryStatusResponse(ApiResponse):
    all_submitted: bool
    expected: int
    actual: int
    submitted_users: list[str]
    missing_users: list[str]
    entries: list[Entry]


class EntriesResponse(ApiResponse):
    entries: list[Entry]


class EntryDatesResponse(ApiResponse):
    dates: list[date]
