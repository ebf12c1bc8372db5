from __future__ import annotations

from typing import Any


class DiaryError(Exception):
    """Base class for every failure surfaced to API callers."""

    status_code = 500
    code = "error"

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, "code": self.code, **self.extra}


class ValidationError(DiaryError):
    status_code = 400
    code = "validation_error"


class CountMismatch(ValidationError):
    code = "count_mismatch"

    def __init__(self, expected: int, provided: int):
        super().__init__(
            f"Need passwords for all {expected} users",
            expected=expected,
            provided=provided,
        )
        self.expected = expected
        self.provided = provided


class UnknownUser(DiaryError):
    status_code = 400
    code = "unknown_user"

    def __init__(self, user: str):
        super().__init__(f"Unknown user: {user}", user=user)
        self.user = user


class NotFound(DiaryError):
    status_code = 404
    code = "not_found"


class Conflict(DiaryError):
    status_code = 409
    code = "conflict"


class Unauthorized(DiaryError):
    status_code = 401
    code = "unauthorized"


class InvalidPassword(Unauthorized):
    code = "invalid_password"

    def __init__(self, user: str, results: list[dict[str, Any]] | None = None):
        super().__init__(
            f"Invalid password for {user}",
            user=user,
            results=list(results or []),
        )
        self.user = user
        self.results = list(results or [])


class NotAMember(DiaryError):
    status_code = 403
    code = "not_a_member"


class StoreError(DiaryError):
    status_code = 500
    code = "store_error"


class PartialUnlockError(StoreError):
    code = "partial_unlock"

    def __init__(self, unlocked: int, failed: int):
        super().__init__(
            "Failed to unlock entries",
            unlockedCount=unlocked,
            failedCount=failed,
        )
        self.unlocked = unlocked
        self.failed = failed


_BY_CODE: dict[str, type[DiaryError]] = {
    cls.code: cls
    for cls in (
        ValidationError,
        NotFound,
        Conflict,
        Unauthorized,
        NotAMember,
        StoreError,
    )
}


def error_from_payload(status_code: int, payload: dict[str, Any]) -> DiaryError:
    """Rebuild a DiaryError from a JSON error envelope returned by the API."""
    code = payload.get("code")
    message = str(payload.get("error") or "Request failed")
    if code == CountMismatch.code:
        return CountMismatch(int(payload.get("expected", 0)), int(payload.get("provided", 0)))
    if code == UnknownUser.code:
        return UnknownUser(str(payload.get("user", "")))
    if code == InvalidPassword.code:
        return InvalidPassword(str(payload.get("user", "")), payload.get("results"))
    if code == PartialUnlockError.code:
        return PartialUnlockError(
            int(payload.get("unlockedCount", 0)), int(payload.get("failedCount", 0))
        )
    extra = {
        key: value
        for key, value in payload.items()
        if key not in {"success", "error", "code"}
    }
    cls = _BY_CODE.get(code or "")
    if cls is None:
        cls = next(
            (
                candidate
                for candidate in _BY_CODE.values()
                if candidate.status_code == status_code
            ),
            DiaryError,
        )
    error = cls(message, **extra)
    error.status_code = status_code
    return error
