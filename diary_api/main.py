import json
import logging
import os

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers

from .database import SessionLocal, shutdown_db, startup_db
from .dispatch import dispatch, parse_request
from .errors import DiaryError, ValidationError
from .repositories import DiaryStore, InMemoryDiaryStore, SqlDiaryStore

LOGGER = logging.getLogger(__name__)

STORE_BACKEND = os.getenv("DIARY_STORE", "sql").strip().lower()

app = FastAPI(title="Shared Diary API")


class DiaryCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose preflight answers carry no body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in {"content-length", "content-type"}
        }
        return Response(status_code=response.status_code, headers=headers)


cors_origins = [
    origin.strip() for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if origin.strip()
]
if cors_origins:
    allow_all = "*" in cors_origins
    app.add_middleware(
        DiaryCORSMiddleware,
        allow_origins=["*"] if allow_all else cors_origins,
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )


def build_store() -> DiaryStore:
    if STORE_BACKEND == "memory":
        return InMemoryDiaryStore()
    return SqlDiaryStore(SessionLocal)


app.state.store = build_store()


def get_store(request: Request) -> DiaryStore:
    return request.app.state.store


@app.on_event("startup")
async def startup() -> None:
    if STORE_BACKEND == "sql":
        await startup_db()


@app.on_event("shutdown")
async def shutdown() -> None:
    if STORE_BACKEND == "sql":
        await shutdown_db()


@app.exception_handler(DiaryError)
async def diary_error_handler(request: Request, exc: DiaryError) -> JSONResponse:
    if exc.status_code >= 500:
        LOGGER.error("Request failed: %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "code": "error"},
    )


@app.get("/health")
async def health(store: DiaryStore = Depends(get_store)) -> dict[str, str]:
    await store.ping()
    return {"status": "ok"}


@app.options("/api")
async def api_preflight() -> Response:
    return Response(status_code=200)


@app.post("/api")
async def api(request: Request, store: DiaryStore = Depends(get_store)):
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    response = await dispatch(parse_request(payload), store)
    return JSONResponse(content=response.model_dump(mode="json", by_alias=True))
