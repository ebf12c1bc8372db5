import logging
import os

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from .models import Base

LOGGER = logging.getLogger(__name__)

AUTO_CREATE_SCHEMA = os.getenv("DIARY_AUTO_CREATE_SCHEMA", "false").lower() == "true"

# drivers that the asyncpg dialect replaces
_SYNC_POSTGRES_DRIVERS = {"postgres", "postgresql", "postgresql+psycopg2"}


def database_url() -> str:
    """DATABASE_URL, or one assembled from the POSTGRES_* settings, on asyncpg."""
    raw = os.getenv("DATABASE_URL") or "postgresql://{user}:{password}@{host}:{port}/{db}".format(
        user=os.getenv("POSTGRES_USER", "diary"),
        password=os.getenv("POSTGRES_PASSWORD", ""),
        host=os.getenv("POSTGRES_HOST", "postgres"),
        port=os.getenv("POSTGRES_PORT", "5432"),
        db=os.getenv("POSTGRES_DB", "diary"),
    )
    url = make_url(raw)
    if url.drivername in _SYNC_POSTGRES_DRIVERS:
        url = url.set(drivername="postgresql+asyncpg")
    return url.render_as_string(hide_password=False)


DATABASE_URL = database_url()

engine = create_async_engine(DATABASE_URL, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def startup_db() -> None:
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if AUTO_CREATE_SCHEMA:
            await conn.run_sync(Base.metadata.create_all)
            LOGGER.info("Diary schema ensured")


async def shutdown_db() -> None:
    await engine.dispose()
