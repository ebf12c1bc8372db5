from diary_api.database import database_url


def test_database_url_switches_to_asyncpg(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/diary")

    assert database_url() == "postgresql+asyncpg://u:p@db:5432/diary"


def test_database_url_from_postgres_settings(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("POSTGRES_HOST", "pg")
    monkeypatch.setenv("POSTGRES_USER", "writer")
    monkeypatch.setenv("POSTGRES_PASSWORD", "pw")
    monkeypatch.setenv("POSTGRES_DB", "diaries")

    assert database_url() == "postgresql+asyncpg://writer:pw@pg:5432/diaries"


def test_database_url_keeps_async_drivers(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/diary")

    assert database_url() == "postgresql+asyncpg://u:p@db/diary"
