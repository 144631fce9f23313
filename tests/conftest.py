from __future__ import annotations

import pytest
from sqlalchemy import create_engine, text


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'monitor.db'}"


@pytest.fixture
def engine(sqlite_url):
    """SQLite engine with an ``events`` table holding three rows."""
    eng = create_engine(sqlite_url, future=True)
    with eng.begin() as conn:
        conn.execute(text("CREATE TABLE events (id INTEGER PRIMARY KEY, name TEXT)"))
        conn.execute(
            text("INSERT INTO events (name) VALUES (:name)"),
            [{"name": "a"}, {"name": "b"}, {"name": "c"}],
        )
    yield eng
    eng.dispose()


@pytest.fixture
def clean_env(monkeypatch):
    """No ROWCOUNT_* variables and no .env file leak into a test."""
    for name in (
        "ROWCOUNT_INTERVAL",
        "ROWCOUNT_DSN",
        "ROWCOUNT_TABLE",
        "ROWCOUNT_METRIC",
        "ROWCOUNT_OUTPUT_DIR",
        "ROWCOUNT_JOB",
        "ROWCOUNT_INSTANCE",
        "ROWCOUNT_PUSHGATEWAY",
        "ROWCOUNT_LOG_LEVEL",
    ):
        # setenv first so teardown also drops values a .env file loaded
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("ROWCOUNT_ENV_FILE", "")
