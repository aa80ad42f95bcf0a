import os

os.environ.setdefault("STORAGE_BACKEND", "sqlite")
os.environ.setdefault("DB_PATH", ":memory:")

import aiosqlite
import pytest

import velohub.db.database as db_mod


@pytest.fixture(autouse=True)
async def db(monkeypatch):
    """Fresh in-memory store_expenses table behind every SqliteStorage call."""
    async with aiosqlite.connect(":memory:") as conn:
        conn.row_factory = aiosqlite.Row
        await conn.executescript(db_mod.SCHEMA)

        async def _memory_db():
            return conn

        monkeypatch.setattr(db_mod, "get_db", _memory_db)
        monkeypatch.setattr(db_mod, "_db", conn)
        yield conn
