import logging
import sqlite3
from typing import Any

import aiosqlite

from velohub.config import settings
from velohub.db.rest import RestStorage
from velohub.db.storage import Row, Storage, StorageResult

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS store_expenses (
    id TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    store_id TEXT NOT NULL,
    description TEXT,
    amount REAL NOT NULL,
    date TEXT NOT NULL,
    category TEXT,
    paid BOOLEAN NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_store_expenses_store ON store_expenses(store_id);
"""

TABLE_COLUMNS: dict[str, frozenset[str]] = {
    "store_expenses": frozenset(
        {"id", "store_id", "description", "amount", "date", "category", "paid", "created_at"}
    ),
}

_db: aiosqlite.Connection | None = None


async def get_db() -> aiosqlite.Connection:
    global _db
    if _db is None:
        _db = await aiosqlite.connect(settings.db_path)
        _db.row_factory = aiosqlite.Row
        await _db.execute("PRAGMA journal_mode=WAL")
    return _db


async def close_db():
    global _db
    if _db is not None:
        await _db.close()
        _db = None


async def init_db():
    db = await get_db()
    await db.executescript(SCHEMA)
    await db.commit()


def _check_columns(table: str, columns) -> str | None:
    known = TABLE_COLUMNS.get(table)
    if known is None:
        return f"Unknown table '{table}'"
    unknown = sorted(set(columns) - known)
    if unknown:
        return f"Unknown column(s) for {table}: {', '.join(unknown)}"
    return None


class SqliteStorage:
    """Storage backed by the process-wide aiosqlite connection."""

    async def select(self, table: str, **equals: Any) -> StorageResult:
        if error := _check_columns(table, equals):
            return StorageResult(error=error)
        query = f"SELECT * FROM {table}"
        if equals:
            query += " WHERE " + " AND ".join(f"{k} = ?" for k in equals)
        db = await get_db()
        try:
            cursor = await db.execute(query, list(equals.values()))
            rows = await cursor.fetchall()
        except sqlite3.Error as exc:
            return StorageResult(error=str(exc))
        return StorageResult(data=[dict(row) for row in rows])

    async def insert(self, table: str, row: Row) -> StorageResult:
        if not row:
            return StorageResult(error="Nothing to insert")
        if error := _check_columns(table, row):
            return StorageResult(error=error)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        db = await get_db()
        try:
            cursor = await db.execute(
                f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) RETURNING *",
                list(row.values()),
            )
            inserted = (await cursor.fetchall())[0]
            await db.commit()
        except sqlite3.Error as exc:
            await db.rollback()
            return StorageResult(error=str(exc))
        return StorageResult(data=dict(inserted))

    async def update(self, table: str, row_id: str, values: Row) -> StorageResult:
        if not values:
            return StorageResult(error="Nothing to update")
        if error := _check_columns(table, values):
            return StorageResult(error=error)
        set_clause = ", ".join(f"{k} = ?" for k in values)
        db = await get_db()
        try:
            cursor = await db.execute(
                f"UPDATE {table} SET {set_clause} WHERE id = ? RETURNING *",
                [*values.values(), row_id],
            )
            rows = await cursor.fetchall()
            await db.commit()
        except sqlite3.Error as exc:
            await db.rollback()
            return StorageResult(error=str(exc))
        if not rows:
            return StorageResult(error=f"No row in {table} with id '{row_id}'")
        return StorageResult(data=dict(rows[0]))

    async def delete(self, table: str, row_id: str) -> StorageResult:
        if error := _check_columns(table, ()):
            return StorageResult(error=error)
        db = await get_db()
        try:
            cursor = await db.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
            await db.commit()
        except sqlite3.Error as exc:
            await db.rollback()
            return StorageResult(error=str(exc))
        if cursor.rowcount == 0:
            return StorageResult(error=f"No row in {table} with id '{row_id}'")
        return StorageResult()

    async def ping(self) -> None:
        db = await get_db()
        await db.execute("SELECT 1")


def get_storage() -> Storage | None:
    backend = settings.storage_backend
    if backend == "sqlite":
        return SqliteStorage()
    if backend == "rest":
        if settings.supabase_url and settings.supabase_key:
            return RestStorage(settings.supabase_url, settings.supabase_key)
        logger.warning("REST storage selected but SUPABASE_URL / SUPABASE_KEY are not set")
    return None
