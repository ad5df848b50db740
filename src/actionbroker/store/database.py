"""Shared SQLite connection used by every store."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import aiosqlite

from actionbroker.exceptions import PersistenceError
from actionbroker.store.migrations import TABLES

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db_time(value: datetime) -> str:
    # Fixed width so lexicographic comparison in SQL matches time order.
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _casefold(value: Any) -> Any:
    # SQLite lower() only folds ASCII.
    return value.casefold() if isinstance(value, str) else value


class Database:
    def __init__(self, db_path: Path | str = ":memory:") -> None:
        self.db_path = str(db_path)
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._db = await aiosqlite.connect(self.db_path)
            await self._db.create_function("casefold", 1, _casefold, deterministic=True)
            for table_sql in TABLES:
                await self._db.execute(table_sql)
            await self._db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Failed to open database: {exc}") from exc

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    def _get_db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Database not initialized — call initialize() first")
        return self._db

    async def execute(self, sql: str, params: tuple[Any, ...] = ()) -> int:
        """Run a write statement, commit it and return the affected row count."""
        db = self._get_db()
        try:
            cursor = await db.execute(sql, params)
            await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Database write failed: {exc}") from exc
        return cursor.rowcount

    async def fetchone(self, sql: str, params: tuple[Any, ...] = ()) -> tuple | None:
        db = self._get_db()
        try:
            cursor = await db.execute(sql, params)
            return await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Database read failed: {exc}") from exc

    async def fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[tuple]:
        db = self._get_db()
        try:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Database read failed: {exc}") from exc
        return list(rows)
