from __future__ import annotations

import os
import logging
from typing import Optional, Iterable, Any, Dict, List

import aiosqlite


TABLE_COLUMNS: Dict[str, tuple[str, ...]] = {
    "profiles": ("id", "full_name", "email", "role", "created_at"),
    "events": (
        "id",
        "name",
        "description",
        "organizer_id",
        "event_type",
        "price_type",
        "base_price",
        "min_hours",
        "min_weeks",
        "min_months",
        "created_at",
        "updated_at",
    ),
    "batches": (
        "id",
        "event_id",
        "name",
        "schedule",
        "start_time",
        "end_time",
        "working_days",
        "capacity",
        "enrolled",
        "created_at",
        "updated_at",
    ),
    "discounts": (
        "id",
        "event_id",
        "name",
        "description",
        "discount_type",
        "percentage",
        "min_registration_value",
        "valid_from",
        "valid_until",
        "created_at",
        "updated_at",
    ),
    "registrations": (
        "id",
        "user_id",
        "event_id",
        "batch_id",
        "hours_registered",
        "weeks_registered",
        "months_registered",
        "total_amount",
        "discount_applied",
        "final_amount",
        "status",
        "start_date",
        "end_date",
        "created_at",
        "updated_at",
    ),
}

# Columns stored as JSON text.
JSON_COLUMNS: Dict[str, tuple[str, ...]] = {
    "batches": ("working_days",),
}


class Database:
    def __init__(self, path: str):
        self.path = path
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self) -> aiosqlite.Connection:
        if self._conn is None:
            db_dir = os.path.dirname(self.path)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
            self._conn = await aiosqlite.connect(self.path, timeout=5)
            self._conn.row_factory = aiosqlite.Row
            await self._conn.execute("PRAGMA foreign_keys = ON;")
            await self._conn.execute("PRAGMA journal_mode = WAL;")
            await self._conn.execute("PRAGMA synchronous = NORMAL;")
            await self._conn.execute("PRAGMA busy_timeout = 5000;")
        return self._conn

    async def execute(self, query: str, params: Iterable[Any] | Dict[str, Any] = ()) -> int:
        """Run a statement, commit, and return the number of affected rows."""
        conn = await self.connect()
        cursor = await conn.execute(query, params)
        await conn.commit()
        return cursor.rowcount

    async def fetchall(
        self, query: str, params: Iterable[Any] | Dict[str, Any] = ()
    ) -> List[aiosqlite.Row]:
        conn = await self.connect()
        async with conn.execute(query, params) as cursor:
            return await cursor.fetchall()

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def init_db(self):
        await self.execute(
            """
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                full_name TEXT NOT NULL,
                email TEXT,
                role TEXT NOT NULL DEFAULT 'user',
                created_at TEXT
            );
        """
        )
        await self.execute(
            """
            CREATE TABLE IF NOT EXISTS events (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                organizer_id TEXT NOT NULL,
                event_type TEXT NOT NULL DEFAULT 'regular',
                price_type TEXT NOT NULL DEFAULT 'monthly',
                base_price REAL NOT NULL DEFAULT 0,
                min_hours INTEGER,
                min_weeks INTEGER,
                min_months INTEGER,
                created_at TEXT,
                updated_at TEXT
            );
        """
        )
        await self.execute(
            """
            CREATE TABLE IF NOT EXISTS batches (
                id TEXT PRIMARY KEY,
                event_id TEXT NOT NULL,
                name TEXT NOT NULL,
                schedule TEXT NOT NULL DEFAULT '',
                start_time TEXT NOT NULL,
                end_time TEXT NOT NULL,
                working_days TEXT NOT NULL DEFAULT '[]',
                capacity INTEGER NOT NULL DEFAULT 0,
                enrolled INTEGER NOT NULL DEFAULT 0,
                created_at TEXT,
                updated_at TEXT,
                FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE
            );
        """
        )
        await self.execute(
            """
            CREATE TABLE IF NOT EXISTS discounts (
                id TEXT PRIMARY KEY,
                event_id TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                discount_type TEXT NOT NULL,
                percentage REAL NOT NULL,
                min_registration_value REAL,
                valid_from TEXT,
                valid_until TEXT,
                created_at TEXT,
                updated_at TEXT,
                FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE
            );
        """
        )
        # user_id is not a foreign key: accounts created through /register
        # live only in the chat session.
        await self.execute(
            """
            CREATE TABLE IF NOT EXISTS registrations (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                event_id TEXT NOT NULL,
                batch_id TEXT,
                hours_registered INTEGER,
                weeks_registered INTEGER,
                months_registered INTEGER,
                total_amount REAL NOT NULL DEFAULT 0,
                discount_applied REAL NOT NULL DEFAULT 0,
                final_amount REAL NOT NULL DEFAULT 0,
                status TEXT NOT NULL DEFAULT 'pending',
                start_date TEXT,
                end_date TEXT,
                created_at TEXT,
                updated_at TEXT,
                FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE,
                FOREIGN KEY(batch_id) REFERENCES batches(id) ON DELETE SET NULL
            );
        """
        )

        idx_statements = [
            "CREATE INDEX IF NOT EXISTS idx_batches_event_id ON batches(event_id)",
            "CREATE INDEX IF NOT EXISTS idx_discounts_event_id ON discounts(event_id)",
            "CREATE INDEX IF NOT EXISTS idx_registrations_user_id ON registrations(user_id)",
            "CREATE INDEX IF NOT EXISTS idx_registrations_event_id ON registrations(event_id)",
            "CREATE INDEX IF NOT EXISTS idx_events_organizer_id ON events(organizer_id)",
        ]
        for stmt in idx_statements:
            try:
                await self.execute(stmt)
            except aiosqlite.Error as exc:
                logging.getLogger("eventhub").warning("Failed to create index: %s (%s)", stmt, exc)
