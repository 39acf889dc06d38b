"""Backend client used by the stores.

Stores only talk to :class:`BackendClient`. ``SqliteBackend`` is the
implementation shipped with the bot; tests can swap in any other client.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

import aiosqlite

from ..models import utcnow_iso
from ..utils.errors import BackendError
from .db import JSON_COLUMNS, TABLE_COLUMNS, Database

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Embed = Mapping[str, "Embed"]


@dataclass(frozen=True)
class Relation:
    table: str
    local_key: str
    remote_key: str
    many: bool


RELATIONS: Dict[str, Dict[str, Relation]] = {
    "events": {
        "profiles": Relation("profiles", "organizer_id", "id", many=False),
        "batches": Relation("batches", "id", "event_id", many=True),
        "discounts": Relation("discounts", "id", "event_id", many=True),
    },
    "registrations": {
        "event": Relation("events", "event_id", "id", many=False),
        "batch": Relation("batches", "batch_id", "id", many=False),
    },
    "batches": {
        "event": Relation("events", "event_id", "id", many=False),
    },
}


class BackendClient(ABC):
    """Table and procedure primitives the stores depend on."""

    @property
    @abstractmethod
    def auth_admin(self) -> Any:
        """Auth handle; only inspected for diagnostic logging."""
        ...

    @abstractmethod
    async def select(
        self,
        table: str,
        *,
        eq: Optional[Mapping[str, Any]] = None,
        embed: Optional[Embed] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
        single: bool = False,
    ) -> Any:
        """Return matching rows, or one row (or None) when ``single`` is set."""
        ...

    @abstractmethod
    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert one row and return it as stored."""
        ...

    @abstractmethod
    async def update(self, table: str, values: Mapping[str, Any], *, eq: Mapping[str, Any]) -> List[Row]:
        """Update rows matching ``eq`` and return them as stored."""
        ...

    @abstractmethod
    async def rpc(self, name: str, params: Mapping[str, Any]) -> Any:
        ...


def _check_table(table: str) -> tuple[str, ...]:
    columns = TABLE_COLUMNS.get(table)
    if columns is None:
        raise BackendError(f"Unknown table: {table}")
    return columns


def _check_columns(table: str, names) -> None:
    columns = _check_table(table)
    unknown = [name for name in names if name not in columns]
    if unknown:
        raise BackendError(f"Unknown column(s) for {table}: {', '.join(sorted(unknown))}")


def _encode(table: str, values: Mapping[str, Any]) -> Row:
    encoded = dict(values)
    for column in JSON_COLUMNS.get(table, ()):
        if column in encoded and not isinstance(encoded[column], str):
            encoded[column] = json.dumps(list(encoded[column] or []))
    return encoded


def _decode(table: str, row: aiosqlite.Row) -> Row:
    decoded = dict(row)
    for column in JSON_COLUMNS.get(table, ()):
        raw = decoded.get(column)
        if isinstance(raw, str):
            try:
                decoded[column] = json.loads(raw)
            except ValueError:
                decoded[column] = []
    return decoded


class SqliteBackend(BackendClient):
    def __init__(self, db: Database):
        self.db = db

    @property
    def auth_admin(self) -> Dict[str, str]:
        return {"backend": "sqlite", "path": self.db.path}

    async def select(
        self,
        table: str,
        *,
        eq: Optional[Mapping[str, Any]] = None,
        embed: Optional[Embed] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
        single: bool = False,
    ) -> Any:
        eq = dict(eq or {})
        _check_columns(table, eq.keys())
        query = f"SELECT * FROM {table}"
        if eq:
            query += " WHERE " + " AND ".join(f"{column} = ?" for column in eq)
        if order_by is not None:
            _check_columns(table, [order_by])
            query += f" ORDER BY {order_by} {'ASC' if ascending else 'DESC'}"
        elif "created_at" in TABLE_COLUMNS[table]:
            query += " ORDER BY created_at ASC, id ASC"

        rows = [_decode(table, row) for row in await self.db.fetchall(query, tuple(eq.values()))]
        for row in rows:
            await self._embed(table, row, embed or {})

        if single:
            return rows[0] if rows else None
        return rows

    async def _embed(self, table: str, row: Row, embed: Embed) -> None:
        relations = RELATIONS.get(table, {})
        for name, nested in embed.items():
            relation = relations.get(name)
            if relation is None:
                raise BackendError(f"Unknown relation {table}.{name}")
            key = row.get(relation.local_key)
            if key is None:
                row[name] = [] if relation.many else None
                continue
            related = await self.select(
                relation.table,
                eq={relation.remote_key: key},
                embed=nested,
                single=not relation.many,
            )
            row[name] = related

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        columns = _check_table(table)
        values = {k: v for k, v in row.items() if v is not None}
        _check_columns(table, values.keys())
        values.setdefault("id", str(uuid4()))
        now = utcnow_iso()
        for stamp in ("created_at", "updated_at"):
            if stamp in columns:
                values.setdefault(stamp, now)
        values = _encode(table, values)

        names = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        try:
            await self.db.execute(
                f"INSERT INTO {table} ({names}) VALUES ({placeholders})",
                tuple(values.values()),
            )
        except aiosqlite.Error as exc:
            raise BackendError(f"Insert into {table} failed: {exc}") from exc
        logger.debug("Inserted %s id=%s", table, values["id"])
        return await self.select(table, eq={"id": values["id"]}, single=True)

    async def update(self, table: str, values: Mapping[str, Any], *, eq: Mapping[str, Any]) -> List[Row]:
        if not eq:
            raise BackendError("Refusing to update without a filter")
        columns = _check_table(table)
        _check_columns(table, list(values.keys()) + list(eq.keys()))
        if "id" in values:
            raise BackendError("Row id cannot be updated")
        changes = dict(values)
        if "updated_at" in columns:
            changes["updated_at"] = utcnow_iso()
        changes = _encode(table, changes)

        assignments = ", ".join(f"{column} = ?" for column in changes)
        where = " AND ".join(f"{column} = ?" for column in eq)
        try:
            await self.db.execute(
                f"UPDATE {table} SET {assignments} WHERE {where}",
                tuple(changes.values()) + tuple(eq.values()),
            )
        except aiosqlite.Error as exc:
            raise BackendError(f"Update of {table} failed: {exc}") from exc
        return await self.select(table, eq=eq)

    async def rpc(self, name: str, params: Mapping[str, Any]) -> Any:
        if name == "increment_batch_enrollment":
            return await self._increment_batch_enrollment(params.get("p_batch_id"))
        raise BackendError(f"Unknown procedure: {name}")

    async def _increment_batch_enrollment(self, batch_id: Optional[str]) -> None:
        if not batch_id:
            raise BackendError("p_batch_id is required")
        changed = await self.db.execute(
            "UPDATE batches SET enrolled = enrolled + 1, updated_at = ? WHERE id = ? AND enrolled < capacity",
            (utcnow_iso(), batch_id),
        )
        if not changed:
            if await self.select("batches", eq={"id": batch_id}, single=True) is None:
                raise BackendError("Batch not found")
            raise BackendError("Batch is full")
        logger.debug("Incremented enrollment for batch %s", batch_id)
