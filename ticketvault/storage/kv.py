from __future__ import annotations

import copy
import json
from typing import Any, Protocol

import asyncpg

from ticketvault.errors import PersistenceError

JSONValue = Any


class KeyValueStore(Protocol):
    async def get(self, key: str) -> JSONValue | None:
        ...

    async def set(self, key: str, value: JSONValue) -> None:
        ...


class InMemoryKeyValueStore:
    """Process-local store used for demos and tests."""

    def __init__(self, initial: dict[str, JSONValue] | None = None) -> None:
        self._data: dict[str, JSONValue] = dict(initial or {})

    async def get(self, key: str) -> JSONValue | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    async def set(self, key: str, value: JSONValue) -> None:
        self._data[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        return list(self._data)


class PostgresKeyValueStore:
    """JSON documents stored in a single Postgres table, last write wins."""

    _CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS {table} (
        key TEXT PRIMARY KEY,
        value JSONB NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """

    _SELECT_SQL = """
    SELECT value FROM {table} WHERE key = $1
    """

    _UPSERT_SQL = """
    INSERT INTO {table} (key, value, updated_at)
    VALUES ($1, $2::jsonb, CURRENT_TIMESTAMP)
    ON CONFLICT (key) DO UPDATE
    SET value = EXCLUDED.value,
        updated_at = EXCLUDED.updated_at
    """

    def __init__(self, pool: asyncpg.Pool, *, table: str = "ticketvault_kv") -> None:
        if not table.replace("_", "").isalnum():
            raise ValueError(f"Invalid table name: {table!r}")
        self._pool = pool
        self._table = table

    async def ensure_schema(self) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(self._CREATE_TABLE_SQL.format(table=self._table))

    async def get(self, key: str) -> JSONValue | None:
        try:
            async with self._pool.acquire() as connection:
                raw = await connection.fetchval(self._SELECT_SQL.format(table=self._table), key)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            raise PersistenceError(f"Failed to read {key!r}: {exc}") from exc
        if raw is None:
            return None
        if isinstance(raw, (str, bytes)):
            try:
                return json.loads(raw)
            except ValueError as exc:
                raise PersistenceError(f"Stored value for {key!r} is not valid JSON") from exc
        return raw

    async def set(self, key: str, value: JSONValue) -> None:
        payload = json.dumps(value)
        try:
            async with self._pool.acquire() as connection:
                await connection.execute(self._UPSERT_SQL.format(table=self._table), key, payload)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            raise PersistenceError(f"Failed to write {key!r}: {exc}") from exc
