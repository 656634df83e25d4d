"""
Scoped state cache for the PostHog MCP Server.

Each authenticated identity (scope) owns a small record of resolved values:
active project, active organization, distinct id, region and API key scopes.
The record lives in a pluggable ``StateStore``:

- ``MemoryStateStore``: in-process dict, discarded with the process
- ``SqliteStateStore``: durable store on aiosqlite, survives restarts

``ScopedCache`` binds one scope to one store and is what the state manager
and tool handlers see. Two caches with different scopes never observe each
other's values, even when they share a store.
"""
from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite

from .observability import get_logger

if TYPE_CHECKING:
    from mcp_server_posthog.config import AppConfig

logger = get_logger("posthog-mcp.cache")

STATE_KEYS: frozenset[str] = frozenset(
    {"projectId", "orgId", "distinctId", "region", "apiKey"}
)


def _check_key(key: str) -> None:
    if key not in STATE_KEYS:
        raise KeyError(f"Unknown state key: {key!r}")


class StateStore(ABC):
    """Backing storage for per-scope state records."""

    @abstractmethod
    async def get(self, scope: str, key: str) -> Any:
        """Return the stored value, or None when absent."""

    @abstractmethod
    async def set(self, scope: str, key: str, value: Any) -> None:
        """Overwrite a single field of a scope's record."""

    async def close(self) -> None:
        """Release resources held by the store."""


class MemoryStateStore(StateStore):
    """In-memory store. Contents are lost when the process exits."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, scope: str, key: str) -> Any:
        async with self._lock:
            return self._records.get(scope, {}).get(key)

    async def set(self, scope: str, key: str, value: Any) -> None:
        async with self._lock:
            self._records.setdefault(scope, {})[key] = value

    def __len__(self) -> int:
        return len(self._records)


class SqliteStateStore(StateStore):
    """Durable store backed by a local SQLite file.

    One row per (scope, key); values are JSON encoded. Each write is a single
    upsert so an interrupted task cannot leave a partially written field.
    """

    _SCHEMA = """
        CREATE TABLE IF NOT EXISTS scoped_state (
            scope TEXT NOT NULL,
            key TEXT NOT NULL,
            value TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (scope, key)
        )
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._connection: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def _connect(self) -> aiosqlite.Connection:
        if self._connection is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(
                str(self.path),
                isolation_level=None,  # autocommit
            )
            await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute(self._SCHEMA)
            logger.debug("State database opened", path=str(self.path))
        return self._connection

    async def get(self, scope: str, key: str) -> Any:
        async with self._lock:
            conn = await self._connect()
            cursor = await conn.execute(
                "SELECT value FROM scoped_state WHERE scope = ? AND key = ?",
                (scope, key),
            )
            row = await cursor.fetchone()
            await cursor.close()
        if row is None:
            return None
        return json.loads(row[0])

    async def set(self, scope: str, key: str, value: Any) -> None:
        payload = json.dumps(value)
        async with self._lock:
            conn = await self._connect()
            await conn.execute(
                """
                INSERT INTO scoped_state (scope, key, value, updated_at)
                VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(scope, key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (scope, key, payload),
            )

    async def close(self) -> None:
        async with self._lock:
            if self._connection is not None:
                await self._connection.close()
                self._connection = None
                logger.debug("State database closed", path=str(self.path))


class ScopedCache:
    """Key/value view of one scope's state record.

    Only the keys in ``STATE_KEYS`` are accepted; anything else raises
    ``KeyError``. ``get`` returns None for absent fields, which is distinct
    from an empty string.
    """

    def __init__(self, scope: str, store: StateStore) -> None:
        if not scope:
            raise ValueError("ScopedCache requires a non-empty scope")
        self.scope = scope
        self._store = store

    @classmethod
    def in_memory(cls, scope: str) -> ScopedCache:
        return cls(scope, MemoryStateStore())

    async def get(self, key: str) -> Any:
        _check_key(key)
        return await self._store.get(self.scope, key)

    async def set(self, key: str, value: Any) -> None:
        _check_key(key)
        await self._store.set(self.scope, key, value)


def create_state_store(config: AppConfig) -> StateStore:
    """Build the state store selected by configuration."""
    if config.state.backend == "sqlite":
        logger.info("Using sqlite state store", path=str(config.state.path))
        return SqliteStateStore(config.state.path)
    logger.info("Using in-memory state store")
    return MemoryStateStore()
