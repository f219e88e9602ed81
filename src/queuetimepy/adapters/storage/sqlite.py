"""SQLite storage adapter for queue time series.

A file database is shared by every worker process on the host. Use Redis
when workers span several hosts.
"""

import asyncio
import sqlite3
import threading
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from queuetimepy.core.errors import StorageError

_SERIES_SCHEMA = """
CREATE TABLE IF NOT EXISTS series (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL,
    score REAL NOT NULL,
    member REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_series_key_score ON series(key, score);
"""

_INSERT_MEMBER = """
INSERT INTO series (key, score, member) VALUES (?, ?, ?)
"""

_SELECT_RANGE = """
SELECT member FROM series
WHERE key = ? AND score >= ? AND score <= ?
ORDER BY score ASC, id ASC
"""

_COUNT_RANGE = """
SELECT COUNT(*) FROM series
WHERE key = ? AND score >= ? AND score <= ?
"""

_DELETE_BELOW = """
DELETE FROM series WHERE key = ? AND score < ?
"""

_CLEAR = """
DELETE FROM series
"""


class SeriesConnectionManager:
    """Opens aiosqlite connections to the series database.

    A :memory: database lives only as long as its connection, so one
    connection is kept open and shared. File databases get a fresh
    connection per operation, which lets several worker processes (and
    several event loops in one process) write to the same file.

    Sync-mode bookkeeping runs each write under its own event loop, so the
    schema lock is kept per loop rather than bound to the first one.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ready = False
        self._loop_locks: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, asyncio.Lock
        ] = weakref.WeakKeyDictionary()
        self._state_lock = threading.Lock()
        self._shared: aiosqlite.Connection | None = None

    @property
    def in_memory(self) -> bool:
        return self._db_path == ":memory:"

    def _loop_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        with self._state_lock:
            lock = self._loop_locks.get(loop)
            if lock is None:
                lock = self._loop_locks[loop] = asyncio.Lock()
            return lock

    async def _prepare(self) -> None:
        """Create the schema on first use. Safe to run from several loops."""
        if self._ready:
            return
        async with self._loop_lock():
            if self._ready:
                return
            if self.in_memory:
                conn = await aiosqlite.connect(":memory:")
                await conn.executescript(_SERIES_SCHEMA)
                with self._state_lock:
                    winner = self._shared is None
                    if winner:
                        self._shared = conn
                if not winner:
                    await conn.close()
            else:
                async with aiosqlite.connect(self._db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(_SERIES_SCHEMA)
            self._ready = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection with the schema in place."""
        await self._prepare()
        if self.in_memory:
            if self._shared is None:
                raise StorageError("In-memory series database is closed")
            yield self._shared
            return
        db = await aiosqlite.connect(self._db_path)
        try:
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        """Close the shared :memory: connection; its data is discarded."""
        with self._state_lock:
            conn, self._shared = self._shared, None
            self._ready = False
        if conn is not None:
            await conn.close()


class SQLiteTimeSeriesStorage:
    """SQLite implementation of TimeSeriesStoragePort.

    Uses aiosqlite for non-blocking access and WAL mode so that several
    processes can write concurrently. Backend errors surface as
    StorageError.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._manager = SeriesConnectionManager(db_path)

    async def insert(self, key: str, score: float, member: float) -> None:
        """Add a member to the series under the given score."""
        try:
            async with self._manager.connection() as db:
                await db.execute(_INSERT_MEMBER, (key, score, member))
                await db.commit()
        except sqlite3.Error as e:
            raise StorageError(f"SQLite insert failed: {e}") from e

    async def range_by_score(
        self,
        key: str,
        min_score: float = float("-inf"),
        max_score: float = float("inf"),
    ) -> list[float]:
        """Return members with min_score <= score <= max_score, by score."""
        try:
            async with self._manager.connection() as db:
                async with db.execute(_SELECT_RANGE, (key, min_score, max_score)) as cursor:
                    return [row[0] async for row in cursor]
        except sqlite3.Error as e:
            raise StorageError(f"SQLite range query failed: {e}") from e

    async def count_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        """Count members with min_score <= score <= max_score."""
        try:
            async with self._manager.connection() as db:
                async with db.execute(_COUNT_RANGE, (key, min_score, max_score)) as cursor:
                    row = await cursor.fetchone()
                    return row[0] if row else 0
        except sqlite3.Error as e:
            raise StorageError(f"SQLite count failed: {e}") from e

    async def remove_below(self, key: str, cutoff: float) -> int:
        """Delete members with score < cutoff."""
        try:
            async with self._manager.connection() as db:
                cursor = await db.execute(_DELETE_BELOW, (key, cutoff))
                removed = cursor.rowcount
                await db.commit()
                return removed
        except sqlite3.Error as e:
            raise StorageError(f"SQLite delete failed: {e}") from e

    async def clear(self) -> None:
        """Remove every series."""
        async with self._manager.connection() as db:
            await db.execute(_CLEAR)
            await db.commit()

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        await self._manager.close()
