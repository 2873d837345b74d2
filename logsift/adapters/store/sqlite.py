"""SQLite log store adapter.

Implements LogStorePort using SQLite with aiosqlite for async access.
Useful for local development and for replaying exported logs without a
remote backend.
"""

import asyncio
import json
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

import aiosqlite

from logsift.core.models import LogRecord
from logsift.core.ports import LogStorePort

from .rows import LOG_ENTRY_COLUMNS, format_timestamp, record_to_row, rows_to_records

logger = logging.getLogger(__name__)


class SQLiteLogStore(LogStorePort):
    """SQLite-backed log store with connection pooling and async access."""

    def __init__(self, db_path: str, pool_size: int = 5):
        """Initialize SQLite store with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        conn = await aiosqlite.connect(str(self.db_path))
        conn.row_factory = aiosqlite.Row
        return conn

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        conn = await self._get_connection()
        try:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS log_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    level TEXT NOT NULL,
                    logger TEXT,
                    message TEXT,
                    stack_trace TEXT,
                    file_name TEXT,
                    line_number INTEGER,
                    method_name TEXT,
                    class_name TEXT,
                    trace_id TEXT,
                    thread_name TEXT,
                    mdc_context TEXT
                )
                """
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_log_entries_timestamp "
                "ON log_entries(timestamp DESC)"
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_log_entries_level ON log_entries(level)"
            )
            await conn.commit()
            self._schema_initialized = True
        finally:
            await self._return_connection(conn)

    async def store_batch(self, records: Iterable[LogRecord]) -> int:
        """Insert records; returns the number stored."""
        await self._init_schema()

        rows = []
        for record in records:
            row = record_to_row(record)
            if row["mdc_context"] is not None:
                row["mdc_context"] = json.dumps(row["mdc_context"], sort_keys=True)
            rows.append(tuple(row[column] for column in LOG_ENTRY_COLUMNS))

        if not rows:
            return 0

        placeholders = ", ".join("?" for _ in LOG_ENTRY_COLUMNS)
        conn = await self._get_connection()
        try:
            await conn.executemany(
                f"INSERT INTO log_entries ({', '.join(LOG_ENTRY_COLUMNS)}) "
                f"VALUES ({placeholders})",
                rows,
            )
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error(f"Failed to store {len(rows)} log records: {e}", exc_info=True)
            raise
        finally:
            await self._return_connection(conn)

        logger.debug(f"Stored {len(rows)} log records")
        return len(rows)

    async def query_by_time_range(
        self, start: datetime, end: datetime, limit: int = 1000
    ) -> list[LogRecord]:
        """Records within the window, newest first."""
        return await self._query(
            """
            SELECT * FROM log_entries
            WHERE timestamp >= ? AND timestamp <= ?
            ORDER BY timestamp DESC
            LIMIT ?
            """,
            (format_timestamp(start), format_timestamp(end), limit),
        )

    async def query_errors(self, start: datetime, end: datetime) -> list[LogRecord]:
        """ERROR and FATAL records within the window, newest first."""
        return await self._query(
            """
            SELECT * FROM log_entries
            WHERE timestamp >= ? AND timestamp <= ?
              AND level IN ('ERROR', 'FATAL')
            ORDER BY timestamp DESC
            """,
            (format_timestamp(start), format_timestamp(end)),
        )

    async def _query(self, sql: str, params: tuple) -> list[LogRecord]:
        await self._init_schema()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.error(f"Failed to query log records: {e}", exc_info=True)
            raise
        finally:
            await self._return_connection(conn)

        return rows_to_records(dict(row) for row in rows)
