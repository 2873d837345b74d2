"""Integration tests for the SQLite log store."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from logsift.adapters.store.sqlite import SQLiteLogStore
from logsift.core.models import LogLevel
from logsift.tests.samples import BASE_TIME, NPE_TRACE, make_record, sample_records

WINDOW_START = BASE_TIME - timedelta(hours=1)
WINDOW_END = BASE_TIME + timedelta(minutes=1)


@pytest.fixture
async def store(tmp_path: Path) -> SQLiteLogStore:
    """Create a temporary SQLite log store."""
    store = SQLiteLogStore(str(tmp_path / "logs.db"))
    yield store
    await store.close()


@pytest.mark.asyncio
async def test_store_and_query_round_trip(store: SQLiteLogStore) -> None:
    record = make_record(
        message="Error processing order 1000",
        stack_trace=NPE_TRACE,
        class_name="com.example.OrderService",
        method_name="processOrder",
        file_name="OrderService.java",
        line_number=23,
        trace_id="abc123",
        thread_name="http-nio-8080-exec-1",
        context={"user": "42", "region": "eu"},
    )

    stored = await store.store_batch([record])
    records = await store.query_by_time_range(WINDOW_START, WINDOW_END)

    assert stored == 1
    assert records == [record]


@pytest.mark.asyncio
async def test_query_newest_first_with_limit(store: SQLiteLogStore) -> None:
    await store.store_batch(sample_records())

    records = await store.query_by_time_range(WINDOW_START, WINDOW_END, limit=5)

    assert len(records) == 5
    timestamps = [r.timestamp for r in records]
    assert timestamps == sorted(timestamps, reverse=True)


@pytest.mark.asyncio
async def test_query_respects_window(store: SQLiteLogStore) -> None:
    await store.store_batch(sample_records())

    records = await store.query_by_time_range(BASE_TIME - timedelta(minutes=1), BASE_TIME)

    assert all(r.timestamp >= BASE_TIME - timedelta(minutes=1) for r in records)
    # Two NPEs and one INFO record in the last minute
    assert len(records) == 3


@pytest.mark.asyncio
async def test_query_errors_only(store: SQLiteLogStore) -> None:
    await store.store_batch(sample_records())
    await store.store_batch([make_record("Out of memory", level=LogLevel.FATAL, minutes_ago=3)])

    errors = await store.query_errors(WINDOW_START, WINDOW_END)

    assert len(errors) == 7
    assert {r.level for r in errors} == {LogLevel.ERROR, LogLevel.FATAL}


@pytest.mark.asyncio
async def test_naive_window_is_utc(store: SQLiteLogStore) -> None:
    await store.store_batch([make_record()])

    records = await store.query_by_time_range(
        datetime(2024, 1, 15, 10, 0), datetime(2024, 1, 15, 11, 0)
    )

    assert len(records) == 1
    assert records[0].timestamp.tzinfo == timezone.utc


@pytest.mark.asyncio
async def test_empty_batch(store: SQLiteLogStore) -> None:
    assert await store.store_batch([]) == 0
    assert await store.query_by_time_range(WINDOW_START, WINDOW_END) == []


@pytest.mark.asyncio
async def test_malformed_row_is_skipped(store: SQLiteLogStore) -> None:
    """Rows that cannot be mapped are skipped rather than failing the query."""
    await store.store_batch([make_record()])

    conn = await store._get_connection()
    try:
        await conn.execute(
            "INSERT INTO log_entries (timestamp, level, message) VALUES (?, ?, ?)",
            (BASE_TIME.isoformat(), "ERROR", "bad"),
        )
        await conn.execute(
            "INSERT INTO log_entries (timestamp, level, mdc_context) VALUES (?, ?, ?)",
            (BASE_TIME.isoformat(), "ERROR", "{not json"),
        )
        await conn.commit()
    finally:
        await store._return_connection(conn)

    records = await store.query_by_time_range(WINDOW_START, WINDOW_END)

    # The first raw row is valid (message only), the second has broken context
    assert len(records) == 2
    assert {r.message for r in records} == {"Something failed", "bad"}


@pytest.mark.asyncio
async def test_close_releases_pool(store: SQLiteLogStore) -> None:
    await store.store_batch([make_record()])

    await store.close()

    assert store._pool == []
