"""Fake LogStorePort implementation for testing."""

from collections.abc import Iterable
from datetime import datetime

from logsift.core.models import LogRecord
from logsift.core.ports import LogStorePort


class FakeLogStorePort(LogStorePort):
    """In-memory log store for testing.

    Tracks all queries for test assertions. Set ``fail_with`` to make every
    write and query raise.
    """

    def __init__(self, records: Iterable[LogRecord] = ()):
        self.records: list[LogRecord] = list(records)
        self.time_range_queries: list[tuple[datetime, datetime, int]] = []
        self.error_queries: list[tuple[datetime, datetime]] = []
        self.fail_with: Exception | None = None
        self.closed = False

    async def store_batch(self, records: Iterable[LogRecord]) -> int:
        if self.fail_with is not None:
            raise self.fail_with
        batch = list(records)
        self.records.extend(batch)
        return len(batch)

    async def query_by_time_range(
        self, start: datetime, end: datetime, limit: int = 1000
    ) -> list[LogRecord]:
        self.time_range_queries.append((start, end, limit))
        if self.fail_with is not None:
            raise self.fail_with
        matching = [r for r in self.records if start <= r.timestamp <= end]
        matching.sort(key=lambda r: r.timestamp, reverse=True)
        return matching[:limit]

    async def query_errors(self, start: datetime, end: datetime) -> list[LogRecord]:
        self.error_queries.append((start, end))
        if self.fail_with is not None:
            raise self.fail_with
        matching = [r for r in self.records if r.is_error and start <= r.timestamp <= end]
        matching.sort(key=lambda r: r.timestamp, reverse=True)
        return matching

    async def close(self) -> None:
        self.closed = True
