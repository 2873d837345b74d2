"""Supabase log store adapter.

Implements LogStorePort against the PostgREST API that Supabase exposes
for the ``log_entries`` table. Rows are scoped to a single application id.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

import httpx

from logsift.core.models import LogRecord
from logsift.core.ports import LogStorePort

from .rows import format_timestamp, record_to_row, rows_to_records

logger = logging.getLogger(__name__)

REST_API_PATH = "/rest/v1"
LOG_ENTRIES_TABLE = "log_entries"


class SupabaseLogStore(LogStorePort):
    """Supabase-backed log store via the PostgREST REST API."""

    def __init__(self, url: str, api_key: str, app_id: str, timeout: float = 30.0):
        """Initialize Supabase adapter.

        Args:
            url: Project URL (e.g., https://xyz.supabase.co)
            api_key: Service or anon key, sent as ``apikey`` and bearer token
            app_id: Application whose log entries are read and written
            timeout: Request timeout in seconds
        """
        if not url:
            raise ValueError("Supabase URL is required")
        if not api_key:
            raise ValueError("Supabase API key is required")
        if not app_id:
            raise ValueError("Application id is required")

        self.url = url.rstrip("/")
        self.app_id = app_id
        self.client = httpx.AsyncClient(
            base_url=f"{self.url}{REST_API_PATH}",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    async def close(self) -> None:
        """Close the httpx client."""
        await self.client.aclose()

    async def store_batch(self, records: Iterable[LogRecord]) -> int:
        """Insert records with a single bulk POST."""
        payload = []
        for record in records:
            row = record_to_row(record)
            row["app_id"] = self.app_id
            payload.append(row)

        if not payload:
            return 0

        try:
            response = await self.client.post(
                f"/{LOG_ENTRIES_TABLE}",
                json=payload,
                headers={"Prefer": "return=minimal"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to store {len(payload)} log records: {e}", exc_info=True)
            raise

        logger.debug(f"Stored {len(payload)} log records in Supabase")
        return len(payload)

    async def query_by_time_range(
        self, start: datetime, end: datetime, limit: int = 1000
    ) -> list[LogRecord]:
        """Records within the window, newest first."""
        params = self._window_params(start, end)
        params.append(("limit", str(limit)))
        return await self._query(params)

    async def query_errors(self, start: datetime, end: datetime) -> list[LogRecord]:
        """ERROR and FATAL records within the window, newest first."""
        params = self._window_params(start, end)
        params.append(("level", "in.(ERROR,FATAL)"))
        return await self._query(params)

    def _window_params(self, start: datetime, end: datetime) -> list[tuple[str, str]]:
        # ``timestamp`` appears twice, so params are a list of pairs
        return [
            ("app_id", f"eq.{self.app_id}"),
            ("timestamp", f"gte.{format_timestamp(start)}"),
            ("timestamp", f"lte.{format_timestamp(end)}"),
            ("order", "timestamp.desc"),
        ]

    async def _query(self, params: list[tuple[str, str]]) -> list[LogRecord]:
        try:
            response = await self.client.get(f"/{LOG_ENTRIES_TABLE}", params=params)
            response.raise_for_status()
            data: Any = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Failed to query log records from Supabase: {e}", exc_info=True)
            raise

        if not isinstance(data, list):
            logger.warning(f"Unexpected Supabase response type: {type(data).__name__}")
            return []

        rows = []
        for item in data:
            if isinstance(item, dict):
                rows.append(item)
            else:
                logger.warning(f"Skipping non-object log row: {item!r}")
        return rows_to_records(rows)
