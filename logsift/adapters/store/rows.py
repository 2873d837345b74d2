"""Row mapping shared by the log store adapters.

Both backends use the ``log_entries`` column layout; rows arrive as plain
mappings (sqlite rows converted with ``dict``, PostgREST JSON objects).
"""

import json
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from logsift.core.models import LogLevel, LogRecord

logger = logging.getLogger(__name__)

LOG_ENTRY_COLUMNS = (
    "timestamp",
    "level",
    "logger",
    "message",
    "stack_trace",
    "file_name",
    "line_number",
    "method_name",
    "class_name",
    "trace_id",
    "thread_name",
    "mdc_context",
)


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC, so stored values sort lexically."""
    return to_utc(value).isoformat()


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return to_utc(value)
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid timestamp: {value!r}")
    return to_utc(datetime.fromisoformat(value))


def record_to_row(record: LogRecord) -> dict[str, Any]:
    """Map a record onto ``log_entries`` columns.

    The context is left as a dict; callers serialize it as their backend needs.
    """
    return {
        "timestamp": format_timestamp(record.timestamp),
        "level": record.level.value,
        "logger": record.logger,
        "message": record.message,
        "stack_trace": record.stack_trace,
        "file_name": record.file_name,
        "line_number": record.line_number,
        "method_name": record.method_name,
        "class_name": record.class_name,
        "trace_id": record.trace_id,
        "thread_name": record.thread_name,
        "mdc_context": dict(record.context) if record.context else None,
    }


def row_to_record(row: Mapping[str, Any]) -> LogRecord:
    """Convert a ``log_entries`` row to a LogRecord.

    Raises:
        ValueError: If the row is malformed.
    """
    try:
        timestamp = parse_timestamp(row.get("timestamp"))

        line_number = row.get("line_number")
        if line_number is not None:
            line_number = int(line_number)

        context = row.get("mdc_context") or {}
        if isinstance(context, str):
            context = json.loads(context)
        if not isinstance(context, dict):
            raise ValueError(f"Invalid context: {context!r}")

        return LogRecord(
            timestamp=timestamp,
            level=LogLevel.from_string(row.get("level")),
            logger=row.get("logger") or "",
            message=row.get("message"),
            stack_trace=row.get("stack_trace"),
            class_name=row.get("class_name"),
            method_name=row.get("method_name"),
            file_name=row.get("file_name"),
            line_number=line_number,
            trace_id=row.get("trace_id"),
            thread_name=row.get("thread_name"),
            context={str(k): str(v) for k, v in context.items()},
        )
    except ValueError:
        raise
    except Exception as e:
        raise ValueError(f"Row parsing failed: {e}") from e


def rows_to_records(rows: Iterable[Mapping[str, Any]]) -> list[LogRecord]:
    """Convert rows, skipping (and logging) the ones that cannot be mapped."""
    records = []
    for row in rows:
        try:
            records.append(row_to_record(row))
        except ValueError as e:
            logger.warning(f"Skipping malformed log row: {e}")
    return records
