"""Log capture handler.

Implements the producing side of LogStorePort: a ``logging.Handler`` that
enriches standard-library log records into LogRecords (caller location,
parsed exception, extra fields as context) and writes them to a store in
batches from the event loop.

Records are queued from any thread. Writing happens in ``flush_batch``,
either from the periodic flush task started by ``start`` or when a full
batch is handed to the running loop.
"""

import asyncio
import logging
import os
import threading
from collections import deque
from datetime import datetime, timezone

from logsift.core.frames import FrameClassifier
from logsift.core.models import LogLevel, LogRecord
from logsift.core.parser import TraceParser
from logsift.core.ports import LogStorePort

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_QUEUE_SIZE = 10000
DEFAULT_FLUSH_INTERVAL_SECONDS = 5.0

# Context keys promoted to LogRecord.trace_id
TRACE_ID_KEYS = ("trace_id", "traceId")

# Attributes every logging.LogRecord has; anything else came in via ``extra``
_STANDARD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

# Records from this package are never captured, so store failures cannot loop
_OWN_LOGGER_PREFIX = "logsift."


def convert_level(levelno: int) -> LogLevel:
    """Map a numeric ``logging`` level onto a LogLevel."""
    if levelno >= logging.CRITICAL:
        return LogLevel.FATAL
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARN
    if levelno >= logging.INFO:
        return LogLevel.INFO
    if levelno >= logging.DEBUG:
        return LogLevel.DEBUG
    return LogLevel.TRACE


class LogEnricher:
    """Turns ``logging.LogRecord`` instances into LogRecords."""

    def __init__(
        self,
        parser: TraceParser | None = None,
        classifier: FrameClassifier | None = None,
    ):
        self.parser = parser or TraceParser()
        self.classifier = classifier or FrameClassifier()

    def enrich(self, record: logging.LogRecord) -> LogRecord:
        """Build a LogRecord with location, trace and context filled in.

        The location is the first user frame of the attached exception, or
        the logging call site when there is no exception.
        """
        trace = None
        if record.exc_info and record.exc_info[1] is not None:
            trace = self.parser.parse_exception(record.exc_info[1])

        class_name = record.name
        method_name = record.funcName
        file_name = os.path.basename(record.pathname) if record.pathname else None
        line_number = record.lineno

        frame = self.classifier.first_user_frame(trace.frames) if trace is not None else None
        if frame is not None:
            class_name = frame.class_name
            method_name = frame.method_name
            file_name = frame.file_name
            line_number = frame.line_number

        context = {
            key: str(value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRIBUTES and not key.startswith("_")
        }
        trace_id = next((context[key] for key in TRACE_ID_KEYS if key in context), None)

        return LogRecord(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
            level=convert_level(record.levelno),
            logger=record.name,
            message=record.getMessage(),
            stack_trace=str(trace) if trace is not None else None,
            parsed_trace=trace,
            class_name=class_name,
            method_name=method_name,
            file_name=file_name,
            line_number=line_number,
            trace_id=trace_id,
            thread_name=record.threadName,
            context=context,
        )


class StoreLogHandler(logging.Handler):
    """Queues enriched records and writes them to a LogStorePort in batches."""

    def __init__(
        self,
        store: LogStorePort,
        enricher: LogEnricher | None = None,
        level: int = logging.WARNING,
        batch_size: int = DEFAULT_BATCH_SIZE,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        flush_interval_seconds: float = DEFAULT_FLUSH_INTERVAL_SECONDS,
    ):
        """Initialize the capture handler.

        Args:
            store: Store the captured records are written to.
            enricher: Converts logging records; a default one is created if omitted.
            level: Minimum level captured (WARNING by default).
            batch_size: Records per ``store_batch`` call; a full batch triggers a flush.
            queue_size: Records held before new ones are dropped.
            flush_interval_seconds: Period of the flush task started by ``start``.
        """
        if batch_size <= 0 or queue_size <= 0:
            raise ValueError("batch_size and queue_size must be positive")
        if flush_interval_seconds <= 0:
            raise ValueError("flush_interval_seconds must be positive")

        super().__init__(level)
        self.store = store
        self.enricher = enricher or LogEnricher()
        self.batch_size = batch_size
        self.queue_size = queue_size
        self.flush_interval_seconds = flush_interval_seconds
        self.dropped = 0
        self._queue: deque[LogRecord] = deque()
        self._queue_lock = threading.Lock()
        self._flush_lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> int:
        """Number of queued records not yet written."""
        with self._queue_lock:
            return len(self._queue)

    def emit(self, record: logging.LogRecord) -> None:
        if record.name.startswith(_OWN_LOGGER_PREFIX):
            return

        try:
            entry = self.enricher.enrich(record)
        except Exception:
            self.handleError(record)
            return

        with self._queue_lock:
            if len(self._queue) >= self.queue_size:
                self.dropped += 1
                return
            self._queue.append(entry)
            batch_ready = len(self._queue) >= self.batch_size

        if batch_ready and self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._schedule_flush)

    async def start(self) -> None:
        """Bind to the running loop and start the periodic flush task."""
        if self._task is not None:
            logger.warning("Log capture already started")
            return

        self._loop = asyncio.get_running_loop()
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            f"Log capture started (level={logging.getLevelName(self.level)}, "
            f"batch_size={self.batch_size})"
        )

    async def stop(self) -> None:
        """Stop the flush task and write everything still queued.

        The store itself is left open; it belongs to the caller.
        """
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        while self.pending:
            if not await self.flush_batch():
                break
        self._loop = None
        logger.info("Log capture stopped")

    async def flush_batch(self) -> int:
        """Write up to one batch of queued records.

        A failed write is logged and the batch is dropped.

        Returns:
            Number of records handed to the store.
        """
        async with self._flush_lock:
            with self._queue_lock:
                count = min(self.batch_size, len(self._queue))
                batch = [self._queue.popleft() for _ in range(count)]

            if not batch:
                return 0

            try:
                await self.store.store_batch(batch)
            except Exception as e:
                logger.error(f"Failed to flush {len(batch)} captured records: {e}", exc_info=True)
                return 0

            logger.debug(f"Flushed {len(batch)} captured records")
            return len(batch)

    def _schedule_flush(self) -> None:
        asyncio.ensure_future(self.flush_batch())

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self.flush_interval_seconds)
            try:
                await self.flush_batch()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Log capture flush error: {e}", exc_info=True)


def install(
    store: LogStorePort,
    target: logging.Logger | None = None,
    **kwargs,
) -> StoreLogHandler:
    """Attach a StoreLogHandler to ``target`` (the root logger by default)."""
    handler = StoreLogHandler(store, **kwargs)
    (target or logging.getLogger()).addHandler(handler)
    return handler
