"""Port interfaces for the logsift clustering pipeline.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - LogStorePort: Persist and query log records
   - ReportPort: Present clustering results to developers

2. **Driving Ports** (adapters/external systems call into core)
   - ScanPort: Entry point for scans and cluster inspection
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from datetime import datetime

from .models import CodeContext, ErrorCluster, LogRecord, ScanResult


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class LogStorePort(ABC):
    """Port for persisting and querying application log records.

    Adapters implementing this port read from a local database or a
    remote log service and normalize rows into LogRecord instances.

    Implementations must handle:
    - Timestamp normalization (timezone-aware UTC)
    - Rows that cannot be mapped (skip and log, never fail the batch)
    - Transport errors (log and re-raise)
    """

    @abstractmethod
    async def store_batch(self, records: Iterable[LogRecord]) -> int:
        """Persist a batch of records.

        Returns:
            Number of records stored.

        Raises:
            Exception: If the backend is unreachable.
        """

    @abstractmethod
    async def query_by_time_range(
        self, start: datetime, end: datetime, limit: int = 1000
    ) -> list[LogRecord]:
        """Retrieve records of any level within ``[start, end]``.

        Args:
            start: Window start (inclusive).
            end: Window end (inclusive).
            limit: Maximum number of records to return.

        Returns:
            Records in descending timestamp order. Empty list if none.

        Raises:
            Exception: If the backend is unreachable.
        """

    @abstractmethod
    async def query_errors(self, start: datetime, end: datetime) -> list[LogRecord]:
        """Retrieve ERROR and FATAL records within ``[start, end]``, newest first.

        Raises:
            Exception: If the backend is unreachable.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release connections held by the store."""


class ReportPort(ABC):
    """Port for presenting clustering results.

    Adapters may print to a terminal, write files, or post elsewhere.
    """

    @abstractmethod
    async def report(
        self,
        clusters: list[ErrorCluster],
        result: ScanResult,
        contexts: Mapping[str, CodeContext],
    ) -> None:
        """Present the outcome of one scan.

        Args:
            clusters: Clusters sorted by occurrence count, descending.
            result: Summary counts of the scan.
            contexts: Code context per cluster short id, for the clusters
                whose location could be resolved.

        Raises:
            Exception: If the output target cannot be written.
        """


# ============================================================================
# DRIVING PORTS (External systems call into core)
# ============================================================================


class ScanPort(ABC):
    """Port for running scans and inspecting their clusters.

    Called by the CLI and the composition root.
    """

    @abstractmethod
    async def execute_scan(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> ScanResult:
        """Query the store, cluster the errors, resolve context, and report.

        Args:
            start: Window start. Defaults to ``end`` minus the lookback.
            end: Window end. Defaults to now (UTC).

        Returns:
            Summary of the scan. The clusters stay available through
            ``get_clusters`` until the next scan.
        """

    @abstractmethod
    async def get_clusters(self) -> list[ErrorCluster]:
        """Clusters from the most recent scan, most frequent first."""

    @abstractmethod
    async def get_cluster(self, cluster_id: str) -> ErrorCluster | None:
        """Look up a cluster of the most recent scan by short id (case-insensitive)."""

    @abstractmethod
    async def get_code_context(self, cluster: ErrorCluster) -> CodeContext | None:
        """Resolve source context for a cluster's primary location.

        Returns:
            The context, or None when the location is unknown or its source
            cannot be found.
        """
