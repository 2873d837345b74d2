"""Scan cycle logic for the clustering pipeline.

This module implements a single scan: retrieve a window of log records
from the store, cluster the errors, optionally merge near-duplicates,
resolve code context, and hand everything to the report port.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

from .clustering import ClusterEngine
from .context import CodeContextResolver, SourceReadError
from .merger import ClusterMerger
from .models import CodeContext, ErrorCluster, ScanResult
from .ports import LogStorePort, ReportPort, ScanPort

logger = logging.getLogger(__name__)


class ScanService(ScanPort):
    """Implements the scan cycle.

    This service orchestrates:
    - Querying the log store for a time window
    - Fingerprinting and clustering error records
    - Merging similar clusters (when a merger is configured)
    - Resolving code context for each cluster's location
    - Reporting the results
    """

    def __init__(
        self,
        store: LogStorePort,
        engine: ClusterEngine,
        merger: ClusterMerger | None = None,
        resolver: CodeContextResolver | None = None,
        report: ReportPort | None = None,
        lookback_minutes: int = 60,
        query_limit: int = 1000,
    ):
        self.store = store
        self.engine = engine
        self.merger = merger
        self.resolver = resolver
        self.report = report
        self.lookback_minutes = lookback_minutes
        self.query_limit = query_limit
        self._clusters: list[ErrorCluster] = []

    async def execute_scan(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> ScanResult:
        """Cluster the errors logged in a time window.

        Returns a summary of what was found. A store failure is logged and
        yields an empty result; the previous scan's clusters are kept.
        """
        now = datetime.now(timezone.utc)
        end = end or now
        start = start or end - timedelta(minutes=self.lookback_minutes)

        try:
            records = await self.store.query_by_time_range(start, end, self.query_limit)
        except Exception as e:
            logger.error(f"Failed to fetch log records from store: {e}", exc_info=True)
            return ScanResult(
                logs_scanned=0,
                errors_found=0,
                clusters_created=0,
                timestamp=now,
            )

        errors = [record for record in records if record.is_error]
        logger.info(
            f"Scanning {len(records)} records from {start.isoformat()} "
            f"to {end.isoformat()} ({len(errors)} errors)"
        )

        clusters = self.engine.cluster(errors)
        created = len(clusters)
        if self.merger is not None:
            clusters = self.merger.merge(clusters)
        self._clusters = clusters

        result = ScanResult(
            logs_scanned=len(records),
            errors_found=len(errors),
            clusters_created=created,
            timestamp=now,
            clusters_merged=created - len(clusters),
        )

        if self.report is not None:
            contexts = self._resolve_contexts(clusters)
            try:
                await self.report.report(clusters, result, contexts)
            except Exception as e:
                logger.error(f"Failed to report scan results: {e}", exc_info=True)

        return result

    async def get_clusters(self) -> list[ErrorCluster]:
        return list(self._clusters)

    async def get_cluster(self, cluster_id: str) -> ErrorCluster | None:
        wanted = cluster_id.strip().upper()
        for cluster in self._clusters:
            if cluster.id.upper() == wanted:
                return cluster
        return None

    async def get_code_context(self, cluster: ErrorCluster) -> CodeContext | None:
        """Resolve context by class name first, then by file name.

        Raises:
            SourceReadError: If a located source file cannot be read.
        """
        return self._context_for(cluster)

    def _resolve_contexts(self, clusters: list[ErrorCluster]) -> Mapping[str, CodeContext]:
        if self.resolver is None:
            return {}

        contexts = {}
        for cluster in clusters:
            try:
                context = self._context_for(cluster)
            except SourceReadError as e:
                logger.warning(f"Skipping code context for cluster {cluster.id}: {e}")
                continue
            if context is not None:
                contexts[cluster.id] = context
        return contexts

    def _context_for(self, cluster: ErrorCluster) -> CodeContext | None:
        location = cluster.primary_location
        if self.resolver is None or location is None or location.line_number is None:
            return None

        context = self.resolver.resolve_by_class(location.class_name, location.line_number)
        if context is None and location.file_name:
            context = self.resolver.resolve_by_file_name(
                location.file_name, location.line_number
            )
        return context
