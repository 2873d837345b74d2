"""Stdout report adapter.

Implements ReportPort by printing a cluster table and per-cluster details
to the terminal with human-readable formatting.
"""

import asyncio
import logging
from collections.abc import Mapping

from logsift.core.models import CodeContext, ErrorCluster, ScanResult
from logsift.core.ports import ReportPort

logger = logging.getLogger(__name__)

RULE_WIDTH = 80


class StdoutReportAdapter(ReportPort):
    """Prints scan results to stdout with human-readable formatting."""

    def __init__(self, verbose: bool = False, max_details: int = 5):
        """Initialize stdout report adapter.

        Args:
            verbose: If True, include code context in cluster details.
            max_details: Number of top clusters to show in detail.
        """
        self.verbose = verbose
        self.max_details = max_details

    async def report(
        self,
        clusters: list[ErrorCluster],
        result: ScanResult,
        contexts: Mapping[str, CodeContext],
    ) -> None:
        """Print the summary, the cluster table and the top cluster details."""
        await asyncio.to_thread(print, self._format_summary(result))

        if not clusters:
            await asyncio.to_thread(print, "No errors found in the scanned window.")
            return

        await asyncio.to_thread(print, self._format_table(clusters))

        for cluster in clusters[: self.max_details]:
            details = self._format_cluster(cluster, contexts.get(cluster.id))
            await asyncio.to_thread(print, details)

        await asyncio.to_thread(print, "=" * RULE_WIDTH)

    @staticmethod
    def _format_summary(result: ScanResult) -> str:
        lines = [
            "=" * RULE_WIDTH,
            "ERROR CLUSTER REPORT",
            "=" * RULE_WIDTH,
            f"Scanned At: {result.timestamp.isoformat()}",
            f"Logs Scanned: {result.logs_scanned}",
            f"Errors Found: {result.errors_found}",
            f"Clusters: {result.clusters_created - result.clusters_merged}",
        ]
        if result.clusters_merged:
            lines.append(f"Merged Away: {result.clusters_merged}")
        return "\n".join(lines)

    @staticmethod
    def _format_table(clusters: list[ErrorCluster]) -> str:
        """Format the cluster overview table."""
        lines = [
            "",
            f"{'ID':<13} {'COUNT':>6}  {'SEVERITY':<9} {'EXCEPTION':<30} LOCATION",
            "-" * RULE_WIDTH,
        ]
        for cluster in clusters:
            exception = _short_name(cluster.exception_type) or "-"
            lines.append(
                f"{cluster.id:<13} {cluster.occurrence_count:>6}  "
                f"{cluster.severity.value:<9} {exception[:30]:<30} "
                f"{cluster.full_location or '-'}"
            )
        return "\n".join(lines)

    def _format_cluster(self, cluster: ErrorCluster, context: CodeContext | None) -> str:
        """Format one cluster's details section."""
        lines = [
            "",
            "-" * RULE_WIDTH,
            f"CLUSTER {cluster.id} [{cluster.severity.value}]",
            "-" * RULE_WIDTH,
            f"Exception: {cluster.exception_type or 'Unknown'}",
            f"Message: {cluster.message_template or ''}",
            f"Location: {cluster.full_location or 'Unknown'}",
            f"Occurrences: {cluster.occurrence_count}",
            f"First Seen: {cluster.first_seen}",
            f"Last Seen: {cluster.last_seen}",
        ]

        if self.verbose and context is not None:
            lines.extend(["", f"Code Context ({context.file_path}):", context.formatted_context()])

        return "\n".join(lines)


def _short_name(exception_type: str | None) -> str | None:
    if exception_type is None:
        return None
    return exception_type.rsplit(".", 1)[-1]
