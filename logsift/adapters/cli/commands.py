"""CLI command implementations for logsift.

Provides human-initiated actions through the command-line interface.

This adapter maps CLI commands (scan, clusters, details, context) to ScanPort
operations. It handles CLI-specific formatting and error reporting.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from logsift.adapters.report.formatting import (
    cluster_to_dict,
    context_to_dict,
    result_to_dict,
)
from logsift.core.models import ErrorCluster
from logsift.core.ports import ScanPort

logger = logging.getLogger(__name__)

DURATION_PATTERN = re.compile(r"^(\d+)([smhd])$")
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}

SAMPLE_RECORDS = 3


def parse_duration(text: str) -> timedelta:
    """Parse durations such as ``30m``, ``1h`` or ``7d``.

    Raises:
        ValueError: If the text is not ``<number><s|m|h|d>``.
    """
    match = DURATION_PATTERN.match(text.strip().lower())
    if not match:
        raise ValueError(f"Invalid duration: {text!r} (expected e.g. 30m, 1h, 7d)")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


class CLICommandHandler:
    """Handles CLI commands by delegating to ScanPort.

    Every command returns a dictionary with ``status`` set to ``success`` or
    ``error``; failures are reported in ``message`` rather than raised.
    """

    def __init__(self, scanner: ScanPort):
        """Initialize the CLI command handler.

        Args:
            scanner: ScanPort implementation to execute commands.
        """
        self.scanner = scanner

    async def scan(self, last: str | None = None) -> dict[str, Any]:
        """Run a scan over the last ``last`` (e.g. ``24h``), or the configured lookback."""
        try:
            start = None
            if last is not None:
                start = datetime.now(timezone.utc) - parse_duration(last)
            result = await self.scanner.execute_scan(start=start)
        except Exception as e:
            logger.error(f"Scan failed: {e}", exc_info=True)
            return {"status": "error", "operation": "scan", "message": str(e)}

        clusters = result.clusters_created - result.clusters_merged
        return {
            "status": "success",
            "operation": "scan",
            "message": f"Found {result.errors_found} errors in {clusters} clusters",
            "data": result_to_dict(result),
        }

    async def list_clusters(
        self, limit: int = 10, output_format: str = "table"
    ) -> dict[str, Any]:
        """List clusters from the last scan, most frequent first.

        Args:
            limit: Maximum number of clusters to show.
            output_format: 'table' for text, 'json' for a list of dicts.
        """
        if output_format not in ("table", "json"):
            return {
                "status": "error",
                "operation": "list_clusters",
                "message": f"Unsupported format: {output_format}",
            }
        if limit <= 0:
            return {
                "status": "error",
                "operation": "list_clusters",
                "message": "limit must be positive",
            }

        try:
            clusters = await self.scanner.get_clusters()
        except Exception as e:
            logger.error(f"Failed to list clusters: {e}", exc_info=True)
            return {"status": "error", "operation": "list_clusters", "message": str(e)}

        shown = clusters[:limit]
        if output_format == "json":
            data: Any = [cluster_to_dict(cluster) for cluster in shown]
        else:
            data = self._format_table(shown, total=len(clusters))

        return {
            "status": "success",
            "operation": "list_clusters",
            "total": len(clusters),
            "data": data,
        }

    async def get_cluster_details(
        self, cluster_id: str, verbose: bool = False
    ) -> dict[str, Any]:
        """Details for one cluster; ``verbose`` adds sample records with traces."""
        try:
            cluster = await self.scanner.get_cluster(cluster_id)
        except Exception as e:
            logger.error(f"Failed to get cluster details: {e}", exc_info=True)
            return {"status": "error", "operation": "get_details", "message": str(e)}

        if cluster is None:
            return self._not_found("get_details", cluster_id)

        details = cluster_to_dict(cluster)
        if verbose:
            samples = cluster.sample_records(SAMPLE_RECORDS)
            details["samples"] = [
                {
                    "timestamp": record.timestamp.isoformat(),
                    "message": record.message,
                    "trace_id": record.trace_id,
                    "stack_trace": record.stack_trace,
                }
                for record in samples
            ]

        return {"status": "success", "operation": "get_details", "data": details}

    async def get_code_context(self, cluster_id: str) -> dict[str, Any]:
        """Source context around a cluster's primary location."""
        try:
            cluster = await self.scanner.get_cluster(cluster_id)
            if cluster is None:
                return self._not_found("get_code_context", cluster_id)
            context = await self.scanner.get_code_context(cluster)
        except Exception as e:
            logger.error(f"Failed to resolve code context: {e}", exc_info=True)
            return {
                "status": "error",
                "operation": "get_code_context",
                "cluster_id": cluster_id,
                "message": str(e),
            }

        if context is None:
            return {
                "status": "error",
                "operation": "get_code_context",
                "cluster_id": cluster_id,
                "message": f"No source found for {cluster.full_location or 'unknown location'}",
            }

        data = context_to_dict(context)
        data["formatted"] = context.formatted_context()
        return {"status": "success", "operation": "get_code_context", "data": data}

    @staticmethod
    def _not_found(operation: str, cluster_id: str) -> dict[str, Any]:
        return {
            "status": "error",
            "operation": operation,
            "cluster_id": cluster_id,
            "message": f"Cluster not found: {cluster_id}",
        }

    @staticmethod
    def _format_table(clusters: list[ErrorCluster], total: int) -> str:
        """Format clusters as a fixed-width text table."""
        lines = [f"{'ID':<13} {'COUNT':>6}  {'SEVERITY':<9} EXCEPTION", "-" * 72]
        for cluster in clusters:
            lines.append(
                f"{cluster.id:<13} {cluster.occurrence_count:>6}  "
                f"{cluster.severity.value:<9} {cluster.exception_type or 'Unknown'}"
            )
        lines.append("-" * 72)
        lines.append(f"Total: {total} clusters ({len(clusters)} shown)")
        return "\n".join(lines)
