"""Markdown file report adapter.

Implements ReportPort by writing one health report per scan into a
report directory. Useful for keeping an audit trail of scans.
"""

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path

from logsift.core.models import ClusterSeverity, CodeContext, ErrorCluster, ScanResult
from logsift.core.ports import ReportPort

from .formatting import count_severity, error_rate, health_status, truncate

logger = logging.getLogger(__name__)


class MarkdownReportAdapter(ReportPort):
    """Writes scan results as a markdown health report."""

    def __init__(self, report_dir: str, max_details: int = 10):
        """Initialize markdown report adapter.

        Args:
            report_dir: Directory where report files are written.
            max_details: Number of top clusters given a details section.

        Raises:
            ValueError: If report_dir is a filesystem root.
            OSError: If the directory cannot be created.
        """
        self.base_dir = Path(report_dir).resolve()
        if self.base_dir.parent == self.base_dir:
            raise ValueError(f"report_dir cannot be a filesystem root: {report_dir}")

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OSError(f"Failed to create report directory {report_dir}: {e}") from e

        self.max_details = max_details
        self._lock = asyncio.Lock()

    def report_path(self, result: ScanResult) -> Path:
        """File a scan's report is written to: ``health-report-YYYYMMDD-HHMMSS.md``."""
        return self.base_dir / f"health-report-{result.timestamp.strftime('%Y%m%d-%H%M%S')}.md"

    async def report(
        self,
        clusters: list[ErrorCluster],
        result: ScanResult,
        contexts: Mapping[str, CodeContext],
    ) -> None:
        """Write the health report for a scan."""
        content = self.format_report(clusters, result, contexts)
        report_file = self.report_path(result)

        async with self._lock:
            try:
                await asyncio.to_thread(report_file.write_text, content, encoding="utf-8")
            except OSError as e:
                logger.error(
                    f"Failed to write markdown report: {e}",
                    extra={"path": str(report_file)},
                    exc_info=True,
                )
                raise

        logger.info(f"Wrote health report to {report_file}")

    def format_report(
        self,
        clusters: list[ErrorCluster],
        result: ScanResult,
        contexts: Mapping[str, CodeContext],
    ) -> str:
        """Render the full report as markdown."""
        lines = [
            "# Error Health Report",
            "",
            f"**Generated:** {result.timestamp.isoformat()}",
            "",
            "## Summary",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Log Entries Scanned | {result.logs_scanned} |",
            f"| Error Entries | {result.errors_found} |",
            f"| Error Rate | {error_rate(result):.2f}% |",
            f"| Unique Error Clusters | {len(clusters)} |",
            f"| Clusters Merged | {result.clusters_merged} |",
            f"| Critical Clusters | {count_severity(clusters, ClusterSeverity.CRITICAL)} |",
            f"| High Priority Clusters | {count_severity(clusters, ClusterSeverity.HIGH)} |",
            "",
            "### Health Status",
            "",
            _health_line(clusters),
            "",
        ]

        if clusters:
            lines.extend(
                [
                    "## Error Clusters",
                    "",
                    "| ID | Severity | Count | Exception | Location |",
                    "|----|----------|-------|-----------|----------|",
                ]
            )
            for cluster in clusters:
                lines.append(
                    f"| {cluster.id} | {cluster.severity.value} | {cluster.occurrence_count} "
                    f"| `{cluster.exception_type or 'Unknown'}` "
                    f"| `{cluster.full_location or 'Unknown'}` |"
                )
            lines.append("")

            lines.append("## Cluster Details")
            lines.append("")
            for cluster in clusters[: self.max_details]:
                lines.extend(self._format_cluster(cluster, contexts.get(cluster.id)))

            hidden = len(clusters) - self.max_details
            if hidden > 0:
                lines.append(f"*... and {hidden} more clusters*")
                lines.append("")

        lines.append("---")
        return "\n".join(lines)

    @staticmethod
    def _format_cluster(cluster: ErrorCluster, context: CodeContext | None) -> list[str]:
        lines = [
            f"### {cluster.id} ({cluster.severity.value})",
            "",
            f"**Exception:** `{cluster.exception_type or 'Unknown'}`",
            "",
            f"- **Occurrences:** {cluster.occurrence_count}",
            f"- **First Seen:** {cluster.first_seen.isoformat() if cluster.first_seen else 'n/a'}",
            f"- **Last Seen:** {cluster.last_seen.isoformat() if cluster.last_seen else 'n/a'}",
        ]
        if cluster.full_location:
            lines.append(f"- **Location:** `{cluster.full_location}`")
        if cluster.message_template:
            lines.append(f"- **Message:** {truncate(cluster.message_template)}")
        lines.append("")

        if context is not None:
            lines.extend(
                [
                    "<details>",
                    f"<summary>Code context ({context.file_path})</summary>",
                    "",
                    "```",
                    context.formatted_context(),
                    "```",
                    "",
                    "</details>",
                    "",
                ]
            )
        return lines


def _health_line(clusters: list[ErrorCluster]) -> str:
    label, description = health_status(clusters)
    return f"**{label}** - {description}"
