"""HTML file report adapter.

Implements ReportPort by writing one self-contained, styled HTML health
report per scan. Same content as the markdown report, for viewing in a
browser.
"""

import asyncio
import html
import logging
from collections.abc import Mapping
from pathlib import Path

from logsift.core.models import ClusterSeverity, CodeContext, ErrorCluster, ScanResult
from logsift.core.ports import ReportPort

from .formatting import count_severity, error_rate, health_status, truncate

logger = logging.getLogger(__name__)

STYLE = """
:root {
  --bg: #0f0f23; --card: #16213e; --panel: #1a1a2e; --text: #e8e6e3; --muted: #9ca3af;
  --blue: #00d9ff; --green: #22c55e; --yellow: #eab308; --orange: #f97316; --red: #ef4444;
  --border: #374151;
}
* { box-sizing: border-box; margin: 0; padding: 0; }
body { font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; background: var(--bg);
       color: var(--text); padding: 2rem; }
.container { max-width: 1400px; margin: 0 auto; }
header, section { background: var(--card); border: 1px solid var(--border);
                  border-radius: 12px; padding: 1.5rem; margin-bottom: 2rem; }
h1, h2 { color: var(--blue); margin-bottom: 1rem; }
.meta { color: var(--muted); font-size: 0.9rem; }
.summary-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr));
                gap: 1rem; margin-bottom: 2rem; }
.summary-card { background: var(--card); border: 1px solid var(--border); border-radius: 12px;
                padding: 1rem; text-align: center; }
.summary-card h3 { font-size: 0.75rem; text-transform: uppercase; color: var(--muted); }
.summary-card .value { font-size: 2rem; font-weight: 700; color: var(--blue); }
.summary-card.critical .value { color: var(--red); }
.summary-card.warning .value { color: var(--orange); }
.health-status { display: inline-block; padding: 0.75rem 1.5rem; border-radius: 8px;
                 font-weight: 600; margin-bottom: 2rem; }
.health-status.critical { background: rgba(239, 68, 68, 0.2); color: var(--red); }
.health-status.warning { background: rgba(249, 115, 22, 0.2); color: var(--orange); }
.health-status.attention { background: rgba(234, 179, 8, 0.2); color: var(--yellow); }
.health-status.healthy { background: rgba(34, 197, 94, 0.2); color: var(--green); }
table { width: 100%; border-collapse: collapse; }
th, td { padding: 0.75rem; text-align: left; border-bottom: 1px solid var(--border); }
th { font-size: 0.75rem; text-transform: uppercase; color: var(--muted); }
code, pre { font-family: 'JetBrains Mono', 'Fira Code', monospace; }
.cluster-card { background: var(--panel); border-left: 4px solid var(--blue); border-radius: 8px;
                padding: 1rem; margin-bottom: 1rem; }
.cluster-card.critical { border-left-color: var(--red); }
.cluster-card.high { border-left-color: var(--orange); }
.cluster-card.medium { border-left-color: var(--yellow); }
.cluster-card.low { border-left-color: var(--green); }
.cluster-meta { color: var(--muted); font-size: 0.85rem; margin-top: 0.5rem; }
pre { background: var(--bg); padding: 1rem; border-radius: 8px; overflow-x: auto;
      margin-top: 0.5rem; font-size: 0.8rem; }
footer { text-align: center; color: var(--muted); font-size: 0.85rem; }
"""


def _esc(value: object) -> str:
    return html.escape(str(value))


class HtmlReportAdapter(ReportPort):
    """Writes scan results as a styled HTML health report."""

    def __init__(self, report_dir: str, max_details: int = 10):
        """Initialize HTML report adapter.

        Args:
            report_dir: Directory where report files are written.
            max_details: Number of top clusters given a details card.

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
        """File a scan's report is written to: ``health-report-YYYYMMDD-HHMMSS.html``."""
        return self.base_dir / f"health-report-{result.timestamp.strftime('%Y%m%d-%H%M%S')}.html"

    async def report(
        self,
        clusters: list[ErrorCluster],
        result: ScanResult,
        contexts: Mapping[str, CodeContext],
    ) -> None:
        """Write the HTML health report for a scan."""
        content = self.format_report(clusters, result, contexts)
        report_file = self.report_path(result)

        async with self._lock:
            try:
                await asyncio.to_thread(report_file.write_text, content, encoding="utf-8")
            except OSError as e:
                logger.error(
                    f"Failed to write HTML report: {e}",
                    extra={"path": str(report_file)},
                    exc_info=True,
                )
                raise

        logger.info(f"Wrote HTML health report to {report_file}")

    def format_report(
        self,
        clusters: list[ErrorCluster],
        result: ScanResult,
        contexts: Mapping[str, CodeContext],
    ) -> str:
        """Render the full report as an HTML document.

        All values taken from log data are escaped.
        """
        critical = count_severity(clusters, ClusterSeverity.CRITICAL)
        high = count_severity(clusters, ClusterSeverity.HIGH)
        label, description = health_status(clusters)

        parts = [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="UTF-8">',
            '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
            "<title>Error Health Report</title>",
            f"<style>{STYLE}</style>",
            "</head>",
            "<body>",
            '<div class="container">',
            "<header>",
            "<h1>Error Health Report</h1>",
            f'<p class="meta">Generated: {_esc(result.timestamp.isoformat())}</p>',
            "</header>",
            '<div class="summary-grid">',
            _summary_card("Log Entries Scanned", result.logs_scanned),
            _summary_card("Error Entries", result.errors_found),
            _summary_card("Error Rate", f"{error_rate(result):.2f}%"),
            _summary_card("Unique Error Clusters", len(clusters)),
            _summary_card("Clusters Merged", result.clusters_merged),
            _summary_card("Critical Clusters", critical, "critical" if critical else ""),
            _summary_card("High Priority Clusters", high, "warning" if high else ""),
            "</div>",
            f'<div class="health-status {label.lower()}">{label} - {_esc(description)}</div>',
        ]

        if clusters:
            parts.extend(
                [
                    "<section>",
                    "<h2>Error Clusters</h2>",
                    "<table>",
                    "<thead><tr><th>ID</th><th>Severity</th><th>Count</th>"
                    "<th>Exception</th><th>Location</th></tr></thead>",
                    "<tbody>",
                ]
            )
            for cluster in clusters:
                parts.append(
                    f"<tr><td>{_esc(cluster.id)}</td>"
                    f"<td>{cluster.severity.value}</td>"
                    f"<td>{cluster.occurrence_count}</td>"
                    f"<td><code>{_esc(cluster.exception_type or 'Unknown')}</code></td>"
                    f"<td><code>{_esc(cluster.full_location or 'Unknown')}</code></td></tr>"
                )
            parts.extend(["</tbody>", "</table>", "</section>"])

            parts.extend(["<section>", "<h2>Cluster Details</h2>"])
            for cluster in clusters[: self.max_details]:
                parts.extend(self._format_cluster(cluster, contexts.get(cluster.id)))

            hidden = len(clusters) - self.max_details
            if hidden > 0:
                parts.append(f'<p class="meta">... and {hidden} more clusters</p>')
            parts.append("</section>")

        parts.extend(
            [
                "<footer>Generated by logsift</footer>",
                "</div>",
                "</body>",
                "</html>",
            ]
        )
        return "\n".join(parts)

    @staticmethod
    def _format_cluster(cluster: ErrorCluster, context: CodeContext | None) -> list[str]:
        first_seen = cluster.first_seen.isoformat() if cluster.first_seen else "n/a"
        last_seen = cluster.last_seen.isoformat() if cluster.last_seen else "n/a"
        parts = [
            f'<div class="cluster-card {cluster.severity.value.lower()}">',
            f"<h3>{_esc(cluster.id)} ({cluster.severity.value})</h3>",
            f"<p><code>{_esc(cluster.exception_type or 'Unknown')}</code></p>",
            f'<p class="cluster-meta">Occurrences: {cluster.occurrence_count} '
            f"| First Seen: {_esc(first_seen)} | Last Seen: {_esc(last_seen)}</p>",
        ]
        if cluster.full_location:
            parts.append(f'<p class="cluster-meta">Location: <code>{_esc(cluster.full_location)}</code></p>')
        if cluster.message_template:
            parts.append(f'<p class="cluster-meta">Message: {_esc(truncate(cluster.message_template))}</p>')

        if context is not None:
            parts.extend(
                [
                    "<details>",
                    f"<summary>Code context ({_esc(context.file_path)})</summary>",
                    f"<pre>{_esc(context.formatted_context())}</pre>",
                    "</details>",
                ]
            )
        parts.append("</div>")
        return parts


def _summary_card(title: str, value: object, variant: str = "") -> str:
    css_class = f"summary-card {variant}".strip()
    return (
        f'<div class="{css_class}"><h3>{_esc(title)}</h3>'
        f'<div class="value">{_esc(value)}</div></div>'
    )
