"""Plain-dict views and summary figures for clusters and scan results.

Shared by the report adapters and the CLI's JSON output.
"""

from typing import Any

from logsift.core.models import ClusterSeverity, CodeContext, ErrorCluster, ScanResult

MESSAGE_PREVIEW_LENGTH = 100


def _isoformat(value) -> str | None:
    return value.isoformat() if value is not None else None


def result_to_dict(result: ScanResult) -> dict[str, Any]:
    return {
        "logs_scanned": result.logs_scanned,
        "errors_found": result.errors_found,
        "clusters_created": result.clusters_created,
        "clusters_merged": result.clusters_merged,
        "timestamp": result.timestamp.isoformat(),
    }


def cluster_to_dict(cluster: ErrorCluster, include_records: bool = False) -> dict[str, Any]:
    """Summary fields of a cluster; member records only when asked for."""
    location = cluster.primary_location
    data: dict[str, Any] = {
        "id": cluster.id,
        "fingerprint": cluster.fingerprint,
        "exception_type": cluster.exception_type,
        "message_template": cluster.message_template,
        "location": cluster.full_location or None,
        "file_name": location.file_name if location else None,
        "line_number": location.line_number if location else None,
        "occurrence_count": cluster.occurrence_count,
        "severity": cluster.severity.value,
        "first_seen": _isoformat(cluster.first_seen),
        "last_seen": _isoformat(cluster.last_seen),
    }
    if include_records:
        data["records"] = [
            {
                "timestamp": record.timestamp.isoformat(),
                "level": record.level.value,
                "logger": record.logger,
                "message": record.message,
                "trace_id": record.trace_id,
                "thread_name": record.thread_name,
                "stack_trace": record.stack_trace,
            }
            for record in cluster.records
        ]
    return data


def context_to_dict(context: CodeContext) -> dict[str, Any]:
    return {
        "file_path": context.file_path,
        "target_line": context.target_line,
        "class_name": context.class_name,
        "method_name": context.method_name,
        "method_body": context.method_body,
        "start_line": context.start_line,
        "end_line": context.end_line,
        "surrounding_lines": list(context.surrounding_lines),
        "imports": list(context.imports),
        "class_fields": list(context.class_fields),
    }


def count_severity(clusters: list[ErrorCluster], severity: ClusterSeverity) -> int:
    return sum(1 for cluster in clusters if cluster.severity == severity)


def error_rate(result: ScanResult) -> float:
    """Error entries as a percentage of entries scanned."""
    if result.logs_scanned == 0:
        return 0.0
    return result.errors_found * 100.0 / result.logs_scanned


def health_status(clusters: list[ErrorCluster]) -> tuple[str, str]:
    """Overall health label and its description, driven by the worst severity."""
    if count_severity(clusters, ClusterSeverity.CRITICAL):
        return "CRITICAL", "Immediate attention required"
    if count_severity(clusters, ClusterSeverity.HIGH):
        return "WARNING", "High priority issues detected"
    if clusters:
        return "ATTENTION", "Some errors detected"
    return "HEALTHY", "No errors detected"


def truncate(text: str, length: int = MESSAGE_PREVIEW_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[: length - 3] + "..."
