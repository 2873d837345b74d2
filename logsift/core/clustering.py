"""Clustering of error records into fingerprint aggregates.

The engine owns every ErrorCluster it builds; clusters only change through
``update_cluster``.
"""

import logging
from collections.abc import Iterable

from .fingerprint import Fingerprinter
from .models import (
    ClusterSeverity,
    ErrorCluster,
    LogRecord,
    ParsedTrace,
    SourceLocation,
)

logger = logging.getLogger(__name__)

# Fixed occurrence-count thresholds, highest first
SEVERITY_THRESHOLDS: tuple[tuple[int, ClusterSeverity], ...] = (
    (100, ClusterSeverity.CRITICAL),
    (50, ClusterSeverity.HIGH),
    (10, ClusterSeverity.MEDIUM),
)


def classify_severity(occurrence_count: int) -> ClusterSeverity:
    """Map an occurrence count onto a severity tier."""
    for threshold, severity in SEVERITY_THRESHOLDS:
        if occurrence_count >= threshold:
            return severity
    return ClusterSeverity.LOW


def update_cluster(
    cluster: ErrorCluster,
    record: LogRecord,
    exception_type: str | None = None,
    message_template: str | None = None,
    location: SourceLocation | None = None,
) -> ErrorCluster:
    """Fold one record into a cluster aggregate.

    First/last seen follow timestamp order, not arrival order. Exception type,
    message template and primary location are set by the first record that
    supplies them and never overwritten.

    Returns:
        The same cluster, updated in place.
    """
    cluster.records.append(record)
    cluster.occurrence_count += 1

    if cluster.first_seen is None or record.timestamp < cluster.first_seen:
        cluster.first_seen = record.timestamp
    if cluster.last_seen is None or record.timestamp > cluster.last_seen:
        cluster.last_seen = record.timestamp

    if cluster.exception_type is None and exception_type is not None:
        cluster.exception_type = exception_type
    if cluster.message_template is None and message_template is not None:
        cluster.message_template = message_template
    if cluster.primary_location is None and location is not None:
        cluster.primary_location = location

    return cluster


def finalize_clusters(clusters: Iterable[ErrorCluster]) -> list[ErrorCluster]:
    """Assign severities and sort by occurrence count, most frequent first.

    The sort is stable so ties keep their relative order.
    """
    result = list(clusters)
    for cluster in result:
        cluster.severity = classify_severity(cluster.occurrence_count)
    return sorted(result, key=lambda c: c.occurrence_count, reverse=True)


class ClusterEngine:
    """Groups error records by fingerprint.

    Stateless across calls: every ``cluster`` invocation builds its own map,
    so independent batches may be clustered concurrently.
    """

    def __init__(self, fingerprinter: Fingerprinter | None = None):
        self.fingerprinter = fingerprinter or Fingerprinter()

    def cluster(self, records: Iterable[LogRecord]) -> list[ErrorCluster]:
        """Cluster a batch of records.

        Non-error records are ignored. Deterministic for a fixed input order.

        Returns:
            Clusters sorted by occurrence count, descending.
        """
        clusters: dict[str, ErrorCluster] = {}
        skipped = 0

        for record in records:
            if not record.is_error:
                skipped += 1
                continue

            trace = self.fingerprinter.trace_for(record)
            fingerprint = self.fingerprinter.fingerprint(record, trace)

            cluster = clusters.get(fingerprint)
            if cluster is None:
                cluster = ErrorCluster(
                    fingerprint=fingerprint,
                    id=self.fingerprinter.short_id(fingerprint),
                )
                clusters[fingerprint] = cluster

            self.absorb(cluster, record, trace)

        logger.debug(
            f"Clustered {sum(c.occurrence_count for c in clusters.values())} errors "
            f"into {len(clusters)} clusters ({skipped} non-error records skipped)"
        )
        return finalize_clusters(clusters.values())

    def absorb(
        self,
        cluster: ErrorCluster,
        record: LogRecord,
        trace: ParsedTrace | None = None,
    ) -> ErrorCluster:
        """Derive a record's type, template and location, then update the cluster."""
        if trace is None:
            trace = self.fingerprinter.trace_for(record)

        exception_type = trace.exception_type if trace is not None else None
        message_template = None
        if record.message is not None:
            message_template = self.fingerprinter.normalize_message(record.message)

        return update_cluster(
            cluster,
            record,
            exception_type=exception_type,
            message_template=message_template,
            location=self.location_for(record, trace),
        )

    def location_for(
        self, record: LogRecord, trace: ParsedTrace | None
    ) -> SourceLocation | None:
        """Explicit record location, else the first user frame of its trace."""
        if record.has_location:
            return SourceLocation(
                class_name=record.class_name,
                method_name=record.method_name,
                file_name=record.file_name,
                line_number=record.line_number,
            )

        if trace is None:
            return None
        frame = self.fingerprinter.classifier.first_user_frame(trace.frames)
        if frame is None:
            return None
        return SourceLocation(
            class_name=frame.class_name,
            method_name=frame.method_name,
            file_name=frame.file_name,
            line_number=frame.line_number if frame.line_number >= 0 else None,
        )
