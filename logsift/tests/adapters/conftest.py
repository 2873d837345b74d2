"""Shared fixtures for report adapter tests."""

from datetime import datetime, timezone

import pytest

from logsift.core.clustering import ClusterEngine
from logsift.core.models import CodeContext, ErrorCluster, ScanResult
from logsift.tests.samples import sample_records


@pytest.fixture
def clusters() -> list[ErrorCluster]:
    """The NPE cluster (5 records) followed by the payment cluster (1 record)."""
    return ClusterEngine().cluster(sample_records())


@pytest.fixture
def scan_result() -> ScanResult:
    return ScanResult(
        logs_scanned=17,
        errors_found=6,
        clusters_created=2,
        timestamp=datetime(2024, 1, 15, 10, 31, 5, tzinfo=timezone.utc),
    )


@pytest.fixture
def contexts(clusters: list[ErrorCluster]) -> dict[str, CodeContext]:
    context = CodeContext(
        file_path="src/main/java/com/example/OrderService.java",
        target_line=23,
        class_name="OrderService",
        method_name="processOrder",
        method_body="public Order processOrder(String orderId) {\n}",
        surrounding_lines=(
            "        // This line might throw NullPointerException",
            "        String customerEmail = order.getCustomer().getEmail();",
        ),
        start_line=22,
        end_line=23,
        imports=("import java.util.List;",),
        class_fields=("private final OrderRepository repository;",),
    )
    return {clusters[0].id: context}
