"""Tests for CLI command handlers."""

from datetime import datetime, timedelta, timezone

import pytest

from logsift.adapters.cli.commands import CLICommandHandler, parse_duration
from logsift.core.clustering import ClusterEngine
from logsift.core.context import SourceReadError
from logsift.core.models import CodeContext, ErrorCluster
from logsift.tests.fakes import FakeScanPort
from logsift.tests.samples import sample_records


@pytest.fixture
def clusters() -> list[ErrorCluster]:
    return ClusterEngine().cluster(sample_records())


@pytest.fixture
def scanner(clusters: list[ErrorCluster]) -> FakeScanPort:
    context = CodeContext(
        file_path="OrderService.java",
        target_line=23,
        class_name="OrderService",
        method_name="processOrder",
        method_body=None,
        surrounding_lines=("String customerEmail = order.getCustomer().getEmail();",),
        start_line=23,
        end_line=23,
    )
    return FakeScanPort(clusters=clusters, contexts={clusters[0].id: context})


@pytest.fixture
def handler(scanner: FakeScanPort) -> CLICommandHandler:
    return CLICommandHandler(scanner)


class TestParseDuration:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("30s", timedelta(seconds=30)),
            ("15m", timedelta(minutes=15)),
            ("24H", timedelta(hours=24)),
            (" 7d ", timedelta(days=7)),
        ],
    )
    def test_valid(self, text: str, expected: timedelta) -> None:
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "10", "m", "1w", "-5m", "1.5h"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValueError, match="Invalid duration"):
            parse_duration(text)


class TestScan:
    @pytest.mark.asyncio
    async def test_scan_default_window(self, handler: CLICommandHandler, scanner: FakeScanPort) -> None:
        result = await handler.scan()

        assert result["status"] == "success"
        assert result["operation"] == "scan"
        assert result["data"]["errors_found"] == 6
        assert result["message"] == "Found 6 errors in 2 clusters"
        assert scanner.scan_calls == [(None, None)]

    @pytest.mark.asyncio
    async def test_scan_with_duration(self, handler: CLICommandHandler, scanner: FakeScanPort) -> None:
        before = datetime.now(timezone.utc)

        await handler.scan(last="2h")

        start, end = scanner.scan_calls[0]
        assert end is None
        assert abs((before - start) - timedelta(hours=2)) < timedelta(seconds=5)

    @pytest.mark.asyncio
    async def test_scan_invalid_duration(self, handler: CLICommandHandler, scanner: FakeScanPort) -> None:
        result = await handler.scan(last="soon")

        assert result["status"] == "error"
        assert "Invalid duration" in result["message"]
        assert scanner.scan_calls == []

    @pytest.mark.asyncio
    async def test_scan_failure(self, handler: CLICommandHandler, scanner: FakeScanPort) -> None:
        scanner.fail_with = RuntimeError("store down")

        result = await handler.scan()

        assert result == {"status": "error", "operation": "scan", "message": "store down"}


class TestListClusters:
    @pytest.mark.asyncio
    async def test_table(self, handler: CLICommandHandler, clusters: list[ErrorCluster]) -> None:
        result = await handler.list_clusters()

        assert result["status"] == "success"
        assert result["total"] == 2
        table = result["data"]
        assert clusters[0].id in table
        assert "java.lang.NullPointerException" in table
        assert "Total: 2 clusters (2 shown)" in table

    @pytest.mark.asyncio
    async def test_json_with_limit(self, handler: CLICommandHandler, clusters: list[ErrorCluster]) -> None:
        result = await handler.list_clusters(limit=1, output_format="json")

        assert result["total"] == 2
        assert len(result["data"]) == 1
        assert result["data"][0]["id"] == clusters[0].id
        assert result["data"][0]["occurrence_count"] == 5

    @pytest.mark.asyncio
    async def test_invalid_format(self, handler: CLICommandHandler) -> None:
        result = await handler.list_clusters(output_format="xml")

        assert result["status"] == "error"
        assert "Unsupported format" in result["message"]

    @pytest.mark.asyncio
    async def test_invalid_limit(self, handler: CLICommandHandler) -> None:
        result = await handler.list_clusters(limit=0)

        assert result["status"] == "error"


class TestClusterDetails:
    @pytest.mark.asyncio
    async def test_details(self, handler: CLICommandHandler, clusters: list[ErrorCluster]) -> None:
        result = await handler.get_cluster_details(clusters[0].id.lower())

        assert result["status"] == "success"
        assert result["data"]["id"] == clusters[0].id
        assert "samples" not in result["data"]

    @pytest.mark.asyncio
    async def test_verbose_samples(self, handler: CLICommandHandler, clusters: list[ErrorCluster]) -> None:
        result = await handler.get_cluster_details(clusters[0].id, verbose=True)

        samples = result["data"]["samples"]
        assert len(samples) == 3
        assert all("NullPointerException" in s["stack_trace"] for s in samples)

    @pytest.mark.asyncio
    async def test_not_found(self, handler: CLICommandHandler) -> None:
        result = await handler.get_cluster_details("ERR-00000000")

        assert result["status"] == "error"
        assert result["message"] == "Cluster not found: ERR-00000000"


class TestCodeContext:
    @pytest.mark.asyncio
    async def test_context(self, handler: CLICommandHandler, clusters: list[ErrorCluster]) -> None:
        result = await handler.get_code_context(clusters[0].id)

        assert result["status"] == "success"
        assert result["data"]["method_name"] == "processOrder"
        assert result["data"]["formatted"].startswith(" >>>   23 | ")

    @pytest.mark.asyncio
    async def test_no_source(self, handler: CLICommandHandler, clusters: list[ErrorCluster]) -> None:
        result = await handler.get_code_context(clusters[1].id)

        assert result["status"] == "error"
        assert "No source found for com.example.PaymentService.charge:89" in result["message"]

    @pytest.mark.asyncio
    async def test_read_error(
        self, handler: CLICommandHandler, scanner: FakeScanPort, clusters: list[ErrorCluster]
    ) -> None:
        scanner.fail_with = SourceReadError("OrderService.java", "permission denied")

        result = await handler.get_code_context(clusters[0].id)

        assert result["status"] == "error"
        assert result["cluster_id"] == clusters[0].id

    @pytest.mark.asyncio
    async def test_unknown_cluster(self, handler: CLICommandHandler) -> None:
        result = await handler.get_code_context("ERR-FFFFFFFF")

        assert result["status"] == "error"
        assert "Cluster not found" in result["message"]
