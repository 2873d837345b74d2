"""JSON file report adapter.

Implements ReportPort by writing a ``{"summary": ..., "clusters": [...]}``
document for consumption by other tools.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from logsift.core.models import CodeContext, ErrorCluster, ScanResult
from logsift.core.ports import ReportPort

from .formatting import cluster_to_dict, context_to_dict, result_to_dict

logger = logging.getLogger(__name__)


class JsonReportAdapter(ReportPort):
    """Writes scan results as a JSON document."""

    def __init__(self, output_path: str, indent: int | None = 2):
        """Initialize JSON report adapter.

        Args:
            output_path: File to write. Its parent directory is created.
            indent: Indentation passed to ``json.dumps``; None for compact output.
        """
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.indent = indent
        self._lock = asyncio.Lock()

    async def report(
        self,
        clusters: list[ErrorCluster],
        result: ScanResult,
        contexts: Mapping[str, CodeContext],
    ) -> None:
        """Overwrite the output file with this scan's document."""
        document = self.build_document(clusters, result, contexts)
        content = json.dumps(document, indent=self.indent)

        async with self._lock:
            try:
                await asyncio.to_thread(self.output_path.write_text, content, encoding="utf-8")
            except OSError as e:
                logger.error(f"Failed to write JSON report to {self.output_path}: {e}", exc_info=True)
                raise

        logger.info(f"Wrote JSON report with {len(clusters)} clusters to {self.output_path}")

    @staticmethod
    def build_document(
        clusters: list[ErrorCluster],
        result: ScanResult,
        contexts: Mapping[str, CodeContext],
    ) -> dict[str, Any]:
        entries = []
        for cluster in clusters:
            entry = cluster_to_dict(cluster)
            context = contexts.get(cluster.id)
            entry["code_context"] = context_to_dict(context) if context is not None else None
            entries.append(entry)
        return {"summary": result_to_dict(result), "clusters": entries}
