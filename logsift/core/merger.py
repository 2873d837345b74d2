"""Similarity-based merging of near-duplicate clusters.

A greedy single pass: each surviving cluster absorbs every later cluster it
matches. The result depends on input order when similarity is not
transitive (A~B, B~C, A!~C); that behavior is kept deliberately rather than
computing a transitive closure.
"""

import logging

from .clustering import ClusterEngine, finalize_clusters
from .models import ErrorCluster
from .similarity import similarity

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.7


class ClusterMerger:
    """Folds clusters that describe the same defect into one."""

    def __init__(
        self,
        engine: ClusterEngine | None = None,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ):
        if not 0.0 <= similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be between 0 and 1")
        self.engine = engine or ClusterEngine()
        self.similarity_threshold = similarity_threshold

    def merge(self, clusters: list[ErrorCluster]) -> list[ErrorCluster]:
        """Merge similar clusters.

        Args:
            clusters: Clusters in priority order; earlier clusters survive.

        Returns:
            Surviving clusters with recalculated severities, sorted by
            occurrence count descending.
        """
        if len(clusters) <= 1:
            return clusters

        merged = [False] * len(clusters)
        survivors = []

        for i, primary in enumerate(clusters):
            if merged[i]:
                continue

            for j in range(i + 1, len(clusters)):
                if merged[j]:
                    continue
                secondary = clusters[j]
                if self.should_merge(primary, secondary):
                    logger.debug(f"Merging cluster {secondary.id} into {primary.id}")
                    for record in secondary.records:
                        self.engine.absorb(primary, record)
                    merged[j] = True

            survivors.append(primary)

        absorbed = len(clusters) - len(survivors)
        if absorbed:
            logger.info(f"Merged {absorbed} similar clusters into {len(survivors)}")

        return finalize_clusters(survivors)

    def should_merge(self, first: ErrorCluster, second: ErrorCluster) -> bool:
        """Same exception type with similar templates, or the same primary location."""
        if first.exception_type == second.exception_type and (
            similarity(first.message_template, second.message_template)
            >= self.similarity_threshold
        ):
            return True

        if first.primary_location is not None and first.primary_location.same_position(
            second.primary_location
        ):
            return True

        return False
