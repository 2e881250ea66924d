"""
Query - the leaf of the evaluation tree.

A query owns, per version, the reported total hits and the collected hits,
plus the relevance judgments its ranked metrics score against. Once its hit
streams are exhausted, notify_collected_metrics() folds each finished metric
value into every ancestor.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..metrics import AveragedMetric, Metric, RankedMetric
from ..validation import check_rank, check_total_hits, check_version
from .domain_member import DomainMember


class SearchResponse:
    """Hits collected for one version of a query."""

    def __init__(self, total_hits: int = 0):
        self.total_hits = total_hits
        self.last_rank = 0
        self._hits: List[Mapping[str, Any]] = []
        self._lock = threading.Lock()

    @property
    def hits(self) -> List[Mapping[str, Any]]:
        with self._lock:
            return list(self._hits)

    def collect(self, hit: Mapping[str, Any], rank: int) -> None:
        with self._lock:
            self._hits.append(hit)
            self.last_rank = rank


class Query(DomainMember):
    """A single searched phrase; leaf of the tree."""

    level = "query"

    def __init__(self, name: str, parent: Optional[DomainMember] = None):
        super().__init__(name, parent)
        self._results: Dict[str, SearchResponse] = {}
        self._relevant_documents: Dict[str, Any] = {}
        self._propagated: Set[Tuple[str, str]] = set()

    # =========================================================================
    # Setup
    # =========================================================================

    def prepare(
        self,
        metrics: Iterable[Metric],
        relevant_documents: Optional[Mapping[str, Any]] = None,
    ) -> "Query":
        """Attach metrics and hand them the relevance judgments."""
        for m in metrics:
            self.add_metric(m)
        if relevant_documents is not None:
            self.set_relevant_documents(relevant_documents)
        return self

    @property
    def relevant_documents(self) -> Dict[str, Any]:
        return dict(self._relevant_documents)

    def set_relevant_documents(self, judgments: Mapping[str, Any]) -> None:
        self._relevant_documents = dict(judgments)
        for m in self._ranked_metrics():
            m.set_relevant_documents(self._relevant_documents)

    # =========================================================================
    # Hit ingestion
    # =========================================================================

    @property
    def results(self) -> Dict[str, SearchResponse]:
        """Snapshot of version -> SearchResponse."""
        with self._lock:
            return dict(self._results)

    def _response(self, version: str) -> SearchResponse:
        with self._lock:
            response = self._results.get(version)
            if response is None:
                response = self._results[version] = SearchResponse()
            return response

    def total_hits(self, version: str) -> Optional[int]:
        response = self.results.get(version)
        return response.total_hits if response else None

    def hits(self, version: str) -> List[Mapping[str, Any]]:
        response = self.results.get(version)
        return response.hits if response else []

    def set_total_hits(self, total_hits: int, version: str) -> None:
        check_total_hits(total_hits)
        check_version(version)
        self._response(version).total_hits = total_hits
        for m in self._ranked_metrics():
            m.set_total_hits(total_hits, version)

    def collect(self, hit: Mapping[str, Any], rank: int, version: str) -> None:
        """
        Stream one hit into every ranked metric of this query.

        Hits must arrive in increasing rank order per version.
        """
        check_version(version)
        response = self._response(version)
        check_rank(rank, response.last_rank)
        for m in self._ranked_metrics():
            m.collect(hit, rank, version)
        response.collect(hit, rank)

    def store_results(self, version: str, total_hits: int, hits: Iterable[Mapping[str, Any]]) -> None:
        """Keep a version's hits for reference without streaming them into metrics."""
        check_total_hits(total_hits)
        check_version(version)
        response = self._response(version)
        response.total_hits = total_hits
        for hit in hits:
            response.collect(hit, response.last_rank + 1)

    def _ranked_metrics(self) -> List[RankedMetric]:
        return [m for m in self.metrics.values() if isinstance(m, RankedMetric)]

    # =========================================================================
    # Propagation
    # =========================================================================

    def notify_collected_metrics(
        self,
        metric_factory: Callable[[str], Metric] = AveragedMetric,
    ) -> int:
        """
        Fold every finished (metric, version) value into each ancestor.

        Each ancestor find-or-creates a metric of the same name through
        metric_factory (an AveragedMetric by default) and collects the value.
        A (metric, version) pair is propagated at most once, so calling this
        again only pushes pairs that appeared since the previous call.

        Returns:
            Number of (metric, version) pairs propagated by this call.
        """
        with self._lock:
            metrics = list(self._metrics.values())
        pending = []
        for m in metrics:
            for version, vf in m.versions.items():
                pending.append((m.name, version, vf.value()))
        with self._lock:
            pending = [p for p in pending if (p[0], p[1]) not in self._propagated]
            self._propagated.update((name, version) for name, version, _ in pending)

        for ancestor in self.ancestors():
            for name, version, value in pending:
                ancestor.metric_or_create(name, metric_factory).collect(version, value)

        return len(pending)
