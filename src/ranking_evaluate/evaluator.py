"""
RelevanceEvaluator - drive the metric tree from runs and judgments.

The tree skeleton (nodes and the ancestors' metric maps) is built
sequentially in input order, then queries are evaluated and propagated on a
thread pool. Node order, metric order and every value are therefore the same
whatever the number of workers.
"""

from __future__ import annotations

import sys
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .config import EvaluationConfig
from .domain import Evaluation, Query
from .metrics import DEFAULT_METRICS, ID_FIELD, AveragedMetric, create_metrics
from .validation import OnMissing, handle_missing

# (corpus, topic, query_group)
GroupKey = Tuple[str, str, str]
# (corpus, topic, query_group, query)
QueryKey = Tuple[str, str, str, str]


@dataclass(frozen=True)
class QueryRun:
    """Ranked hits returned for one query by one version."""
    corpus: str
    topic: str
    query_group: str
    query: str
    version: str
    hits: Tuple[Mapping[str, Any], ...] = field(default_factory=tuple)
    total_hits: Optional[int] = None

    @property
    def group_key(self) -> GroupKey:
        return (self.corpus, self.topic, self.query_group)

    @property
    def query_key(self) -> QueryKey:
        return (self.corpus, self.topic, self.query_group, self.query)


class RelevanceEvaluator:
    """Compute ranked metrics per query and roll them up the tree."""

    def __init__(
        self,
        metrics: List[str] | None = None,
        name: str = "evaluation",
        workers: int = 1,
        averaging_baseline: int = 0,
        id_field: str = ID_FIELD,
        on_missing: OnMissing = "warn",
    ):
        self.metric_names = list(metrics) if metrics else list(DEFAULT_METRICS)
        self.name = name
        self.workers = workers
        self.averaging_baseline = averaging_baseline
        self.id_field = id_field
        self.on_missing = on_missing

    @classmethod
    def from_config(cls, config: EvaluationConfig) -> "RelevanceEvaluator":
        return cls(
            metrics=config.metrics,
            name=config.name,
            workers=config.workers,
            averaging_baseline=config.averaging_baseline,
            id_field=config.id_field,
            on_missing=config.on_missing,
        )

    def _averaged_metric(self, name: str) -> AveragedMetric:
        return AveragedMetric(name, baseline=self.averaging_baseline)

    def evaluate(
        self,
        runs: Iterable[QueryRun],
        judgments: Mapping[GroupKey, Mapping[str, Any]],
    ) -> Evaluation:
        """
        Build the evaluation tree for the given runs.

        Args:
            runs: One QueryRun per (query, version), hits in rank order.
            judgments: (corpus, topic, query_group) -> {doc_id: grade}.

        Returns:
            Evaluation whose every node carries the metrics for every version.
        """
        by_query: Dict[QueryKey, List[QueryRun]] = OrderedDict()
        for run in runs:
            by_query.setdefault(run.query_key, []).append(run)

        evaluation = Evaluation(self.name)
        queries: List[Tuple[Query, List[QueryRun]]] = []
        missing_groups = set()

        for key, query_runs in by_query.items():
            query = self._skeleton(evaluation, key)
            relevant = judgments.get(key[:3])
            if relevant is None:
                missing_groups.add(key[:3])
                relevant = {}
            query.prepare(create_metrics(self.metric_names, self.id_field), relevant)
            queries.append((query, query_runs))

        for group in sorted(missing_groups):
            handle_missing(
                self.on_missing,
                f"No judgments for query group {'/'.join(group)}: all hits count as non-relevant",
            )

        print(
            f"Evaluating {len(queries)} queries ({len(self.metric_names)} metrics) "
            f"with {self.workers} worker(s)",
            file=sys.stderr,
        )

        if self.workers == 1:
            for query, query_runs in queries:
                self._evaluate_query(query, query_runs)
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                futures = [pool.submit(self._evaluate_query, q, r) for q, r in queries]
                for f in futures:
                    f.result()

        return evaluation

    def _skeleton(self, evaluation: Evaluation, key: QueryKey) -> Query:
        """Create the query's path and its ancestors' metrics in a fixed order."""
        corpus_name, topic_name, group_name, query_name = key
        corpus = evaluation.find_or_create(corpus_name)
        topic = corpus.find_or_create(topic_name)
        group = topic.find_or_create(group_name)
        query = group.find_or_create(query_name)
        for node in (group, topic, corpus, evaluation):
            for m in self.metric_names:
                node.metric_or_create(m, self._averaged_metric)
        return query

    def _evaluate_query(self, query: Query, query_runs: List[QueryRun]) -> None:
        for run in query_runs:
            total = run.total_hits if run.total_hits is not None else len(run.hits)
            query.set_total_hits(total, run.version)
            for rank, hit in enumerate(run.hits, start=1):
                query.collect(hit, rank, run.version)
        query.notify_collected_metrics(self._averaged_metric)
