"""
Report - read-side helpers over a finished evaluation tree.

- Listings: metric names, versions, corpus/topic/query-group names
- filter_evaluation: rebuild a smaller tree from the matching queries
- walk / to_dataframe: flatten the tree into rows for display and export
"""

from __future__ import annotations

from typing import Callable, Collection, Dict, Iterator, List, Optional, Sequence

import pandas as pd

from .domain import LEVELS, DomainMember, Evaluation, Query
from .metrics import AveragedMetric, Metric, StaticMetric

REPORT_COLUMNS = ["Level", "Path", "Metric", "Version", "Value"]


# =============================================================================
# Listings
# =============================================================================


def metric_names(evaluation: Evaluation) -> List[str]:
    """Metric names at the root, in insertion order."""
    return list(evaluation.metrics.keys())


def versions(evaluation: Evaluation) -> List[str]:
    """All versions carried by the root metrics, sorted."""
    seen = set()
    for metric in evaluation.metrics.values():
        seen.update(metric.versions.keys())
    return sorted(seen)


def corpus_names(evaluation: Evaluation) -> List[str]:
    return [c.name for c in evaluation.children]


def topic_names(evaluation: Evaluation, corpus: Optional[str]) -> List[str]:
    if corpus is None:
        return []
    node = evaluation.child(corpus)
    return [t.name for t in node.children] if node else []


def query_group_names(evaluation: Evaluation, corpus: Optional[str], topic: Optional[str]) -> List[str]:
    if corpus is None or topic is None:
        return []
    corpus_node = evaluation.child(corpus)
    topic_node = corpus_node.child(topic) if corpus_node else None
    return [g.name for g in topic_node.children] if topic_node else []


# =============================================================================
# Filtering
# =============================================================================


def _name_matches(member: DomainMember, name: Optional[str]) -> bool:
    return not name or member.name == name


def filter_evaluation(
    evaluation: Evaluation,
    corpus: Optional[str] = None,
    topic: Optional[str] = None,
    query_group: Optional[str] = None,
    metrics: Optional[Collection[str]] = None,
    versions: Optional[Collection[str]] = None,
    metric_factory: Callable[[str], Metric] = AveragedMetric,
) -> Evaluation:
    """
    Build a new evaluation from the queries under the given names.

    Empty/None filters match everything. Query metrics are copied (restricted
    to the requested metrics and versions) and propagated again, so every
    ancestor of the result aggregates only the selected queries.

    metric_factory builds the ancestors' metrics; pass an AveragedMetric
    factory with the baseline the source tree was evaluated with to keep its
    averaging.
    """
    filtered = Evaluation(evaluation.name)

    for c in evaluation.children:
        if not _name_matches(c, corpus):
            continue
        for t in c.children:
            if not _name_matches(t, topic):
                continue
            for g in t.children:
                if not _name_matches(g, query_group):
                    continue
                for q in g.children:
                    target_group = (
                        filtered.find_or_create(c.name)
                        .find_or_create(t.name)
                        .find_or_create(g.name)
                    )
                    _copy_query(q, target_group.find_or_create(q.name), metrics, versions, metric_factory)

    return filtered


def _copy_query(
    source: Query,
    target: Query,
    metrics: Optional[Collection[str]],
    versions: Optional[Collection[str]],
    metric_factory: Callable[[str], Metric],
) -> None:
    for version, response in source.results.items():
        if versions and version not in versions:
            continue
        target.store_results(version, response.total_hits, response.hits)

    for name, metric in source.metrics.items():
        if metrics and name not in metrics:
            continue
        copy = StaticMetric(name)
        for version, vf in metric.versions.items():
            if versions and version not in versions:
                continue
            copy.collect(version, vf.value())
        target.add_metric(copy)

    target.notify_collected_metrics(metric_factory)


# =============================================================================
# Flattening
# =============================================================================


def walk(member: DomainMember) -> Iterator[DomainMember]:
    """Depth-first, pre-order traversal in insertion order."""
    yield member
    for child in member.children:
        yield from walk(child)


def to_rows(
    member: DomainMember,
    levels: Optional[Sequence[str]] = None,
    metrics: Optional[Collection[str]] = None,
) -> List[Dict[str, object]]:
    """One row per (node, metric, version) for nodes at the given levels."""
    if levels:
        unknown = set(levels) - set(LEVELS)
        if unknown:
            raise ValueError(f"Unknown levels {sorted(unknown)}; valid: {LEVELS}")

    rows = []
    for node in walk(member):
        if levels and node.level not in levels:
            continue
        path = "/".join(node.path)
        for name, metric in node.metrics.items():
            if metrics and name not in metrics:
                continue
            values = metric.versions
            for version in sorted(values):
                rows.append({
                    "Level": node.level,
                    "Path": path,
                    "Metric": name,
                    "Version": version,
                    "Value": float(values[version].value()),
                })
    return rows


def to_dataframe(
    member: DomainMember,
    levels: Optional[Sequence[str]] = None,
    metrics: Optional[Collection[str]] = None,
) -> pd.DataFrame:
    """Flatten the tree under member into a DataFrame with REPORT_COLUMNS."""
    return pd.DataFrame(to_rows(member, levels, metrics), columns=REPORT_COLUMNS)


def pivot_versions(df: pd.DataFrame) -> pd.DataFrame:
    """One column per version, rows keyed by (Level, Path, Metric) in first-seen order."""
    if df.empty:
        return df
    keys = ["Level", "Path", "Metric"]
    table = df.pivot_table(index=keys, columns="Version", values="Value", sort=False)
    table = table.reindex(
        index=pd.MultiIndex.from_frame(df[keys].drop_duplicates()),
        columns=sorted(df["Version"].unique()),
    )
    table.columns.name = None
    return table.reset_index()
