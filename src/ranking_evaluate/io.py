"""
IO - Load and write evaluation inputs and results.

Supported files:
- runs: JSONL, one line per (query, version) with the ranked hits
- judgments: JSONL, one line per query group with relevant_documents
- evaluation: nested JSON of a finished evaluation tree (every level with metrics)
- records: JSONL of flat per-(query, version) metric records, replayed
  through propagation to rebuild the aggregates
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Literal, Tuple

from .calculator import to_decimal
from .domain import DomainMember, Evaluation, Query
from .evaluator import GroupKey, QueryRun
from .metrics import AveragedMetric, Metric, StaticMetric, judgment_grade

Format = Literal["evaluation", "records"]


def _read_jsonl(path: Path) -> Iterator[tuple[int, Dict[str, Any]]]:
    """Yield (line number, object) for every non-empty line."""
    text = path.read_text(encoding="utf-8")
    for lineno, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue
        try:
            yield lineno, json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path.name}:{lineno}: invalid JSON: {e.msg}") from e


def _field(obj: Dict[str, Any], key: str, path: Path, lineno: int) -> Any:
    if key not in obj:
        raise ValueError(f"{path.name}:{lineno}: missing field {key!r}")
    return obj[key]


# =============================================================================
# Runs and judgments
# =============================================================================


def load_runs(path: Path) -> List[QueryRun]:
    """
    Load ranked hits from a JSONL file.

    Each line: {"corpus", "topic", "query_group", "query", "version",
    "hits": [{"_id": ...}, ...], "total_hits"?}
    """
    runs: List[QueryRun] = []
    for lineno, obj in _read_jsonl(path):
        hits = _field(obj, "hits", path, lineno)
        if not isinstance(hits, list):
            raise ValueError(f"{path.name}:{lineno}: 'hits' must be a list")
        for position, hit in enumerate(hits, start=1):
            if not isinstance(hit, dict):
                raise ValueError(f"{path.name}:{lineno}: hit {position} must be an object, got {hit!r}")
        runs.append(QueryRun(
            corpus=str(_field(obj, "corpus", path, lineno)),
            topic=str(_field(obj, "topic", path, lineno)),
            query_group=str(_field(obj, "query_group", path, lineno)),
            query=str(_field(obj, "query", path, lineno)),
            version=str(_field(obj, "version", path, lineno)),
            hits=tuple(hits),
            total_hits=obj.get("total_hits"),
        ))
    print(f"Loaded {len(runs)} runs from {path}", file=sys.stderr)
    return runs


def load_judgments(path: Path) -> Dict[GroupKey, Dict[str, int]]:
    """
    Load relevance judgments from a JSONL file.

    Each line: {"corpus", "topic", "query_group",
    "relevant_documents": {doc_id: grade | {"gain": grade}}}.
    Lines for the same query group are merged.
    """
    judgments: Dict[GroupKey, Dict[str, int]] = {}
    for lineno, obj in _read_jsonl(path):
        key = (
            str(_field(obj, "corpus", path, lineno)),
            str(_field(obj, "topic", path, lineno)),
            str(_field(obj, "query_group", path, lineno)),
        )
        relevant = _field(obj, "relevant_documents", path, lineno)
        if not isinstance(relevant, dict):
            raise ValueError(f"{path.name}:{lineno}: 'relevant_documents' must be an object")
        judgments.setdefault(key, {}).update(
            {str(doc_id): judgment_grade(grade) for doc_id, grade in relevant.items()}
        )
    return judgments


# =============================================================================
# Evaluation tree
# =============================================================================


def load(
    path: Path,
    format: Format,
    metric_factory: Callable[[str], Metric] = AveragedMetric,
) -> Evaluation:
    """Load an Evaluation from a nested evaluation file or a records file.

    metric_factory builds the ancestors' metrics when records are replayed.
    """
    if format == "evaluation":
        return load_evaluation(path)
    elif format == "records":
        return load_query_records(path, metric_factory=metric_factory)
    raise ValueError(f"Unknown format: {format!r}")


def load_evaluation(path: Path) -> Evaluation:
    """Rebuild a finished evaluation tree; every level's metrics become StaticMetrics."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return evaluation_from_dict(data)


def evaluation_from_dict(data: Dict[str, Any]) -> Evaluation:
    evaluation = Evaluation(data.get("name", "evaluation"))
    _read_metrics(data, evaluation)

    for corpus_node in data.get("corpora", []):
        corpus = evaluation.find_or_create(corpus_node["name"])
        _read_metrics(corpus_node, corpus)
        for topic_node in corpus_node.get("topics", []):
            topic = corpus.find_or_create(topic_node["name"])
            _read_metrics(topic_node, topic)
            for group_node in topic_node.get("query-groups", []):
                group = topic.find_or_create(group_node["name"])
                _read_metrics(group_node, group)
                for query_node in group_node.get("query-evaluations", []):
                    query = group.find_or_create(query_node["query"])
                    _read_metrics(query_node, query)
                    _read_results(query_node, query)

    return evaluation


def _read_metrics(node: Dict[str, Any], member: DomainMember) -> None:
    for name, metric_node in node.get("metrics", {}).items():
        metric = StaticMetric(name)
        for version, version_node in metric_node.get("versions", {}).items():
            metric.collect(version, version_node["value"])
        member.add_metric(metric)


def _read_results(node: Dict[str, Any], query: Query) -> None:
    for version, content in node.get("results", {}).items():
        query.store_results(version, int(content.get("total-hits", 0)), content.get("hits", []))


def load_query_records(
    path: Path,
    name: str | None = None,
    metric_factory: Callable[[str], Metric] = AveragedMetric,
) -> Evaluation:
    """
    Rebuild an evaluation from flat per-(query, version) metric records.

    Each line: {"corpora", "topic", "queryGroup", "queryText", "version",
    "totalHits", "metrics": [{"name", "value"}]}. Query values are stored as
    StaticMetrics and propagated to every ancestor.

    Raises:
        ValueError: On a missing field or a repeated (query, version) record.
    """
    evaluation = Evaluation(name or path.stem)
    seen: Dict[Tuple[str, ...], int] = {}
    count = 0
    for lineno, record in _read_jsonl(path):
        version = str(_field(record, "version", path, lineno))
        corpus = evaluation.find_or_create(str(_field(record, "corpora", path, lineno)))
        topic = corpus.find_or_create(str(_field(record, "topic", path, lineno)))
        group = topic.find_or_create(str(_field(record, "queryGroup", path, lineno)))
        query = group.find_or_create(str(_field(record, "queryText", path, lineno)))
        key = (*query.path, version)
        if key in seen:
            raise ValueError(
                f"{path.name}:{lineno}: duplicate record for query {'/'.join(query.path[1:])!r} "
                f"version {version!r} (first seen on line {seen[key]})"
            )
        seen[key] = lineno
        query.set_total_hits(int(record.get("totalHits", 0)), version)

        for qm in record.get("metrics", []):
            metric = query.metric_or_create(qm["name"], StaticMetric)
            metric.collect(version, to_decimal(qm["value"]))

        query.notify_collected_metrics(metric_factory)
        count += 1

    print(f"Replayed {count} query records from {path}", file=sys.stderr)
    return evaluation


# =============================================================================
# Write
# =============================================================================


def evaluation_to_dict(evaluation: Evaluation) -> Dict[str, Any]:
    """Nested representation of an evaluation tree (inverse of evaluation_from_dict)."""
    return {
        "name": evaluation.name,
        "metrics": _metrics_dict(evaluation),
        "corpora": [
            {
                "name": corpus.name,
                "metrics": _metrics_dict(corpus),
                "topics": [
                    {
                        "name": topic.name,
                        "metrics": _metrics_dict(topic),
                        "query-groups": [
                            {
                                "name": group.name,
                                "metrics": _metrics_dict(group),
                                "query-evaluations": [
                                    _query_dict(query) for query in group.children
                                ],
                            }
                            for group in topic.children
                        ],
                    }
                    for topic in corpus.children
                ],
            }
            for corpus in evaluation.children
        ],
    }


def _metrics_dict(member: DomainMember) -> Dict[str, Any]:
    return {
        name: {
            "name": name,
            "versions": {
                version: {"value": float(vf.value())}
                for version, vf in metric.versions.items()
            },
        }
        for name, metric in member.metrics.items()
    }


def _query_dict(query: Query) -> Dict[str, Any]:
    return {
        "query": query.name,
        "metrics": _metrics_dict(query),
        "results": {
            version: {"total-hits": response.total_hits, "hits": response.hits}
            for version, response in query.results.items()
        },
    }


def write_evaluation(evaluation: Evaluation, path: Path) -> None:
    """Write an evaluation tree as nested JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(evaluation_to_dict(evaluation), indent=2) + "\n", encoding="utf-8")
    print(f"Wrote evaluation '{evaluation.name}' to {path}", file=sys.stderr)
