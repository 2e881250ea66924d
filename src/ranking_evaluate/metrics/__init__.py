"""
Metrics - per-version metric values.

Components:
- ValueFactory: immutable and accumulating value holders (value_factory.py)
- Metric: base class (metric.py)
- RankedMetric: precision, recall and F-measure at k from hit streams (ranked.py)
- AveragedMetric: running mean of propagated values (averaged.py)
- StaticMetric: externally computed values (static.py)
- Registry: metric names and factories (registry.py)
"""

from .value_factory import ValueFactory, ImmutableValueFactory, MutableValueFactory
from .metric import Metric
from .ranked import (
    ID_FIELD,
    RELEVANCE_THRESHOLD,
    RankWindow,
    RankedMetric,
    judgment_grade,
    PrecisionAtK,
    RecallAtK,
    FMeasureAtK,
)
from .averaged import AveragedMetric
from .static import StaticMetric
from .registry import DEFAULT_METRICS, MetricNameType, create_metric, create_metrics, parse_metric_name

__all__ = [
    "ValueFactory",
    "ImmutableValueFactory",
    "MutableValueFactory",
    "Metric",
    "ID_FIELD",
    "RELEVANCE_THRESHOLD",
    "RankWindow",
    "RankedMetric",
    "judgment_grade",
    "PrecisionAtK",
    "RecallAtK",
    "FMeasureAtK",
    "AveragedMetric",
    "StaticMetric",
    "DEFAULT_METRICS",
    "MetricNameType",
    "create_metric",
    "create_metrics",
    "parse_metric_name",
]
