"""Metric names (P@k, R@k, F<beta>@k) and the factories behind them."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

import click

from .ranked import ID_FIELD, FMeasureAtK, PrecisionAtK, RankedMetric, RecallAtK

METRIC_KINDS = ["P", "R", "F"]
DEFAULT_METRICS: List[str] = ["P@1", "P@2", "P@3", "P@10", "R@10", "F1@3", "F1@10", "F1@100"]

_F_PATTERN = re.compile(r"^F(\d+(?:\.\d+)?)$")


def parse_metric_name(name: str) -> Tuple[str, Optional[float], int]:
    """Parse a metric name into (kind, beta, k).

    Examples:
        "P@3" -> ("P", None, 3)
        "F1@10" -> ("F", 1, 10)
        "F0.5@3" -> ("F", 0.5, 3)

    Raises:
        ValueError: if the kind is unknown or k is not a positive integer.
    """
    if "@" not in name:
        raise ValueError(f"Metric name '{name}' has no cutoff (expected e.g. P@10)")
    base, k_str = name.split("@", 1)
    k = int(k_str)  # raises ValueError if not int
    if k <= 0:
        raise ValueError(f"k must be positive, got {k}")
    if base in ("P", "R"):
        return (base, None, k)
    match = _F_PATTERN.match(base)
    if match:
        beta_str = match.group(1)
        beta = float(beta_str) if "." in beta_str else int(beta_str)
        return ("F", beta, k)
    raise ValueError(f"Unknown metric '{base}'")


def create_metric(name: str, id_field: str = ID_FIELD) -> RankedMetric:
    """Create a fresh ranked metric instance from its name."""
    kind, beta, k = parse_metric_name(name)
    if kind == "P":
        return PrecisionAtK(name, k, id_field)
    if kind == "R":
        return RecallAtK(name, k, id_field)
    return FMeasureAtK(name, beta, k, id_field)


def create_metrics(names: Iterable[str] | None = None, id_field: str = ID_FIELD) -> List[RankedMetric]:
    """Fresh instances for each name (DEFAULT_METRICS when names is None)."""
    return [create_metric(n, id_field) for n in (DEFAULT_METRICS if names is None else names)]


class MetricNameType(click.ParamType):
    """Click parameter type for metric names (P@k, R@k, F<beta>@k)."""
    name = "metric"

    def convert(self, value, param, ctx):
        try:
            parse_metric_name(value)
            return value
        except ValueError as e:
            self.fail(
                f"{e}. Valid: P@k, R@k or F<beta>@k (e.g., P@10, F1@3).",
                param,
                ctx,
            )
