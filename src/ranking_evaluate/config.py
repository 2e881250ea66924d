"""
Evaluation settings, optionally loaded from a YAML file.

Example:

    evaluation:
      name: electric basses
      metrics: [P@1, P@3, F1@10]
      workers: 4
      averaging_baseline: 0
      id_field: _id
      on_missing: warn
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import List, Optional

import yaml

from .metrics import DEFAULT_METRICS, ID_FIELD, parse_metric_name
from .validation import OnMissing

ON_MISSING_CHOICES = ["error", "warn", "ignore"]


@dataclass(frozen=True)
class EvaluationConfig:
    """Settings of one evaluation run."""
    name: str = "evaluation"
    metrics: List[str] = field(default_factory=lambda: list(DEFAULT_METRICS))
    workers: int = 1
    averaging_baseline: int = 0
    id_field: str = ID_FIELD
    on_missing: OnMissing = "warn"

    def __post_init__(self) -> None:
        for m in self.metrics:
            parse_metric_name(m)
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ValueError(f"workers must be a positive integer, got {self.workers!r}")
        if not isinstance(self.averaging_baseline, int) or self.averaging_baseline < 0:
            raise ValueError(f"averaging_baseline must be a non-negative integer, got {self.averaging_baseline!r}")
        if self.on_missing not in ON_MISSING_CHOICES:
            raise ValueError(f"on_missing must be one of {ON_MISSING_CHOICES}, got {self.on_missing!r}")

    def merged(self, **overrides) -> "EvaluationConfig":
        """Return a copy with every override that is not None (or empty) applied."""
        changes = {k: v for k, v in overrides.items() if v is not None and v != ()}
        if "metrics" in changes:
            changes["metrics"] = list(changes["metrics"])
        return replace(self, **changes)


def load_config(path: Optional[Path]) -> EvaluationConfig:
    """
    Load an EvaluationConfig from YAML. None returns the defaults.

    The settings may sit under a top-level `evaluation:` key.

    Raises:
        ValueError: On unknown keys or invalid values.
    """
    if path is None:
        return EvaluationConfig()

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if isinstance(data, dict):
        data = data.get("evaluation", data)
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a mapping of settings, got {type(data).__name__}")

    known = {f.name for f in fields(EvaluationConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {sorted(unknown)}")
    if "metrics" in data:
        if not isinstance(data["metrics"], list):
            raise ValueError(f"'metrics' in {path} must be a list of metric names")
        data["metrics"] = [str(m) for m in data["metrics"]]
    return EvaluationConfig(**data)
