"""
Ranked metrics: values derived from a stream of ranked hits.

Each version keeps its own window (relevant hits within the top k, last rank
seen). Reading a version returns an ImmutableValueFactory snapshot of the
value computed from that window.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, Mapping, Optional

from ..calculator import ratio
from ..validation import check_cutoff, check_rank, check_total_hits, check_version
from .metric import Metric
from .value_factory import ImmutableValueFactory, ValueFactory

# Field holding the document identifier in a hit
ID_FIELD = "_id"

# Grades strictly above this are relevant
RELEVANCE_THRESHOLD = 0


@dataclass
class RankWindow:
    """Per-version streaming state of a ranked metric."""
    relevant: int = 0
    last_rank: int = 0
    total_hits: int = 0


class RankedMetric(Metric):
    """Base class for metrics computed over the top k hits of a ranking."""

    def __init__(self, name: str, k: int, id_field: str = ID_FIELD):
        super().__init__(name)
        self.k = check_cutoff(k)
        self.id_field = id_field
        self._relevant_documents: Dict[str, int] = {}
        self._windows: Dict[str, RankWindow] = {}

    # =========================================================================
    # Inputs
    # =========================================================================

    def set_relevant_documents(self, judgments: Mapping[str, Any]) -> None:
        """Judgments as doc id -> grade. Absent documents count as grade 0."""
        with self._lock:
            self._relevant_documents = {str(doc_id): judgment_grade(g) for doc_id, g in judgments.items()}

    @property
    def judged_relevant(self) -> int:
        """Number of judged documents above the relevance threshold."""
        return sum(1 for g in self._relevant_documents.values() if g > RELEVANCE_THRESHOLD)

    def is_relevant(self, hit: Mapping[str, Any]) -> bool:
        doc_id = hit.get(self.id_field)
        if doc_id is None:
            return False
        return self._relevant_documents.get(str(doc_id), 0) > RELEVANCE_THRESHOLD

    def set_total_hits(self, total_hits: int, version: str) -> None:
        """Record the total hit count reported for a version and open its window."""
        check_total_hits(total_hits)
        check_version(version)
        with self._lock:
            self._windows.setdefault(version, RankWindow()).total_hits = total_hits

    def collect(self, hit: Mapping[str, Any], rank: int, version: str) -> None:
        """
        Collect one hit at a 1-based rank.

        Hits beyond k are accepted and ignored for scoring. Out-of-order ranks
        raise InvalidInputError without touching the window.
        """
        check_version(version)
        with self._lock:
            window = self._windows.get(version)
            check_rank(rank, window.last_rank if window else 0)
            if window is None:
                window = self._windows[version] = RankWindow()
            window.last_rank = rank
            if rank <= self.k and self.is_relevant(hit):
                window.relevant += 1

    # =========================================================================
    # Values
    # =========================================================================

    def compute(self, window: RankWindow) -> Decimal:
        raise NotImplementedError

    @property
    def versions(self) -> Dict[str, ValueFactory]:
        with self._lock:
            return {v: ImmutableValueFactory(self, self.compute(w)) for v, w in self._windows.items()}

    def value_factory(self, version: str) -> Optional[ValueFactory]:
        with self._lock:
            window = self._windows.get(version)
            if window is None:
                return None
            return ImmutableValueFactory(self, self.compute(window))


class PrecisionAtK(RankedMetric):
    """Relevant hits in the top k, over k. Missing hits count as non-relevant."""

    def compute(self, window: RankWindow) -> Decimal:
        return ratio(window.relevant, self.k)


class RecallAtK(RankedMetric):
    """Relevant hits in the top k, over all judged-relevant documents (0 with no judgments)."""

    def compute(self, window: RankWindow) -> Decimal:
        return ratio(window.relevant, self.judged_relevant)


class FMeasureAtK(RankedMetric):
    """Weighted harmonic mean of precision and recall at the same k."""

    def __init__(self, name: str, beta: float | int, k: int, id_field: str = ID_FIELD):
        super().__init__(name, k, id_field)
        self.beta = beta

    def compute(self, window: RankWindow) -> Decimal:
        judged = self.judged_relevant
        precision = Fraction(window.relevant, self.k)
        recall = Fraction(window.relevant, judged) if judged else Fraction(0)
        beta_squared = Fraction(self.beta) ** 2
        denominator = beta_squared * precision + recall
        return ratio((1 + beta_squared) * precision * recall, denominator)


def judgment_grade(value: Any) -> int:
    """Judgment grade from a plain number or a {"gain": n} node."""
    if isinstance(value, Mapping):
        value = value.get("gain", 0)
    if value is None:
        return 0
    return int(value)
