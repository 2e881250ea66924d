"""A metric whose value is the mean of other, already computed, metric values."""

from __future__ import annotations

from decimal import Decimal

from ..calculator import Number
from ..validation import check_version
from .metric import Metric
from .value_factory import MutableValueFactory


class AveragedMetric(Metric):
    """
    Running mean per version, fed by collect(version, value).

    Used by every ancestor node to aggregate the values propagated by its
    descendant queries. Concurrent collect() calls on the same version are
    serialised by the version's MutableValueFactory.
    """

    def __init__(self, name: str, baseline: int = 0):
        super().__init__(name)
        self.baseline = baseline

    def collect(self, version: str, value: Number) -> Decimal:
        check_version(version)
        vf = self._value_factory_or_create(
            version, lambda: MutableValueFactory(self, self.baseline)
        )
        return vf.collect(value)
