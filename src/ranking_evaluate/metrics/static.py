"""A metric holding values computed elsewhere (e.g. replayed from storage)."""

from __future__ import annotations

from ..calculator import Number
from ..validation import check_version
from .metric import Metric
from .value_factory import ImmutableValueFactory


class StaticMetric(Metric):
    """Stores one immutable value per version; collecting a version again replaces it."""

    def collect(self, version: str, value: Number) -> None:
        check_version(version)
        with self._lock:
            self._values[version] = ImmutableValueFactory(self, value)
