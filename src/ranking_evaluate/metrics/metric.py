"""Metric base class: a named metric owning one ValueFactory per version."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Optional

from .value_factory import ValueFactory


class Metric:
    """
    A named metric with one value per version.

    Subclasses decide how values arrive: RankedMetric derives them from a
    stream of hits, AveragedMetric and StaticMetric receive finished values
    through collect(version, value).
    """

    def __init__(self, name: str):
        self.name = name
        self._values: Dict[str, ValueFactory] = {}
        self._lock = threading.Lock()

    @property
    def versions(self) -> Dict[str, ValueFactory]:
        """Snapshot of version -> ValueFactory, in first-seen order."""
        with self._lock:
            return dict(self._values)

    def value_factory(self, version: str) -> Optional[ValueFactory]:
        """Value holder for a version, or None if nothing was collected for it."""
        with self._lock:
            return self._values.get(version)

    def _value_factory_or_create(
        self, version: str, factory: Callable[[], ValueFactory]
    ) -> ValueFactory:
        with self._lock:
            vf = self._values.get(version)
            if vf is None:
                vf = factory()
                self._values[version] = vf
            return vf

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
