"""
Value holders: one per (metric, version).

ImmutableValueFactory carries a value fixed at construction.
MutableValueFactory keeps a running sum and count and reports their mean.
"""

from __future__ import annotations

import threading
from decimal import Decimal
from typing import TYPE_CHECKING

from ..calculator import ZERO, Number, add, divide, to_decimal

if TYPE_CHECKING:
    from .metric import Metric


class ValueFactory:
    """Produces the numeric value of its owner metric for one version."""

    def __init__(self, owner: "Metric"):
        self.owner = owner

    def value(self) -> Decimal:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.owner.name!r}, {self.value()})"


class ImmutableValueFactory(ValueFactory):
    """Value set once, read-only thereafter."""

    def __init__(self, owner: "Metric", value: Number):
        super().__init__(owner)
        self._value = to_decimal(value)

    def value(self) -> Decimal:
        return self._value


class MutableValueFactory(ValueFactory):
    """
    Accumulating value: the mean of every value collected so far.

    The count starts at `baseline`. With baseline=0 the first collected value
    is reported as-is; baseline=1 averages the first value against an
    implicit zero sample.
    """

    def __init__(self, owner: "Metric", baseline: int = 0):
        super().__init__(owner)
        self._sum = ZERO
        self._count = baseline
        self._value = ZERO
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        return self._count

    @property
    def sum(self) -> Decimal:
        return self._sum

    def value(self) -> Decimal:
        return self._value

    def collect(self, additional_value: Number) -> Decimal:
        """Fold a value into the running mean; returns the new mean."""
        additional_value = to_decimal(additional_value)
        with self._lock:
            self._sum = add(self._sum, additional_value)
            self._count += 1
            self._value = divide(self._sum, self._count)
            return self._value
