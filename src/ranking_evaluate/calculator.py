"""
Fixed-scale decimal arithmetic shared by every metric.

All metric values are materialised as Decimal with SCALE fractional digits and
a single rounding policy (ROUNDING), so that folding the same values in any
order yields the same result on every run.

Ranked metrics report their ratios through ratio(), which guards the zero
denominator and rounds to METRIC_SCALE digits.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
from fractions import Fraction
from typing import Union

SCALE = 4
ROUNDING = ROUND_CEILING

METRIC_SCALE = 2
METRIC_ROUNDING = ROUND_HALF_UP

Number = Union[Decimal, int, float, str, Fraction]


def _quantum(scale: int) -> Decimal:
    return Decimal(1).scaleb(-scale)


def _exact(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, Fraction):
        return Decimal(value.numerator) / Decimal(value.denominator)
    if isinstance(value, float):
        # shortest repr, so 0.1 is 0.1 and not its binary expansion
        return Decimal(repr(value))
    return Decimal(value)


ZERO = Decimal(0).quantize(_quantum(SCALE))


def to_decimal(value: Number, scale: int = SCALE, rounding: str = ROUNDING) -> Decimal:
    """Materialise a number at the fixed scale."""
    return _exact(value).quantize(_quantum(scale), rounding=rounding)


def add(a: Number, b: Number) -> Decimal:
    """Fixed-scale sum of two numbers."""
    return to_decimal(to_decimal(a) + to_decimal(b))


def divide(dividend: Number, divisor: Number, scale: int = SCALE, rounding: str = ROUNDING) -> Decimal:
    """
    Fixed-scale quotient.

    Raises:
        ZeroDivisionError: If divisor is zero. Callers guard this upstream.
    """
    exact_divisor = _exact(divisor)
    if exact_divisor == 0:
        raise ZeroDivisionError("divide() called with a zero divisor")
    return (_exact(dividend) / exact_divisor).quantize(_quantum(scale), rounding=rounding)


def ratio(numerator: Number, denominator: Number) -> Decimal:
    """Ranked-metric ratio: 0 for a zero denominator, else METRIC_SCALE digits half-up."""
    if denominator == 0:
        return to_decimal(0, METRIC_SCALE, METRIC_ROUNDING)
    if isinstance(numerator, Fraction) or isinstance(denominator, Fraction):
        exact = Fraction(numerator) / Fraction(denominator)
        return divide(exact.numerator, exact.denominator, METRIC_SCALE, METRIC_ROUNDING)
    return divide(numerator, denominator, METRIC_SCALE, METRIC_ROUNDING)
