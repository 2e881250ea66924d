"""
Input checks for the metric and domain layers.

Checks either return the validated value or raise InvalidInputError. They run
before any shared state is touched, so a rejected call leaves metrics and
aggregates exactly as they were.
"""

from __future__ import annotations

import sys
from typing import Literal


class InvalidInputError(ValueError):
    """Raised when a caller violates the input contract (ranks, versions, tree shape)."""
    pass


OnMissing = Literal["error", "warn", "ignore"]


def check_version(version: str) -> str:
    if not isinstance(version, str) or not version:
        raise InvalidInputError(f"Version must be a non-empty string, got {version!r}")
    return version


def check_rank(rank: int, last_rank: int) -> int:
    """Ranks are 1-based and strictly increasing within one query/version stream."""
    if not isinstance(rank, int) or isinstance(rank, bool) or rank < 1:
        raise InvalidInputError(f"Rank must be a positive integer, got {rank!r}")
    if rank <= last_rank:
        raise InvalidInputError(
            f"Ranks must be strictly increasing: got {rank} after {last_rank}"
        )
    return rank


def check_cutoff(k: int) -> int:
    if not isinstance(k, int) or isinstance(k, bool) or k < 1:
        raise InvalidInputError(f"Cutoff k must be a positive integer, got {k!r}")
    return k


def check_total_hits(total_hits: int) -> int:
    if isinstance(total_hits, bool) or not isinstance(total_hits, int) or total_hits < 0:
        raise InvalidInputError(f"Total hits must be a non-negative integer, got {total_hits!r}")
    return total_hits


def handle_missing(on_missing: OnMissing, message: str) -> None:
    """Handle missing input data based on policy."""
    if on_missing == "error":
        raise InvalidInputError(message)
    elif on_missing == "warn":
        print(f"Warning: {message}", file=sys.stderr)
    # "ignore" does nothing
