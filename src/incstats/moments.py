"""
Incremental Moment Tracking.

Welford's single-pass algorithm, extended with batch counts, its exact
algebraic inverse for removal, the parallel-moments merge and linear scaling.

Mathematical Background:
    The accumulator keeps ``n``, ``S = sum(x)`` and the sum of squared errors
    ``M2 = sum((x - mean)^2)``. Adding ``c`` copies of ``x`` is the parallel
    merge with a zero-variance cluster:

        delta = x - mean
        M2'   = M2 + delta^2 * c * n / (n + c)

    Removing ``c`` copies of ``x`` inverts the update:

        mean' = (S - c*x) / (n - c)
        M2'   = M2 - (x - mean) * (x - mean') * c

    Merging two accumulators:

        M2 = M2_a + M2_b + (mean_b - mean_a)^2 * n_a * n_b / (n_a + n_b)
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, Optional

from incstats._config import config
from incstats._errors import (
    ArgumentError,
    CountUnderflowError,
    EmptyAccumulatorError,
    ensure_count,
    ensure_finite,
)
from incstats.snapshot import Snapshot

logger = logging.getLogger("incstats.moments")

__all__ = ["MomentAccumulator"]


class MomentAccumulator:
    """
    Numerically stable running mean/variance with add, remove and merge.

    The accumulator is mutable and owned by a single caller; it performs no
    locking.

    Attributes:
        count (int): Number of observations
        count_zero (int): Number of observations exactly equal to zero
        sum (float): Sum of all observations
        sum_squared_error (float): Running sum of squared deviations

    Example:
        >>> acc = MomentAccumulator.from_values([1, 2, 3])
        >>> acc.add(5, count=4)
        >>> acc.remove(1)
        >>> acc.count, acc.sum
        (6, 25.0)
    """

    __slots__ = ("_count", "_count_zero", "_sum", "_sse")

    def __init__(self):
        self._count = 0
        self._count_zero = 0
        self._sum = 0.0
        self._sse = 0.0

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_values(cls, values: Iterable[float]) -> "MomentAccumulator":
        """Create an accumulator holding each of ``values`` once."""
        acc = cls()
        for value in values:
            acc.add(value)
        return acc

    @classmethod
    def from_state(
        cls,
        count: int,
        count_zero: int = 0,
        sum: float = 0.0,
        sse: float = 0.0,
    ) -> "MomentAccumulator":
        """
        Rebuild an accumulator from raw state without replaying history.

        Raises:
            ArgumentError: If the counts are inconsistent
        """
        count = int(count)
        count_zero = int(count_zero)
        if count < 0 or count_zero < 0 or count_zero > count:
            raise ArgumentError(
                f"Inconsistent moment state: count={count}, count_zero={count_zero}"
            )
        acc = cls()
        if count == 0:
            return acc
        acc._count = count
        acc._count_zero = count_zero
        acc._sum = float(sum)
        acc._sse = 0.0 if count == 1 else float(sse)
        return acc

    def to_state(self) -> Dict[str, Any]:
        """Raw state sufficient for :meth:`from_state`."""
        return {
            "count": self._count,
            "count_zero": self._count_zero,
            "sum": self._sum,
            "sse": self._sse,
        }

    def copy(self) -> "MomentAccumulator":
        acc = MomentAccumulator.__new__(MomentAccumulator)
        acc._count = self._count
        acc._count_zero = self._count_zero
        acc._sum = self._sum
        acc._sse = self._sse
        return acc

    __copy__ = copy

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def count(self) -> int:
        return self._count

    @property
    def count_zero(self) -> int:
        return self._count_zero

    @property
    def sum(self) -> float:
        return self._sum

    @property
    def sum_squared_error(self) -> float:
        return self._sse

    @property
    def mean(self) -> float:
        """Sample mean, NaN when empty."""
        if self._count == 0:
            return math.nan
        return self._sum / self._count

    def is_empty(self) -> bool:
        return self._count == 0

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add(self, value: float, count: int = 1) -> None:
        """
        Add ``count`` observations of ``value``.

        Raises:
            InvalidCountError: If count is not a positive integer
            ArgumentError: If value is NaN/inf and finiteness is checked
        """
        count = ensure_count(count)
        value = ensure_finite(value) if config.check_finite else float(value)

        if self._count == 0:
            self._count = count
            self._sum = value * count
            self._sse = 0.0
        else:
            n = self._count
            new_count = n + count
            delta = value - self._sum / n
            self._sse += delta * delta * count * n / new_count
            self._count = new_count
            self._sum += value * count

        if value == 0.0:
            self._count_zero += count

    def remove(self, value: float, count: int = 1) -> None:
        """
        Remove ``count`` observations of ``value``.

        The caller is responsible for only removing values that were added;
        the accumulator cannot verify membership of non-zero values.

        Raises:
            InvalidCountError: If count is not a positive integer
            EmptyAccumulatorError: If the accumulator is empty
            CountUnderflowError: If count exceeds the held count (or the held
                zero count when removing zeros)
        """
        count = ensure_count(count)
        value = ensure_finite(value) if config.check_finite else float(value)

        if self._count == 0:
            raise EmptyAccumulatorError("Running statistics is empty: nothing to remove")
        if count > self._count:
            raise CountUnderflowError(
                f"count ({count}) is greater than the existing count ({self._count})"
            )
        if value == 0.0 and count > self._count_zero:
            raise CountUnderflowError(
                f"count ({count}) is greater than the existing zero count ({self._count_zero})"
            )

        new_count = self._count - count

        if new_count == 0:
            logger.debug("Removed every observation, resetting accumulator")
            self.clear()
            return

        new_sum = self._sum - value * count

        if new_count == 1:
            logger.debug("Single observation left, resetting SSE to 0")
            self._sse = 0.0
        else:
            mean = self._sum / self._count
            new_mean = new_sum / new_count
            self._sse -= (value - mean) * (value - new_mean) * count

        self._count = new_count
        self._sum = new_sum
        if value == 0.0:
            self._count_zero -= count

    def merge(self, other: "MomentAccumulator") -> None:
        """Fold ``other`` into this accumulator (parallel-moments merge)."""
        if other is None or other._count == 0:
            return
        if self._count == 0:
            self._count = other._count
            self._count_zero = other._count_zero
            self._sum = other._sum
            self._sse = other._sse
            return

        n_a = self._count
        n_b = other._count
        n = n_a + n_b
        delta = other._sum / n_b - self._sum / n_a

        self._sse = self._sse + other._sse + delta * delta * n_a * n_b / n
        self._count = n
        self._count_zero += other._count_zero
        self._sum += other._sum

    def combine(self, other: Optional["MomentAccumulator"]) -> "MomentAccumulator":
        """Return a new accumulator holding both samples."""
        combined = self.copy()
        combined.merge(other)
        return combined

    def scale(self, multiplier: float) -> None:
        """
        Multiply every observation by ``multiplier`` in place.

        Raises:
            ArgumentError: If multiplier is zero or not finite
        """
        multiplier = _ensure_multiplier(multiplier)
        if self._count == 0:
            return
        self._sum *= multiplier
        self._sse *= multiplier * multiplier

    def multiply(self, multiplier: float) -> "MomentAccumulator":
        """Return a scaled copy (see :meth:`scale`)."""
        scaled = self.copy()
        scaled.scale(multiplier)
        return scaled

    def clear(self) -> None:
        self._count = 0
        self._count_zero = 0
        self._sum = 0.0
        self._sse = 0.0

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        return Snapshot.from_moments(self._count, self._count_zero, self._sum, self._sse)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, MomentAccumulator):
            return NotImplemented
        return (
            self._count == other._count
            and self._count_zero == other._count_zero
            and self._sum == other._sum
            and self._sse == other._sse
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"MomentAccumulator(count={self._count}, count_zero={self._count_zero}, "
            f"sum={self._sum!r}, sse={self._sse!r})"
        )


def _ensure_multiplier(multiplier: Any) -> float:
    multiplier = ensure_finite(multiplier, "multiplier")
    if multiplier == 0.0:
        raise ArgumentError("multiplier must be non-zero")
    return multiplier
