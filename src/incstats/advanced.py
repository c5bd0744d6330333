"""
Advanced sample statistics: moments, frequency histogram and exact GCD.

:class:`AdvancedAccumulator` composes a :class:`MomentAccumulator`, a
:class:`FrequencyHistogram` and a :class:`GcdTracker` and keeps the three in
step. Every argument is validated before any component is touched, so a
failed call leaves the accumulator unchanged.

Combining and scaling are full histogram replays: GCD state has no algebraic
merge, and scaling changes each value's decimal structure.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from incstats._errors import (
    ArgumentError,
    CountUnderflowError,
    EmptyAccumulatorError,
    ensure_count,
    ensure_finite,
)
from incstats.gcd import GcdTracker, ensure_scalable, integer_scale
from incstats.histogram import FrequencyHistogram
from incstats.moments import MomentAccumulator, _ensure_multiplier
from incstats.snapshot import AdvancedSnapshot

logger = logging.getLogger("incstats.advanced")

__all__ = ["AdvancedAccumulator"]


class AdvancedAccumulator:
    """
    Tracks moments, value frequencies and the GCD of a changing sample.

    Example:
        >>> acc = AdvancedAccumulator.from_values([0.05, 0.2, 2, 20, 400, 8000])
        >>> acc.greatest_common_divisor, acc.integer_multiplier
        (5, 100)
        >>> acc.remove(0.05)
        >>> acc.greatest_common_divisor, acc.integer_multiplier
        (2, 10)
    """

    __slots__ = ("_moments", "_histogram", "_gcd")

    def __init__(self):
        self._moments = MomentAccumulator()
        self._histogram = FrequencyHistogram()
        self._gcd = GcdTracker()

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_values(cls, values: Iterable[float]) -> "AdvancedAccumulator":
        acc = cls()
        for value in values:
            acc.add(value)
        return acc

    @classmethod
    def from_counts(cls, counts) -> "AdvancedAccumulator":
        """Create from a mapping or iterable of ``(value, count)`` pairs."""
        acc = cls()
        acc.add_counts(counts)
        return acc

    @classmethod
    def from_state(
        cls,
        count: int,
        count_zero: int,
        sum: float,
        sse: float,
        integer_multiplier: int,
        gcd: Optional[int],
        frequencies,
        scale_counts,
    ) -> "AdvancedAccumulator":
        """
        Rebuild an accumulator from raw state without replaying history.

        ``frequencies`` and ``scale_counts`` may be mappings or iterables of
        pairs.

        Raises:
            ArgumentError: If the pieces of state disagree with each other
        """
        acc = cls()
        moments = MomentAccumulator.from_state(count, count_zero, sum, sse)
        histogram = FrequencyHistogram.from_counts(frequencies)

        if histogram.total != moments.count:
            raise ArgumentError(
                f"Frequencies hold {histogram.total} observation(s) but count is {moments.count}"
            )
        if histogram.count_of(0.0) != moments.count_zero:
            raise ArgumentError(
                f"Frequencies hold {histogram.count_of(0.0)} zero(s) but count_zero is {moments.count_zero}"
            )
        if moments.is_empty():
            return acc

        scale_counts = dict(scale_counts.items() if hasattr(scale_counts, "items") else scale_counts)
        tracker = GcdTracker.from_state(gcd, integer_multiplier, scale_counts)
        expected = GcdTracker.from_counts(histogram.items())
        if tracker.scale_counts != expected.scale_counts:
            raise ArgumentError(
                f"Scale counts {tracker.scale_counts} do not match the frequencies, "
                f"which imply {expected.scale_counts}"
            )
        if tracker.gcd != expected.gcd:
            raise ArgumentError(
                f"GCD {tracker.gcd} does not match the frequencies, which imply {expected.gcd}"
            )

        acc._moments = moments
        acc._histogram = histogram
        acc._gcd = tracker
        return acc

    def to_state(self) -> Dict[str, Any]:
        """Raw state sufficient for :meth:`from_state`."""
        state = self._moments.to_state()
        state.update(self._gcd.to_state())
        state["frequencies"] = self._histogram.to_dict()
        return state

    def copy(self) -> "AdvancedAccumulator":
        acc = AdvancedAccumulator.__new__(AdvancedAccumulator)
        acc._moments = self._moments.copy()
        acc._histogram = self._histogram.copy()
        acc._gcd = self._gcd.copy()
        return acc

    __copy__ = copy

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def count(self) -> int:
        return self._moments.count

    @property
    def count_zero(self) -> int:
        return self._moments.count_zero

    @property
    def sum(self) -> float:
        return self._moments.sum

    @property
    def sum_squared_error(self) -> float:
        return self._moments.sum_squared_error

    @property
    def mean(self) -> float:
        return self._moments.mean

    @property
    def greatest_common_divisor(self) -> Optional[int]:
        """GCD of the held values scaled by :attr:`integer_multiplier`."""
        return self._gcd.gcd

    @property
    def integer_multiplier(self) -> int:
        return self._gcd.integer_multiplier

    @property
    def frequencies(self) -> Dict[float, int]:
        """Ascending ``value -> count`` copy of the histogram."""
        return self._histogram.to_dict()

    @property
    def scale_counts(self) -> Dict[int, int]:
        return self._gcd.scale_counts

    @property
    def moments(self) -> MomentAccumulator:
        """Copy of the underlying moment accumulator."""
        return self._moments.copy()

    @property
    def minimum(self) -> float:
        return self._histogram.first()

    @property
    def maximum(self) -> float:
        return self._histogram.last()

    def is_empty(self) -> bool:
        return self._moments.is_empty()

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add(self, value: float, count: int = 1) -> None:
        """
        Add ``count`` observations of ``value``.

        Raises:
            InvalidCountError: If count is not a positive integer
            ArgumentError: If value is NaN or infinite, or if it or a held
                value overflows at the resulting integer multiplier
        """
        count = ensure_count(count)
        value = ensure_finite(value)
        self._ensure_scalable(value)

        self._moments.add(value, count)
        new_key = self._histogram.add(value, count)
        self._gcd.add(value, count, new_key)

    def _ensure_scalable(self, value: float) -> None:
        if value == 0.0:
            return
        current = self._gcd.integer_multiplier
        multiplier = max(current, integer_scale(value))
        ensure_scalable(value, multiplier)
        if multiplier > current and self._histogram:
            # the extremes bound every held magnitude
            ensure_scalable(self._histogram.first(), multiplier)
            ensure_scalable(self._histogram.last(), multiplier)

    def add_counts(self, counts) -> None:
        """Add every ``(value, count)`` pair of a mapping or iterable."""
        items = counts.items() if hasattr(counts, "items") else counts
        for value, count in items:
            self.add(value, count)

    def remove(self, value: float, count: int = 1) -> None:
        """
        Remove ``count`` observations of ``value``.

        Raises:
            InvalidCountError: If count is not a positive integer
            EmptyAccumulatorError: If the accumulator is empty
            CountUnderflowError: If fewer than ``count`` observations of
                ``value`` are held
        """
        count = ensure_count(count)
        value = ensure_finite(value)

        if self._moments.is_empty():
            raise EmptyAccumulatorError("Running statistics is empty: nothing to remove")
        held = self._histogram.count_of(value)
        if count > held:
            raise CountUnderflowError(
                f"Count ({count}) is higher than the added count ({held}) for value {value}"
            )

        if count == self._moments.count:
            logger.debug("Removed every observation, resetting accumulator")
            self.clear()
            return

        self._moments.remove(value, count)
        remaining = self._histogram.remove(value, count)
        self._gcd.remove(value, count, remaining == 0, self._histogram)

    def merge(self, other: Optional["AdvancedAccumulator"]) -> None:
        """Replay every entry of ``other`` into this accumulator."""
        if other is None or other.is_empty():
            return
        for value, count in other._histogram.items():
            self.add(value, count)

    def combine(self, other: Optional["AdvancedAccumulator"]) -> "AdvancedAccumulator":
        """Return a fresh accumulator built from the union of both histograms."""
        combined = AdvancedAccumulator()
        combined.merge(self)
        combined.merge(other)
        return combined

    def multiply(self, multiplier: float) -> "AdvancedAccumulator":
        """
        Return a fresh accumulator holding every value times ``multiplier``.

        Raises:
            ArgumentError: If multiplier is zero or not finite
        """
        multiplier = _ensure_multiplier(multiplier)
        scaled = AdvancedAccumulator()
        for value, count in self._histogram.items():
            scaled.add(value * multiplier, count)
        return scaled

    def scale(self, multiplier: float) -> None:
        """In-place variant of :meth:`multiply`."""
        scaled = self.multiply(multiplier)
        self._moments = scaled._moments
        self._histogram = scaled._histogram
        self._gcd = scaled._gcd

    def clear(self) -> None:
        self._moments.clear()
        self._histogram.clear()
        self._gcd.clear()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def snapshot(self) -> AdvancedSnapshot:
        if self.is_empty():
            return AdvancedSnapshot.empty()

        base = self._moments.snapshot()
        count = base.count
        probabilities = {value: n / count for value, n in self._histogram.items()}

        return AdvancedSnapshot.from_parts(
            base,
            minimum=self._histogram.first(),
            maximum=self._histogram.last(),
            greatest_common_divisor=self._gcd.value,
            probabilities=probabilities,
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, AdvancedAccumulator):
            return NotImplemented
        return (
            self._moments == other._moments
            and self._histogram == other._histogram
            and self._gcd == other._gcd
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"AdvancedAccumulator(count={self.count}, gcd={self.greatest_common_divisor}, "
            f"integer_multiplier={self.integer_multiplier}, distinct={len(self._histogram)})"
        )
