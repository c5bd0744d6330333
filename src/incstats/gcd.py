"""
Greatest Common Divisor tracking for real-valued samples.

Values are mapped to integers by a shared power-of-ten multiplier equal to
``10^d``, where ``d`` is the largest number of decimal places among the held
non-zero values, capped at :data:`MAX_DECIMAL_PLACES`. The GCD is maintained
over the scaled integers of the distinct held values.

Algorithm:
    Adding a new distinct value ``v``:
        s = 10^decimal_places(v)
        if s > multiplier: gcd *= s / multiplier; multiplier = s
        gcd = gcd(gcd, round(v * multiplier))

    Removing the last occurrence of a distinct value drops its scale
    reference; if it held the largest scale the multiplier shrinks to the
    next largest one. The GCD is then refolded over the remaining values,
    stopping early once it reaches 1.
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple

from incstats._errors import ArgumentError, CountUnderflowError

logger = logging.getLogger("incstats.gcd")

__all__ = [
    "MAX_DECIMAL_PLACES",
    "decimal_places",
    "integer_scale",
    "ensure_scalable",
    "GcdTracker",
]

# Decimal places beyond this are ignored for GCD purposes only
MAX_DECIMAL_PLACES = 4

# Significant digits kept when converting a double to its decimal form
_SIGNIFICANT_DIGITS = 15


def decimal_places(value: float, limit: int = MAX_DECIMAL_PLACES) -> int:
    """
    Number of digits after the decimal point of ``value``, at most ``limit``.

    The value is first rounded to 15 significant digits, so binary noise
    such as ``0.1 + 0.2 == 0.30000000000000004`` counts as one place.
    Trailing zeros and exponent notation do not add places.

    Examples:
        >>> decimal_places(0.05)
        2
        >>> decimal_places(400.0)
        0
        >>> decimal_places(3.141592653589793)
        4
    """
    text = format(abs(float(value)), f".{_SIGNIFICANT_DIGITS}g")
    exponent = Decimal(text).normalize().as_tuple().exponent
    return min(max(-exponent, 0), limit)


def integer_scale(value: float) -> int:
    """Power of ten that turns ``value`` into an integer (up to the cap)."""
    return 10 ** decimal_places(value)


def ensure_scalable(value: float, multiplier: int) -> float:
    """
    Check that ``value * multiplier`` is still a finite double.

    Raises:
        ArgumentError: If the scaled value overflows
    """
    scaled = value * multiplier
    if math.isinf(scaled):
        raise ArgumentError(
            f"Value {value} overflows when scaled by the integer multiplier {multiplier}"
        )
    return scaled


def _scaled(value: float, multiplier: int) -> int:
    # round() is half-to-even
    return abs(round(ensure_scalable(value, multiplier)))


class GcdTracker:
    """
    Incremental GCD state for a multiset of real values.

    The tracker does not own the values; the caller reports every add and
    remove together with whether the distinct key entered or left the sample,
    and supplies the remaining distinct keys when a recompute is needed.

    Attributes:
        gcd (Optional[int]): GCD of the scaled distinct values, None if empty
        integer_multiplier (int): Current power-of-ten multiplier
        scale_counts (dict): scale -> number of held non-zero observations
            with that scale
    """

    __slots__ = ("_gcd", "_multiplier", "_scale_counts")

    def __init__(self):
        self._gcd: Optional[int] = None
        self._multiplier = 1
        self._scale_counts: Dict[int, int] = {}

    @classmethod
    def from_state(
        cls,
        gcd: Optional[int],
        integer_multiplier: int,
        scale_counts: Dict[int, int],
    ) -> "GcdTracker":
        """
        Rebuild from serialized state.

        Raises:
            ArgumentError: If the multiplier does not match the scale counts
        """
        tracker = cls()
        counts = {int(scale): int(count) for scale, count in dict(scale_counts).items()}
        if any(count <= 0 for count in counts.values()):
            raise ArgumentError(f"Scale counts must be positive: {counts}")
        expected = max(counts) if counts else 1
        if int(integer_multiplier) != expected:
            raise ArgumentError(
                f"Integer multiplier {integer_multiplier} does not match the largest scale {expected}"
            )
        tracker._gcd = None if gcd is None else int(gcd)
        tracker._multiplier = expected
        tracker._scale_counts = counts
        return tracker

    @classmethod
    def from_counts(cls, counts: Iterable[Tuple[float, int]]) -> "GcdTracker":
        """
        Derive the state that a histogram of ``(value, count)`` pairs implies.

        Raises:
            ArgumentError: If a value overflows at the derived multiplier
        """
        tracker = cls()
        keys = []
        for value, count in counts:
            keys.append(value)
            if value != 0.0:
                scale = integer_scale(value)
                tracker._scale_counts[scale] = tracker._scale_counts.get(scale, 0) + count
        tracker._multiplier = max(tracker._scale_counts) if tracker._scale_counts else 1
        if keys:
            tracker.recompute(keys)
        return tracker

    def to_state(self) -> Dict[str, Any]:
        return {
            "gcd": self._gcd,
            "integer_multiplier": self._multiplier,
            "scale_counts": self.scale_counts,
        }

    def copy(self) -> "GcdTracker":
        tracker = GcdTracker.__new__(GcdTracker)
        tracker._gcd = self._gcd
        tracker._multiplier = self._multiplier
        tracker._scale_counts = dict(self._scale_counts)
        return tracker

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def gcd(self) -> Optional[int]:
        return self._gcd

    @property
    def integer_multiplier(self) -> int:
        return self._multiplier

    @property
    def scale_counts(self) -> Dict[int, int]:
        return dict(sorted(self._scale_counts.items()))

    @property
    def value(self) -> Optional[float]:
        """Real-valued GCD (``gcd / integer_multiplier``)."""
        if self._gcd is None:
            return None
        return self._gcd / self._multiplier

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def add(self, value: float, count: int, new_key: bool) -> None:
        """
        Register ``count`` observations of ``value``.

        Args:
            value: Observed value
            count: Number of observations
            new_key: True if ``value`` was not held before this add
        """
        if value != 0.0:
            scale = integer_scale(value)
            self._scale_counts[scale] = self._scale_counts.get(scale, 0) + count
            if scale > self._multiplier:
                if self._gcd is not None:
                    self._gcd *= scale // self._multiplier
                logger.debug("Integer multiplier raised from %d to %d", self._multiplier, scale)
                self._multiplier = scale

        if new_key:
            scaled = _scaled(value, self._multiplier)
            self._gcd = scaled if self._gcd is None else math.gcd(self._gcd, scaled)

    def remove(
        self,
        value: float,
        count: int,
        key_removed: bool,
        remaining_keys: Iterable[float],
    ) -> None:
        """
        Unregister ``count`` observations of ``value``.

        Args:
            value: Removed value
            count: Number of observations removed
            key_removed: True if no occurrence of ``value`` remains
            remaining_keys: Distinct values still held, ascending

        Raises:
            CountUnderflowError: If count exceeds the observations registered
                for the value's scale
        """
        if value != 0.0:
            scale = integer_scale(value)
            held = self._scale_counts.get(scale, 0)
            if count > held:
                raise CountUnderflowError(
                    f"Count ({count}) is higher than added integer scale count ({held})"
                )
            if count == held:
                del self._scale_counts[scale]
                if scale == self._multiplier:
                    shrunk = max(self._scale_counts) if self._scale_counts else 1
                    logger.debug("Integer multiplier shrunk from %d to %d", self._multiplier, shrunk)
                    self._multiplier = shrunk
            else:
                self._scale_counts[scale] = held - count

        if key_removed:
            self.recompute(remaining_keys)

    def recompute(self, keys: Iterable[float]) -> None:
        """Fold the GCD over ``keys`` from scratch."""
        gcd: Optional[int] = None
        folded = 0
        for key in keys:
            scaled = _scaled(key, self._multiplier)
            gcd = scaled if gcd is None else math.gcd(gcd, scaled)
            folded += 1
            if gcd == 1:
                break
        logger.debug("Recomputed GCD over %d value(s): %s", folded, gcd)
        self._gcd = gcd

    def clear(self) -> None:
        self._gcd = None
        self._multiplier = 1
        self._scale_counts.clear()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, GcdTracker):
            return NotImplemented
        return (
            self._gcd == other._gcd
            and self._multiplier == other._multiplier
            and self._scale_counts == other._scale_counts
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"GcdTracker(gcd={self._gcd}, integer_multiplier={self._multiplier}, "
            f"scale_counts={self.scale_counts})"
        )
