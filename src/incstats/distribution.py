"""
Empirical Probability Distributions.

Lookup structures built directly from observed probabilities (for example the
``probabilities`` of an :class:`~incstats.snapshot.AdvancedSnapshot`) rather
than from a theoretical distribution.

    EmpiricalPDF: point probabilities, ``Pr(X == x)``
    EmpiricalCDF: cumulative probabilities, ``Pr(X <= x)``

Supported Input Formats:
    - Mappings ``value -> probability``
    - Iterables of ``(value, probability)`` pairs

Both classes accept densities that sum to 1 within a tolerance (default
``config.compute.probability_tolerance``). The last cumulative probability is
forced to exactly 1 so ``pr_less_than_or_equal(maximum) == 1.0``.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np

from incstats._config import config
from incstats._errors import ProbabilityMassError, SortOrderError

__all__ = ["EmpiricalPDF", "EmpiricalCDF"]

DensityInput = Union[Mapping[float, float], Iterable[Tuple[float, float]]]


# =============================================================================
# Helpers
# =============================================================================

def _as_pairs(densities: DensityInput) -> List[Tuple[float, float]]:
    items = densities.items() if hasattr(densities, "items") else densities
    return [(float(key), float(pr)) for key, pr in items]


def ensure_ascending(pairs: List[Tuple[float, float]]) -> None:
    """
    Raise if keys are not sorted ascending.

    Raises:
        SortOrderError: On the first key that precedes its predecessor
    """
    for (previous, _), (key, _) in zip(pairs, pairs[1:]):
        if key < previous:
            raise SortOrderError(f"Keys are not sorted ascending: '{previous}' > '{key}'")


def _sorted_pairs(densities: DensityInput) -> List[Tuple[float, float]]:
    return sorted(_as_pairs(densities), key=lambda pair: pair[0])


# =============================================================================
# Empirical PDF
# =============================================================================

class EmpiricalPDF:
    """
    Empirical probability density over discrete values.

    Example:
        >>> pdf = EmpiricalPDF.from_unsorted({1.0: 0.2, 20.0: 0.2, 3.0: 0.6})
        >>> list(pdf.probabilities)
        [1.0, 3.0, 20.0]
        >>> pdf.pr_equals(3.0)
        0.6
    """

    __slots__ = ("_probabilities",)

    def __init__(self, sorted_probabilities: Dict[float, float]):
        self._probabilities = sorted_probabilities

    @classmethod
    def from_sorted(cls, densities: DensityInput, check_sort_order: bool = False) -> "EmpiricalPDF":
        """
        Create from densities already sorted by value.

        Raises:
            SortOrderError: If ``check_sort_order`` and the keys are unsorted
        """
        pairs = _as_pairs(densities)
        if check_sort_order:
            ensure_ascending(pairs)
        return cls(dict(pairs))

    @classmethod
    def from_unsorted(cls, densities: DensityInput) -> "EmpiricalPDF":
        return cls(dict(_sorted_pairs(densities)))

    @property
    def probabilities(self) -> Dict[float, float]:
        """Ascending ``value -> probability`` copy."""
        return dict(self._probabilities)

    def pr_equals(self, x: float) -> float:
        """Probability of exactly ``x`` (0 if never observed)."""
        return self._probabilities.get(float(x), 0.0)

    def to_cdf(self, tolerance: Optional[float] = None) -> "EmpiricalCDF":
        return EmpiricalCDF.from_sorted(self._probabilities, check_sort_order=True, tolerance=tolerance)

    def __len__(self) -> int:
        return len(self._probabilities)

    def __repr__(self) -> str:
        return f"EmpiricalPDF({self._probabilities!r})"


# =============================================================================
# Empirical CDF
# =============================================================================

class EmpiricalCDF:
    """
    Empirical cumulative distribution function.

    Algorithm:
        C_i = sum(p_0 .. p_i) in ascending key order, with C_last := 1
        Pr(X <= x) = C_j, j = index of the greatest key <= x (binary search)

    Time Complexity:
        O(n) to build, O(log n) per query.

    Example:
        >>> cdf = EmpiricalCDF.from_sorted({1.0: 0.2, 3.0: 0.2, 20.0: 0.6})
        >>> cdf.pr_less_than_or_equal(15)
        0.4
        >>> cdf.pr_less_than_or_equal(20)
        1.0
    """

    __slots__ = ("_keys", "_cumulative")

    def __init__(self, keys: np.ndarray, cumulative: np.ndarray):
        self._keys = keys
        self._cumulative = cumulative

    @classmethod
    def _build(cls, pairs: List[Tuple[float, float]], tolerance: Optional[float]) -> "EmpiricalCDF":
        if tolerance is None:
            tolerance = config.probability_tolerance

        if not pairs:
            raise ProbabilityMassError("Cannot build a distribution from empty densities")

        keys = np.fromiter((key for key, _ in pairs), dtype=np.float64, count=len(pairs))
        densities = np.fromiter((pr for _, pr in pairs), dtype=np.float64, count=len(pairs))

        if np.any(densities < 0.0) or not np.all(np.isfinite(densities)):
            raise ProbabilityMassError("Densities must be finite and non-negative")

        cumulative = np.cumsum(densities)
        delta = 1.0 - cumulative[-1]

        if abs(delta) > tolerance:
            raise ProbabilityMassError(
                f"The densities do not sum to 1: abs. delta ({delta:.2e}) "
                f"is greater than tolerance ({tolerance:.2e})"
            )

        # rounding residual goes into the last bucket
        np.minimum(cumulative, 1.0, out=cumulative)
        cumulative[-1] = 1.0
        return cls(keys, cumulative)

    @classmethod
    def from_sorted(
        cls,
        densities: DensityInput,
        check_sort_order: bool = True,
        tolerance: Optional[float] = None,
    ) -> "EmpiricalCDF":
        """
        Create from densities sorted by value.

        Args:
            densities: ``value -> probability`` in ascending value order
            check_sort_order: Validate the ordering first
            tolerance: Allowed deviation of the total mass from 1

        Raises:
            SortOrderError: If ``check_sort_order`` and the keys are unsorted
            ProbabilityMassError: If the mass is not 1 within tolerance
        """
        pairs = _as_pairs(densities)
        if check_sort_order:
            ensure_ascending(pairs)
        return cls._build(pairs, tolerance)

    @classmethod
    def from_unsorted(cls, densities: DensityInput, tolerance: Optional[float] = None) -> "EmpiricalCDF":
        return cls._build(_sorted_pairs(densities), tolerance)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def minimum(self) -> float:
        return float(self._keys[0])

    @property
    def maximum(self) -> float:
        return float(self._keys[-1])

    @property
    def keys(self) -> np.ndarray:
        return self._keys.copy()

    @property
    def cumulative_probabilities(self) -> np.ndarray:
        return self._cumulative.copy()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def pr_less_than_or_equal(self, x: float) -> float:
        """
        Probability that a draw is less than or equal to ``x``.

        Returns 0 below the minimum and 1 at or above the maximum; NaN for
        NaN input.
        """
        x = float(x)
        if math.isnan(x):
            return math.nan
        if x < self._keys[0]:
            return 0.0
        if x >= self._keys[-1]:
            return 1.0

        index = int(np.searchsorted(self._keys, x, side="right")) - 1
        return float(self._cumulative[index])

    def __call__(self, x):
        """
        Vectorized :meth:`pr_less_than_or_equal`.

        Scalars return a float; array-likes return an ndarray of the same
        shape.
        """
        if np.ndim(x) == 0:
            return self.pr_less_than_or_equal(x)

        xs = np.asarray(x, dtype=np.float64)
        indices = np.searchsorted(self._keys, xs, side="right") - 1
        result = np.where(indices >= 0, self._cumulative[np.clip(indices, 0, None)], 0.0)
        result[xs >= self._keys[-1]] = 1.0
        result[np.isnan(xs)] = np.nan
        return result

    def __len__(self) -> int:
        return int(self._keys.size)

    def __repr__(self) -> str:
        return f"EmpiricalCDF(minimum={self.minimum}, maximum={self.maximum}, size={len(self)})"
