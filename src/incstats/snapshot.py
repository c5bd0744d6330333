"""
Immutable statistics snapshots.

A snapshot is a pure value derived from an accumulator at query time. It is
never mutated; every ``snapshot()`` call recomputes a fresh one.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from incstats.distribution import EmpiricalCDF, EmpiricalPDF


__all__ = ["Snapshot", "AdvancedSnapshot"]


@dataclass(frozen=True)
class Snapshot:
    """Descriptive statistics of a sample at one point in time."""
    count: int
    count_zero: int
    mean: float                                   # NaN when count == 0
    sum: float
    variance: float                               # n - 1 degrees of freedom
    population_variance: float                    # n degrees of freedom
    standard_deviation: float
    population_standard_deviation: float
    sum_squared_error: float
    coefficient_of_variation: float
    population_coefficient_of_variation: float

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls(
            count=0,
            count_zero=0,
            mean=math.nan,
            sum=0.0,
            variance=0.0,
            population_variance=0.0,
            standard_deviation=0.0,
            population_standard_deviation=0.0,
            sum_squared_error=0.0,
            coefficient_of_variation=0.0,
            population_coefficient_of_variation=0.0,
        )

    @classmethod
    def from_moments(cls, count: int, count_zero: int, total: float, sse: float) -> "Snapshot":
        """
        Derive a snapshot from raw moment state.

        Variances are floored at zero; a single observation has exactly zero
        variance regardless of residual rounding in ``sse``.
        """
        if count == 0:
            return cls.empty()

        mean = total / count
        if count > 1:
            variance = max(sse / (count - 1), 0.0)
            population_variance = max(sse / count, 0.0)
        else:
            variance = 0.0
            population_variance = 0.0

        stdev = math.sqrt(variance)
        population_stdev = math.sqrt(population_variance)

        return cls(
            count=count,
            count_zero=count_zero,
            mean=mean,
            sum=total,
            variance=variance,
            population_variance=population_variance,
            standard_deviation=stdev,
            population_standard_deviation=population_stdev,
            sum_squared_error=sse,
            coefficient_of_variation=stdev / mean if mean > 0.0 else 0.0,
            population_coefficient_of_variation=population_stdev / mean if mean > 0.0 else 0.0,
        )

    def is_empty(self) -> bool:
        return self.count == 0

    def __eq__(self, other: Any) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return _same_values(self.to_dict(), other.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, eq=False)
class AdvancedSnapshot(Snapshot):
    """Snapshot extended with sample bounds, GCD and value probabilities."""
    minimum: float
    maximum: float
    greatest_common_divisor: float                # real valued: gcd / multiplier
    probabilities: Dict[float, float] = field(default_factory=dict)  # ascending by value

    @classmethod
    def empty(cls) -> "AdvancedSnapshot":
        base = Snapshot.empty()
        return cls(
            **base.to_dict(),
            minimum=math.nan,
            maximum=math.nan,
            greatest_common_divisor=math.nan,
            probabilities={},
        )

    @classmethod
    def from_parts(
        cls,
        base: Snapshot,
        minimum: float,
        maximum: float,
        greatest_common_divisor: float,
        probabilities: Dict[float, float],
    ) -> "AdvancedSnapshot":
        return cls(
            **base.to_dict(),
            minimum=minimum,
            maximum=maximum,
            greatest_common_divisor=greatest_common_divisor,
            probabilities=dict(probabilities),
        )

    def to_pdf(self) -> "EmpiricalPDF":
        """Empirical probability density built from the observed frequencies."""
        from incstats.distribution import EmpiricalPDF
        return EmpiricalPDF.from_sorted(self.probabilities)

    def to_cdf(self) -> "EmpiricalCDF":
        """Empirical cumulative distribution built from the observed frequencies."""
        from incstats.distribution import EmpiricalCDF
        return EmpiricalCDF.from_sorted(self.probabilities, check_sort_order=False)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["probabilities"] = dict(self.probabilities)
        return data


def _same_values(a: Dict[str, Any], b: Dict[str, Any]) -> bool:
    # NaN fields (empty samples) compare equal to NaN
    if a.keys() != b.keys():
        return False
    for key, left in a.items():
        right = b[key]
        if isinstance(left, float) and isinstance(right, float):
            if math.isnan(left) and math.isnan(right):
                continue
        if left != right:
            return False
    return True
