"""
Immutable sample statistics.

Value-semantics wrappers over the engines: every operation clones the engine,
applies the change to the clone and returns a new instance. Errors from the
engine propagate unchanged since a failed call never produces a value.

Example:
    >>> a = SampleStatistics.from_values(1, 2, 3)
    >>> b = a.add(5, count=4)
    >>> a.count, b.count
    (3, 7)
    >>> (a + b).sum
    34.0
"""

from __future__ import annotations

import numbers
from typing import Any, Callable, Dict, Iterable, Optional, Type, TypeVar

from incstats.advanced import AdvancedAccumulator
from incstats.distribution import EmpiricalCDF, EmpiricalPDF
from incstats.moments import MomentAccumulator
from incstats.snapshot import AdvancedSnapshot, Snapshot

__all__ = ["SampleStatistics", "AdvancedSampleStatistics"]

S = TypeVar("S", bound="SampleStatistics")


class SampleStatistics:
    """Immutable descriptive statistics of a sample."""

    _engine_type: Type = MomentAccumulator

    __slots__ = ("_engine", "_snapshot")

    def __init__(self, engine=None):
        if engine is None:
            engine = self._engine_type()
        elif not isinstance(engine, self._engine_type):
            raise TypeError(
                f"{type(self).__name__} wraps {self._engine_type.__name__}, got {type(engine).__name__}"
            )
        else:
            engine = engine.copy()
        self._engine = engine
        self._snapshot = None

    @classmethod
    def _adopt(cls: Type[S], engine) -> S:
        """Wrap an engine built here without copying it."""
        sample = cls.__new__(cls)
        sample._engine = engine
        sample._snapshot = None
        return sample

    @classmethod
    def empty(cls: Type[S]) -> S:
        return cls()

    @classmethod
    def from_values(cls: Type[S], *values: float) -> S:
        return cls._adopt(cls._engine_type.from_values(values))

    def _derive(self: S, mutate: Callable[[Any], None]) -> S:
        engine = self._engine.copy()
        mutate(engine)
        return type(self)._adopt(engine)

    # -------------------------------------------------------------------------
    # Operations returning new instances
    # -------------------------------------------------------------------------

    def add(self: S, value: float, count: int = 1) -> S:
        return self._derive(lambda engine: engine.add(value, count))

    def add_many(self: S, values: Iterable[float]) -> S:
        def mutate(engine):
            for value in values:
                engine.add(value)
        return self._derive(mutate)

    def remove(self: S, value: float, count: int = 1) -> S:
        return self._derive(lambda engine: engine.remove(value, count))

    def remove_many(self: S, values: Iterable[float]) -> S:
        def mutate(engine):
            for value in values:
                engine.remove(value)
        return self._derive(mutate)

    def combine(self: S, other: Optional[S]) -> S:
        if other is None:
            return self
        if type(other) is not type(self):
            raise TypeError(f"Cannot combine {type(self).__name__} with {type(other).__name__}")
        return type(self)._adopt(self._engine.combine(other._engine))

    def multiply(self: S, multiplier: float) -> S:
        return type(self)._adopt(self._engine.multiply(multiplier))

    def __add__(self, other):
        if not isinstance(other, SampleStatistics):
            return NotImplemented
        return self.combine(other)

    def __mul__(self, multiplier):
        if not isinstance(multiplier, numbers.Real):
            return NotImplemented
        return self.multiply(multiplier)

    __rmul__ = __mul__

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        if self._snapshot is None:
            self._snapshot = self._engine.snapshot()
        return self._snapshot

    def is_empty(self) -> bool:
        return self._engine.is_empty()

    @property
    def count(self) -> int:
        return self._engine.count

    @property
    def count_zero(self) -> int:
        return self._engine.count_zero

    @property
    def sum(self) -> float:
        return self._engine.sum

    @property
    def sum_squared_error(self) -> float:
        return self._engine.sum_squared_error

    @property
    def mean(self) -> float:
        return self.snapshot().mean

    @property
    def variance(self) -> float:
        return self.snapshot().variance

    @property
    def population_variance(self) -> float:
        return self.snapshot().population_variance

    @property
    def standard_deviation(self) -> float:
        return self.snapshot().standard_deviation

    @property
    def population_standard_deviation(self) -> float:
        return self.snapshot().population_standard_deviation

    @property
    def coefficient_of_variation(self) -> float:
        return self.snapshot().coefficient_of_variation

    @property
    def population_coefficient_of_variation(self) -> float:
        return self.snapshot().population_coefficient_of_variation

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._engine == other._engine

    __hash__ = None

    def __repr__(self) -> str:
        snap = self.snapshot()
        return f"{type(self).__name__}(count={snap.count}, mean={snap.mean!r}, variance={snap.variance!r})"


class AdvancedSampleStatistics(SampleStatistics):
    """Immutable statistics including bounds, GCD and probabilities."""

    _engine_type = AdvancedAccumulator

    __slots__ = ()

    def snapshot(self) -> AdvancedSnapshot:
        return super().snapshot()

    @property
    def minimum(self) -> float:
        return self.snapshot().minimum

    @property
    def maximum(self) -> float:
        return self.snapshot().maximum

    @property
    def greatest_common_divisor(self) -> float:
        """Real-valued GCD of the sample."""
        return self.snapshot().greatest_common_divisor

    @property
    def integer_multiplier(self) -> int:
        return self._engine.integer_multiplier

    @property
    def probabilities(self) -> Dict[float, float]:
        return dict(self.snapshot().probabilities)

    def to_pdf(self) -> EmpiricalPDF:
        return self.snapshot().to_pdf()

    def to_cdf(self) -> EmpiricalCDF:
        return self.snapshot().to_cdf()
