"""
Mutable statistics trackers.

Trackers own an engine (:class:`MomentAccumulator` or
:class:`AdvancedAccumulator`) and mutate it in place. Every failing mutation
is re-raised as a single :class:`TrackerOperationError` carrying the
operation name, value and count, with the engine's error as ``__cause__``.

Example:
    >>> tracker = SimpleStatisticsTracker.from_values(1, 2, 3)
    >>> tracker.add(5, count=4)
    >>> tracker.remove(1)
    >>> tracker.take_snapshot().count
    6
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Optional, Type, TypeVar

import numpy as np

from incstats._errors import StatisticsError, TrackerOperationError
from incstats.advanced import AdvancedAccumulator
from incstats.moments import MomentAccumulator
from incstats.snapshot import AdvancedSnapshot, Snapshot

logger = logging.getLogger("incstats.trackers")

__all__ = ["StatisticsTracker", "SimpleStatisticsTracker", "AdvancedStatisticsTracker"]

T = TypeVar("T", bound="StatisticsTracker")


@contextmanager
def _operation(name: str, value: Any = None, count: Any = None):
    try:
        yield
    except StatisticsError as e:
        logger.debug("%s failed for value=%r count=%r: %s", name, value, count, e)
        raise TrackerOperationError(name, value, count, cause=e) from e


def _iter_values(values) -> Iterable[float]:
    if isinstance(values, np.ndarray):
        return values.ravel().tolist()
    return values


class StatisticsTracker:
    """
    Base class of the mutable tracker API.

    Subclasses set ``_engine_type``.
    """

    _engine_type: Type = MomentAccumulator

    __slots__ = ("_engine",)

    def __init__(self, values: Optional[Iterable[float]] = None):
        self._engine = self._engine_type()
        if values is not None:
            self.add_many(values)

    @classmethod
    def from_values(cls: Type[T], *values: float) -> T:
        return cls(values)

    @classmethod
    def from_engine(cls: Type[T], engine) -> T:
        """Wrap an existing engine (not copied)."""
        if not isinstance(engine, cls._engine_type):
            raise TypeError(
                f"{cls.__name__} wraps {cls._engine_type.__name__}, got {type(engine).__name__}"
            )
        tracker = cls.__new__(cls)
        tracker._engine = engine
        return tracker

    @property
    def engine(self):
        """The underlying engine."""
        return self._engine

    # -------------------------------------------------------------------------
    # Read-only surface
    # -------------------------------------------------------------------------

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

    def is_empty(self) -> bool:
        return self._engine.is_empty()

    def take_snapshot(self) -> Snapshot:
        return self._engine.snapshot()

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add(self, value: float, count: int = 1) -> None:
        """Add ``count`` observations of ``value``."""
        with _operation("Add", value, count):
            self._engine.add(value, count)

    def add_many(self, values: Iterable[float]) -> None:
        """Add each of ``values`` once (accepts numpy arrays)."""
        for value in _iter_values(values):
            self.add(value)

    def add_histogram(self, counts) -> None:
        """Add a mapping (or iterable of pairs) of ``value -> count``."""
        if counts is None:
            return
        items = counts.items() if hasattr(counts, "items") else counts
        for value, count in items:
            self.add(value, count)

    def remove(self, value: float, count: int = 1) -> None:
        """Remove ``count`` observations of ``value``."""
        with _operation("Remove", value, count):
            self._engine.remove(value, count)

    def remove_many(self, values: Iterable[float]) -> None:
        for value in _iter_values(values):
            self.remove(value)

    def merge(self: T, other: Optional[T]) -> None:
        """Fold another tracker's sample into this one."""
        if other is None:
            return
        self._check_compatible(other)
        with _operation("Merge"):
            self._engine.merge(other._engine)

    def combine(self: T, other: Optional[T]) -> T:
        """Return a new tracker holding both samples."""
        combined = self.copy()
        combined.merge(other)
        return combined

    def multiply(self: T, multiplier: float) -> T:
        """Return a new tracker with every value multiplied by ``multiplier``."""
        with _operation("Multiply", multiplier):
            engine = self._engine.multiply(multiplier)
        return type(self).from_engine(engine)

    def clear(self) -> None:
        self._engine.clear()

    def copy(self: T) -> T:
        return type(self).from_engine(self._engine.copy())

    __copy__ = copy

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Raw engine state (see the engine's ``to_state``)."""
        return self._engine.to_state()

    @classmethod
    def from_dict(cls: Type[T], state: Dict[str, Any]) -> T:
        return cls.from_engine(cls._engine_type.from_state(**state))

    def _check_compatible(self, other) -> None:
        if type(other) is not type(self):
            raise TypeError(f"Cannot combine {type(self).__name__} with {type(other).__name__}")

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        if self.is_empty() and other.is_empty():
            return True
        return self._engine == other._engine

    __hash__ = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._engine!r})"


class SimpleStatisticsTracker(StatisticsTracker):
    """Tracks count, mean, variance and SSE of a running sample."""

    _engine_type = MomentAccumulator

    __slots__ = ()

    @property
    def mean(self) -> float:
        return self._engine.mean


class AdvancedStatisticsTracker(StatisticsTracker):
    """
    Tracks the moments plus a frequency histogram and the exact GCD.

    ``greatest_common_divisor`` is the GCD of the values scaled by
    ``integer_multiplier``; the snapshot reports the real-valued GCD.
    """

    _engine_type = AdvancedAccumulator

    __slots__ = ()

    def take_snapshot(self) -> AdvancedSnapshot:
        return self._engine.snapshot()

    @property
    def mean(self) -> float:
        return self._engine.mean

    @property
    def greatest_common_divisor(self) -> Optional[int]:
        return self._engine.greatest_common_divisor

    @property
    def integer_multiplier(self) -> int:
        return self._engine.integer_multiplier

    @property
    def frequencies(self) -> Dict[float, int]:
        return self._engine.frequencies

    @property
    def scale_counts(self) -> Dict[int, int]:
        return self._engine.scale_counts
