"""
Frequency histogram of observed values.

An exact multiset: each distinct value maps to its occurrence count, and keys
iterate in ascending order so the first and last keys are the sample minimum
and maximum.
"""

from __future__ import annotations

import bisect
from typing import Dict, Iterator, List, Tuple

from incstats._errors import CountUnderflowError, EmptyAccumulatorError, ensure_count

__all__ = ["FrequencyHistogram"]


class FrequencyHistogram:
    """
    Sorted value -> count mapping with incremental add/remove.

    Lookups are O(1); inserting or dropping a distinct value is O(d) for the
    sorted key list, where d is the number of distinct values.
    """

    __slots__ = ("_counts", "_keys", "_total")

    def __init__(self):
        self._counts: Dict[float, int] = {}
        self._keys: List[float] = []
        self._total = 0

    @classmethod
    def from_counts(cls, counts) -> "FrequencyHistogram":
        """Build from a mapping or iterable of ``(value, count)`` pairs."""
        hist = cls()
        items = counts.items() if hasattr(counts, "items") else counts
        for value, count in items:
            hist.add(value, count)
        return hist

    def copy(self) -> "FrequencyHistogram":
        hist = FrequencyHistogram.__new__(FrequencyHistogram)
        hist._counts = dict(self._counts)
        hist._keys = list(self._keys)
        hist._total = self._total
        return hist

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add(self, value: float, count: int = 1) -> bool:
        """
        Add ``count`` occurrences of ``value``.

        Returns:
            True if ``value`` was not present before
        """
        count = ensure_count(count)
        value = float(value)
        current = self._counts.get(value)
        if current is None:
            self._counts[value] = count
            bisect.insort(self._keys, value)
            self._total += count
            return True
        self._counts[value] = current + count
        self._total += count
        return False

    def remove(self, value: float, count: int = 1) -> int:
        """
        Remove ``count`` occurrences of ``value``.

        Returns:
            The remaining count for ``value`` (0 means the entry was dropped)

        Raises:
            CountUnderflowError: If count exceeds the stored count
        """
        count = ensure_count(count)
        value = float(value)
        current = self._counts.get(value, 0)
        if count > current:
            raise CountUnderflowError(
                f"Count ({count}) is higher than the added count ({current}) for value {value}"
            )
        remaining = current - count
        self._total -= count
        if remaining == 0:
            del self._counts[value]
            index = bisect.bisect_left(self._keys, value)
            del self._keys[index]
        else:
            self._counts[value] = remaining
        return remaining

    def clear(self) -> None:
        self._counts.clear()
        self._keys.clear()
        self._total = 0

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def total(self) -> int:
        """Sum of all counts."""
        return self._total

    def count_of(self, value: float) -> int:
        return self._counts.get(float(value), 0)

    def first(self) -> float:
        """Smallest held value."""
        if not self._keys:
            raise EmptyAccumulatorError("Histogram is empty")
        return self._keys[0]

    def last(self) -> float:
        """Largest held value."""
        if not self._keys:
            raise EmptyAccumulatorError("Histogram is empty")
        return self._keys[-1]

    def keys(self) -> List[float]:
        return list(self._keys)

    def items(self) -> Iterator[Tuple[float, int]]:
        counts = self._counts
        for key in self._keys:
            yield key, counts[key]

    def to_dict(self) -> Dict[float, int]:
        """Ascending ``value -> count`` dict."""
        return dict(self.items())

    def __contains__(self, value) -> bool:
        return float(value) in self._counts

    def __iter__(self) -> Iterator[float]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def __eq__(self, other) -> bool:
        if not isinstance(other, FrequencyHistogram):
            return NotImplemented
        return self._counts == other._counts

    __hash__ = None

    def __repr__(self) -> str:
        return f"FrequencyHistogram({self.to_dict()!r})"
