"""
Error handling for incstats.

Every error raised by the engines carries an integer code grouped by family,
so callers that only need coarse classification can switch on ``err.code``.
"""

from __future__ import annotations

import math
import numbers
from typing import Any, Optional


# =============================================================================
# Error Codes
# =============================================================================

# Success
STATS_OK = 0

# General errors (1-9)
STATS_ERROR_UNKNOWN = 1

# Argument errors (10-19)
STATS_ERROR_INVALID_ARGUMENT = 10
STATS_ERROR_INVALID_COUNT = 11
STATS_ERROR_SORT_ORDER = 12
STATS_ERROR_PROBABILITY_MASS = 13

# State errors (20-29)
STATS_ERROR_EMPTY_ACCUMULATOR = 20
STATS_ERROR_COUNT_UNDERFLOW = 21

# Operation errors (30-39)
STATS_ERROR_OPERATION_FAILED = 30


_ERROR_MESSAGES = {
    STATS_OK: "Success",
    STATS_ERROR_UNKNOWN: "Unknown error",
    STATS_ERROR_INVALID_ARGUMENT: "Invalid argument",
    STATS_ERROR_INVALID_COUNT: "Count must be a positive integer",
    STATS_ERROR_SORT_ORDER: "Keys are not sorted ascending",
    STATS_ERROR_PROBABILITY_MASS: "Probabilities do not sum to 1",
    STATS_ERROR_EMPTY_ACCUMULATOR: "Accumulator is empty",
    STATS_ERROR_COUNT_UNDERFLOW: "Count exceeds the held count",
    STATS_ERROR_OPERATION_FAILED: "Operation failed",
}


# =============================================================================
# Exception Classes
# =============================================================================

class StatisticsError(Exception):
    """
    Base exception for all incstats errors.

    Subclasses fix ``default_code``; the base class may be raised with any
    code from the table above.
    """

    default_code = STATS_ERROR_UNKNOWN

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None):
        """
        Create a statistics exception.

        Args:
            message: Optional detailed message (taken from the code table if
                not provided)
            code: Error code, defaults to the class's ``default_code``
        """
        self.code = self.default_code if code is None else code
        if message is None:
            message = _ERROR_MESSAGES.get(self.code, f"Unknown error (code={self.code})")
        self.message = message
        super().__init__(message)

    @classmethod
    def from_code(cls, code: int, context: str = "") -> "StatisticsError":
        """Create exception from error code with optional context."""
        base_msg = _ERROR_MESSAGES.get(code, "Unknown error")
        msg = f"{context}: {base_msg}" if context else base_msg
        return cls(msg, code)


class ArgumentError(StatisticsError, ValueError):
    """An argument is outside the domain of the operation."""
    default_code = STATS_ERROR_INVALID_ARGUMENT


class InvalidCountError(ArgumentError):
    """A non-positive or non-integral observation count was supplied."""
    default_code = STATS_ERROR_INVALID_COUNT


class SortOrderError(ArgumentError):
    """Densities claimed to be sorted are not in ascending key order."""
    default_code = STATS_ERROR_SORT_ORDER


class ProbabilityMassError(ArgumentError):
    """Densities do not sum to 1 within tolerance."""
    default_code = STATS_ERROR_PROBABILITY_MASS


class EmptyAccumulatorError(StatisticsError):
    """A mutation or query requiring data was applied to an empty sample."""
    default_code = STATS_ERROR_EMPTY_ACCUMULATOR


class CountUnderflowError(StatisticsError, ValueError):
    """A removal asked for more observations than are held."""
    default_code = STATS_ERROR_COUNT_UNDERFLOW


class TrackerOperationError(StatisticsError):
    """
    Composite error raised by the tracker API.

    The failing operation, value and count are kept as attributes; the
    underlying error is available as ``__cause__`` (and ``cause``).
    """

    default_code = STATS_ERROR_OPERATION_FAILED

    def __init__(
        self,
        operation: str,
        value: Any = None,
        count: Any = None,
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.value = value
        self.count = count
        self.cause = cause
        message = (
            f"An error occurred while attempting to perform {operation} "
            f"for value '{value}' with count '{count}'"
        )
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)

    @classmethod
    def from_code(cls, code: int, context: str = "") -> "TrackerOperationError":
        """Create a tracker error for operation ``context`` with ``code``."""
        err = cls(context or "unknown operation")
        err.code = code
        return err


# =============================================================================
# Argument Validation
# =============================================================================

def ensure_count(count: Any, context: str = "count") -> int:
    """
    Validate an observation count.

    Args:
        count: Number of observations (integral, >= 1)
        context: Name used in the error message

    Returns:
        The count as a Python int

    Raises:
        InvalidCountError: If count is not an integer or is below 1
    """
    if isinstance(count, bool) or not isinstance(count, numbers.Integral):
        raise InvalidCountError(f"{context} must be an integer, got {count!r}")
    count = int(count)
    if count < 1:
        raise InvalidCountError(f"{context} must be at least 1, got {count}")
    return count


def ensure_finite(value: Any, context: str = "value") -> float:
    """
    Validate a sample value.

    Raises:
        ArgumentError: If value is not a real number or is NaN/inf
    """
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise ArgumentError(f"{context} must be a real number, got {value!r}") from e
    if not math.isfinite(value):
        raise ArgumentError(f"{context} must be finite, got {value}")
    return value
