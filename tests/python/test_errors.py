"""
Tests for error codes, exception hierarchy and argument validation.
"""

import math

import numpy as np
import pytest

from incstats import (
    ArgumentError,
    CountUnderflowError,
    EmptyAccumulatorError,
    InvalidCountError,
    ProbabilityMassError,
    SortOrderError,
    StatisticsError,
    TrackerOperationError,
)
from incstats._errors import (
    STATS_ERROR_COUNT_UNDERFLOW,
    STATS_ERROR_INVALID_ARGUMENT,
    STATS_ERROR_OPERATION_FAILED,
    ensure_count,
    ensure_finite,
)


class TestErrorHierarchy:
    """Test exception classes and their codes."""

    @pytest.mark.parametrize("cls,code", [
        (ArgumentError, 10),
        (InvalidCountError, 11),
        (SortOrderError, 12),
        (ProbabilityMassError, 13),
        (EmptyAccumulatorError, 20),
        (CountUnderflowError, 21),
    ])
    def test_default_codes(self, cls, code):
        err = cls("boom")
        assert err.code == code
        assert err.message == "boom"
        assert isinstance(err, StatisticsError)

    def test_argument_errors_are_value_errors(self):
        for cls in (ArgumentError, InvalidCountError, SortOrderError, ProbabilityMassError):
            assert issubclass(cls, ValueError)
            assert issubclass(cls, ArgumentError)
        assert issubclass(CountUnderflowError, ValueError)
        assert not issubclass(EmptyAccumulatorError, ValueError)

    def test_message_from_table(self):
        err = CountUnderflowError()
        assert err.code == STATS_ERROR_COUNT_UNDERFLOW
        assert str(err) == "Count exceeds the held count"

    def test_from_code(self):
        err = StatisticsError.from_code(STATS_ERROR_INVALID_ARGUMENT, "multiplier")
        assert err.code == STATS_ERROR_INVALID_ARGUMENT
        assert str(err) == "multiplier: Invalid argument"

    def test_unknown_code(self):
        err = StatisticsError(code=999)
        assert "999" in str(err)


class TestTrackerOperationError:
    """Test the composite tracker error."""

    def test_message_and_attributes(self):
        cause = CountUnderflowError("too many")
        err = TrackerOperationError("Remove", 3.0, 2, cause=cause)

        assert err.code == STATS_ERROR_OPERATION_FAILED
        assert err.operation == "Remove"
        assert err.value == 3.0
        assert err.count == 2
        assert err.cause is cause
        assert str(err) == (
            "An error occurred while attempting to perform Remove "
            "for value '3.0' with count '2': too many"
        )

    def test_without_cause(self):
        err = TrackerOperationError("Merge")
        assert str(err).endswith("for value 'None' with count 'None'")

    def test_from_code(self):
        err = TrackerOperationError.from_code(STATS_ERROR_OPERATION_FAILED, "Multiply")
        assert isinstance(err, TrackerOperationError)
        assert err.code == STATS_ERROR_OPERATION_FAILED
        assert err.operation == "Multiply"
        assert err.value is None
        assert err.count is None
        assert "perform Multiply" in str(err)


class TestValidators:
    """Test ensure_count and ensure_finite."""

    @pytest.mark.parametrize("count", [1, 5, np.int64(3)])
    def test_valid_counts(self, count):
        assert ensure_count(count) == int(count)
        assert type(ensure_count(count)) is int

    @pytest.mark.parametrize("count", [0, -1, 1.0, 2.5, True, "1", None])
    def test_invalid_counts(self, count):
        with pytest.raises(InvalidCountError):
            ensure_count(count)

    def test_finite_values(self):
        assert ensure_finite(3) == 3.0
        assert ensure_finite(np.float32(1.5)) == 1.5

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, "abc", None])
    def test_non_finite_values(self, value):
        with pytest.raises(ArgumentError):
            ensure_finite(value)
