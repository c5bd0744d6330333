"""
Tests for AdvancedAccumulator (moments + histogram + GCD).
"""

import math

import pytest

from incstats import (
    AdvancedAccumulator,
    AdvancedSnapshot,
    ArgumentError,
    CountUnderflowError,
    EmptyAccumulatorError,
    InvalidCountError,
    MomentAccumulator,
)


class TestAdvancedAccumulator:
    """Test the composed engine."""

    def test_empty_snapshot(self):
        snap = AdvancedAccumulator().snapshot()
        assert snap.is_empty()
        assert math.isnan(snap.minimum)
        assert math.isnan(snap.maximum)
        assert math.isnan(snap.greatest_common_divisor)
        assert snap.probabilities == {}
        assert snap == AdvancedSnapshot.empty()

    def test_snapshot_fields(self):
        acc = AdvancedAccumulator.from_counts({0.0: 1, 2.0: 1, 4.0: 2})
        snap = acc.snapshot()

        assert snap.count == 4
        assert snap.count_zero == 1
        assert snap.mean == pytest.approx(2.5)
        assert snap.standard_deviation == pytest.approx(1.91, abs=0.01)
        assert snap.variance == pytest.approx(3.67, abs=0.01)
        assert snap.minimum == 0.0
        assert snap.maximum == 4.0
        assert snap.greatest_common_divisor == 2.0
        assert snap.probabilities == {0.0: 0.25, 2.0: 0.25, 4.0: 0.5}
        assert list(snap.probabilities) == [0.0, 2.0, 4.0]

    def test_moments_match_simple_engine(self, random_values):
        advanced = AdvancedAccumulator.from_values(random_values)
        simple = MomentAccumulator.from_values(random_values)
        assert advanced.moments == simple
        assert advanced.snapshot().variance == simple.snapshot().variance

    def test_probabilities_sum_to_one(self, random_values):
        snap = AdvancedAccumulator.from_values(random_values).snapshot()
        assert sum(snap.probabilities.values()) == pytest.approx(1.0)

    def test_bounds_follow_removals(self):
        acc = AdvancedAccumulator.from_values([5.0, 1.0, 9.0, 1.0])
        acc.remove(9.0)
        acc.remove(1.0)
        assert acc.minimum == 1.0
        assert acc.maximum == 5.0
        acc.remove(1.0)
        assert acc.minimum == acc.maximum == 5.0

    def test_remove_everything_resets(self, gcd_values):
        acc = AdvancedAccumulator.from_values(gcd_values)
        for v in gcd_values:
            acc.remove(v)
        assert acc.is_empty()
        assert acc == AdvancedAccumulator()
        assert acc.integer_multiplier == 1
        assert acc.greatest_common_divisor is None

    def test_remove_full_count_at_once(self):
        acc = AdvancedAccumulator()
        acc.add(0.5, count=3)
        acc.remove(0.5, count=3)
        assert acc == AdvancedAccumulator()


class TestAdvancedErrors:
    """Test that failed calls leave the engine untouched."""

    def test_remove_unknown_value(self):
        acc = AdvancedAccumulator.from_values([1.0, 2.0])
        before = acc.copy()
        with pytest.raises(CountUnderflowError):
            acc.remove(3.0)
        assert acc == before

    def test_remove_more_than_held(self):
        acc = AdvancedAccumulator.from_values([1.0, 2.0, 2.0])
        with pytest.raises(CountUnderflowError):
            acc.remove(2.0, count=3)
        assert acc.frequencies == {1.0: 1, 2.0: 2}

    def test_remove_from_empty(self):
        with pytest.raises(EmptyAccumulatorError):
            AdvancedAccumulator().remove(1.0)

    def test_invalid_arguments(self):
        acc = AdvancedAccumulator()
        with pytest.raises(InvalidCountError):
            acc.add(1.0, count=0)
        with pytest.raises(ArgumentError):
            acc.add(math.nan)
        with pytest.raises(ArgumentError):
            acc.multiply(0)
        assert acc.is_empty()

    def test_large_value_after_decimal(self):
        acc = AdvancedAccumulator.from_values([0.5])
        before = acc.copy()
        with pytest.raises(ArgumentError):
            acc.add(1e308)
        assert acc == before
        assert acc.frequencies == {0.5: 1}

    def test_decimal_after_large_value(self):
        acc = AdvancedAccumulator.from_values([1e308])
        before = acc.copy()
        with pytest.raises(ArgumentError):
            acc.add(0.5)
        assert acc == before

    def test_large_value_at_unit_multiplier(self):
        acc = AdvancedAccumulator.from_values([1e308])
        acc.add(1e308, count=2)
        assert acc.integer_multiplier == 1
        assert acc.greatest_common_divisor == int(1e308)
        assert acc.count == 3

    def test_empty_bounds(self):
        with pytest.raises(EmptyAccumulatorError):
            AdvancedAccumulator().minimum


class TestAdvancedCombine:
    """Test histogram-replay combine and multiply."""

    def test_combine_known_values(self):
        a = AdvancedAccumulator.from_values([1, 2, 3])
        b = AdvancedAccumulator.from_values([2, 4, 5, 6])
        combined = a.combine(b)
        snap = combined.snapshot()

        assert snap.sum == 23.0
        assert snap.mean == pytest.approx(3.29, abs=0.01)
        assert snap.variance == pytest.approx(3.24, abs=0.01)
        assert snap.population_variance == pytest.approx(2.78, abs=0.01)
        assert combined.frequencies == {1.0: 1, 2.0: 2, 3.0: 1, 4.0: 1, 5.0: 1, 6.0: 1}
        assert a.count == 3
        assert b.count == 4

    def test_combine_equals_union(self, gcd_values):
        a = AdvancedAccumulator.from_values(gcd_values[:3])
        b = AdvancedAccumulator.from_values(gcd_values[3:])
        union = AdvancedAccumulator.from_values(gcd_values)
        combined = a.combine(b)

        assert combined.frequencies == union.frequencies
        assert combined.greatest_common_divisor == union.greatest_common_divisor
        assert combined.integer_multiplier == union.integer_multiplier
        assert combined.sum == pytest.approx(union.sum)

    def test_combine_with_empty(self):
        a = AdvancedAccumulator.from_values([1.0, 2.0])
        assert a.combine(None).frequencies == a.frequencies
        assert AdvancedAccumulator().combine(a).frequencies == a.frequencies

    def test_multiply_known_values(self):
        snap = AdvancedAccumulator.from_values([2, 4, 6]).multiply(3).snapshot()
        assert snap.variance == pytest.approx(36.0)
        assert snap.population_variance == pytest.approx(24.0)
        assert snap.standard_deviation == pytest.approx(6.0)
        assert snap.minimum == 6.0
        assert snap.maximum == 18.0

    def test_multiply_negative_reorders(self):
        acc = AdvancedAccumulator.from_values([1.0, 2.0, 3.0]).multiply(-1)
        assert list(acc.frequencies) == [-3.0, -2.0, -1.0]
        assert acc.greatest_common_divisor == 1

    def test_scale_in_place(self):
        acc = AdvancedAccumulator.from_values([2, 4])
        acc.scale(0.5)
        assert acc.frequencies == {1.0: 1, 2.0: 1}


class TestAdvancedState:
    """Test raw state round trips."""

    def test_state_round_trip(self, gcd_values):
        acc = AdvancedAccumulator.from_values(gcd_values)
        acc.add(2.0, count=3)
        restored = AdvancedAccumulator.from_state(**acc.to_state())

        assert restored == acc
        assert restored.snapshot() == acc.snapshot()

    def test_empty_state_round_trip(self):
        acc = AdvancedAccumulator()
        assert AdvancedAccumulator.from_state(**acc.to_state()) == acc

    def test_inconsistent_state(self):
        state = AdvancedAccumulator.from_values([1.0, 2.0]).to_state()
        state["count"] = 3
        with pytest.raises(ArgumentError):
            AdvancedAccumulator.from_state(**state)

    def test_inconsistent_zero_count(self):
        state = AdvancedAccumulator.from_values([0.0, 2.0]).to_state()
        state["count_zero"] = 0
        with pytest.raises(ArgumentError):
            AdvancedAccumulator.from_state(**state)

    def test_inconsistent_scale_counts(self):
        state = AdvancedAccumulator.from_values([2.0, 2.0, 3.0]).to_state()
        state["scale_counts"] = {1: 1}
        with pytest.raises(ArgumentError):
            AdvancedAccumulator.from_state(**state)

    def test_inconsistent_gcd(self):
        state = AdvancedAccumulator.from_values([2.0, 4.0]).to_state()
        state["gcd"] = 7
        with pytest.raises(ArgumentError):
            AdvancedAccumulator.from_state(**state)

    def test_restored_state_after_removals(self, gcd_values):
        acc = AdvancedAccumulator.from_values(gcd_values)
        acc.remove(0.05)
        acc.remove(8000.0)
        restored = AdvancedAccumulator.from_state(**acc.to_state())
        assert restored == acc
        assert restored.greatest_common_divisor == 2
