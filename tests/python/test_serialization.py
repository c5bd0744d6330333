"""
Tests for tagged payload serialization.
"""

import json

import pytest

from incstats import (
    AdvancedAccumulator,
    AdvancedSampleStatistics,
    AdvancedStatisticsTracker,
    ArgumentError,
    MomentAccumulator,
    SampleStatistics,
    SimpleStatisticsTracker,
)
from incstats.serialization import dumps, from_payload, loads, to_payload


class TestPayloads:
    """Test payload layout."""

    def test_moments_payload(self):
        payload = to_payload(MomentAccumulator.from_values([1.0, 2.0, 0.0]))
        assert payload["type"] == "moments"
        assert "wrapper" not in payload
        assert payload["state"] == {"count": 3, "count_zero": 1, "sum": 3.0, "sse": 2.0}

    def test_advanced_payload(self):
        payload = to_payload(AdvancedAccumulator.from_values([0.5, 2.0, 2.0]))
        state = payload["state"]

        assert payload["type"] == "advanced"
        assert state["frequencies"] == [[0.5, 1], [2.0, 2]]
        assert state["scale_counts"] == [[1, 2], [10, 1]]
        assert state["integer_multiplier"] == 10
        assert state["gcd"] == 5

    def test_wrapper_tag(self):
        assert to_payload(SimpleStatisticsTracker())["wrapper"] == "SimpleStatisticsTracker"
        assert to_payload(AdvancedSampleStatistics())["wrapper"] == "AdvancedSampleStatistics"

    def test_unsupported_object(self):
        with pytest.raises(TypeError):
            to_payload([1, 2, 3])


class TestRoundTrip:
    """Restoring reproduces the snapshot without replaying history."""

    @pytest.mark.parametrize("factory", [
        MomentAccumulator.from_values,
        AdvancedAccumulator.from_values,
        lambda values: SimpleStatisticsTracker(values),
        lambda values: AdvancedStatisticsTracker(values),
        lambda values: SampleStatistics.from_values(*values),
        lambda values: AdvancedSampleStatistics.from_values(*values),
    ])
    def test_json_round_trip(self, factory, gcd_values):
        original = factory(gcd_values)
        restored = loads(dumps(original))

        assert type(restored) is type(original)
        assert restored == original
        snapshot = "take_snapshot" if hasattr(original, "take_snapshot") else "snapshot"
        assert getattr(restored, snapshot)() == getattr(original, snapshot)()

    def test_restored_tracker_keeps_working(self, gcd_values):
        tracker = AdvancedStatisticsTracker(gcd_values)
        restored = loads(dumps(tracker))

        restored.remove(0.05)
        assert restored.greatest_common_divisor == 2
        assert restored.integer_multiplier == 10

    def test_empty_round_trip(self):
        for obj in (MomentAccumulator(), AdvancedAccumulator(), AdvancedStatisticsTracker()):
            assert loads(dumps(obj)) == obj


class TestMalformed:
    """Malformed payloads raise ArgumentError."""

    def _advanced_payload(self):
        return to_payload(AdvancedAccumulator.from_values([1.0, 2.0]))

    @pytest.mark.parametrize("payload", [
        None,
        [],
        {"type": "median", "state": {}},
        {"type": "moments"},
        {"type": "moments", "state": {"count": 1}},
        {"type": "moments", "state": {"count": 1, "count_zero": 0, "sum": 1.0, "sse": 0.0, "extra": 1}},
        {"type": "moments", "state": {"count": "many", "count_zero": 0, "sum": 1.0, "sse": 0.0}},
        {"type": "moments", "state": {"count": 1, "count_zero": 0, "sum": 1.0, "sse": 0.0}, "wrapper": "Nope"},
        {"type": "moments", "state": {"count": 1, "count_zero": 0, "sum": 1.0, "sse": 0.0},
         "wrapper": "AdvancedStatisticsTracker"},
    ])
    def test_bad_payloads(self, payload):
        with pytest.raises(ArgumentError):
            from_payload(payload)

    def test_frequencies_not_pairs(self):
        payload = self._advanced_payload()
        payload["state"]["frequencies"] = {"1.0": 1}
        with pytest.raises(ArgumentError):
            from_payload(payload)

    def test_frequency_count_not_integer(self):
        payload = self._advanced_payload()
        payload["state"]["frequencies"] = [[1.0, 1.5], [2.0, 1]]
        with pytest.raises(ArgumentError):
            from_payload(payload)

    def test_inconsistent_counts(self):
        payload = self._advanced_payload()
        payload["state"]["count"] = 5
        with pytest.raises(ArgumentError):
            from_payload(payload)

    def test_wrong_multiplier(self):
        payload = self._advanced_payload()
        payload["state"]["integer_multiplier"] = 100
        with pytest.raises(ArgumentError):
            from_payload(payload)

    def test_scale_counts_disagree_with_frequencies(self):
        payload = to_payload(AdvancedAccumulator.from_values([2.0, 2.0, 3.0]))
        payload["state"]["scale_counts"] = [[1, 1]]
        with pytest.raises(ArgumentError):
            from_payload(payload)

    def test_gcd_disagrees_with_frequencies(self):
        payload = to_payload(AdvancedAccumulator.from_values([2.0, 4.0]))
        assert payload["state"]["gcd"] == 2
        payload["state"]["gcd"] = 7
        with pytest.raises(ArgumentError):
            from_payload(payload)

    def test_invalid_json(self):
        with pytest.raises(ArgumentError):
            loads("{not json")

    def test_payload_is_plain_json(self, gcd_values):
        text = dumps(AdvancedStatisticsTracker(gcd_values), sort_keys=True)
        data = json.loads(text)
        assert data["wrapper"] == "AdvancedStatisticsTracker"
        assert data["state"]["count"] == len(gcd_values)
