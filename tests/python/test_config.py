"""
Tests for the global configuration manager.
"""

import math

import pytest

import incstats
from incstats import ArgumentError, ComputeConfig, MomentAccumulator, StatisticsConfig
from incstats._config import _compute_from_env


class TestComputeConfig:
    """Test defaults and environment handling."""

    def test_defaults(self):
        cfg = ComputeConfig()
        assert cfg.probability_tolerance == 1e-10
        assert cfg.check_finite is True

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("INCSTATS_PROBABILITY_TOLERANCE", "1e-6")
        monkeypatch.setenv("INCSTATS_CHECK_FINITE", "false")
        cfg = _compute_from_env()
        assert cfg.probability_tolerance == 1e-6
        assert cfg.check_finite is False

    def test_env_unset(self, monkeypatch):
        monkeypatch.delenv("INCSTATS_PROBABILITY_TOLERANCE", raising=False)
        monkeypatch.delenv("INCSTATS_CHECK_FINITE", raising=False)
        assert _compute_from_env() == ComputeConfig()


class TestStatisticsConfig:
    """Test global and local overrides."""

    def test_local_override_restores(self, default_config):
        assert default_config.probability_tolerance == 1e-10
        with default_config.local(compute=ComputeConfig(probability_tolerance=0.1)):
            assert default_config.probability_tolerance == 0.1
        assert default_config.probability_tolerance == 1e-10

    def test_nested_local(self, default_config):
        with default_config.local(compute=ComputeConfig(probability_tolerance=0.1)):
            with default_config.local(compute=ComputeConfig(probability_tolerance=0.2)):
                assert default_config.probability_tolerance == 0.2
            assert default_config.probability_tolerance == 0.1

    def test_local_none_is_ignored(self, default_config):
        with default_config.local(compute=None):
            assert default_config.compute == ComputeConfig()

    def test_unknown_section(self, default_config):
        with pytest.raises(TypeError):
            default_config.local(memory=1)

    def test_setter_notifies(self):
        cfg = StatisticsConfig(ComputeConfig())
        seen = []
        cfg.on_change("compute", seen.append)

        new = ComputeConfig(check_finite=False)
        cfg.compute = new

        assert seen == [new]
        assert cfg.check_finite is False

    def test_copy_compute(self, default_config):
        changed = default_config.copy_compute(probability_tolerance=1e-3)
        assert changed.probability_tolerance == 1e-3
        assert default_config.probability_tolerance == 1e-10

    def test_reset(self, default_config):
        default_config.compute = ComputeConfig(check_finite=False)
        default_config.reset()
        assert default_config.compute == ComputeConfig()


class TestCheckFinite:
    """Test that check_finite governs the moment engine."""

    def test_nan_rejected_by_default(self):
        acc = MomentAccumulator()
        with pytest.raises(ArgumentError):
            acc.add(math.nan)
        assert acc.is_empty()

    def test_nan_accepted_when_disabled(self, lenient_config):
        acc = MomentAccumulator()
        acc.add(1.0)
        acc.add(math.inf)
        assert acc.count == 2
        assert math.isinf(acc.sum)

    def test_advanced_engine_always_checks(self, lenient_config):
        acc = incstats.AdvancedAccumulator()
        with pytest.raises(ArgumentError):
            acc.add(math.nan)
