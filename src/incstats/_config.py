"""
incstats Config - Global Configuration

Provides property-based configuration for the statistics engines. Values can
be set globally or overridden within a ``with config.local(...)`` block.

Environment variables read when the global instance is created:

    INCSTATS_PROBABILITY_TOLERANCE   default tolerance for density sums
    INCSTATS_CHECK_FINITE            '0'/'false'/'no' lets the moment engine
                                     accept NaN and inf
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional


# =============================================================================
# Configuration Classes
# =============================================================================

@dataclass
class ComputeConfig:
    """Configuration for compute operations."""
    probability_tolerance: float = 1e-10   # Allowed |1 - sum(densities)|
    check_finite: bool = True              # Reject NaN/inf in the moment engine


def _compute_from_env() -> ComputeConfig:
    cfg = ComputeConfig()
    tolerance = os.environ.get("INCSTATS_PROBABILITY_TOLERANCE")
    if tolerance:
        cfg.probability_tolerance = float(tolerance)
    check_finite = os.environ.get("INCSTATS_CHECK_FINITE")
    if check_finite:
        cfg.check_finite = check_finite.lower() not in ("0", "false", "no")
    return cfg


# =============================================================================
# Global Configuration Manager
# =============================================================================

class StatisticsConfig:
    """
    Global configuration manager for incstats.

    Example:
        # Global configuration
        incstats.config.compute.probability_tolerance = 1e-8

        # Local configuration (context manager)
        with incstats.config.local(compute=ComputeConfig(check_finite=False)):
            tracker.add(float("nan"))
        # Back to global config
    """

    def __init__(self, compute: Optional[ComputeConfig] = None):
        self._global_compute = compute if compute is not None else _compute_from_env()

        # Stack of overrides pushed by local()
        self._overrides: List[Dict[str, object]] = []

        # Callbacks for config changes
        self._callbacks: Dict[str, List[Callable]] = {
            "compute": [],
        }

    # -------------------------------------------------------------------------
    # Property Accessors
    # -------------------------------------------------------------------------

    @property
    def compute(self) -> ComputeConfig:
        """Get compute configuration."""
        for override in reversed(self._overrides):
            if "compute" in override:
                return override["compute"]
        return self._global_compute

    @compute.setter
    def compute(self, value: ComputeConfig):
        """Set global compute configuration."""
        self._global_compute = value
        self._notify("compute", value)

    @property
    def probability_tolerance(self) -> float:
        """Tolerance for probability densities summing to 1."""
        return self.compute.probability_tolerance

    @property
    def check_finite(self) -> bool:
        """Whether the moment engine rejects NaN and inf."""
        return self.compute.check_finite

    # -------------------------------------------------------------------------
    # Context Manager Support
    # -------------------------------------------------------------------------

    def local(self, **kwargs) -> "_LocalConfigContext":
        """
        Create a local configuration context.

        Args:
            **kwargs: Configuration overrides (compute)

        Returns:
            Context manager
        """
        unknown = set(kwargs) - set(self._callbacks)
        if unknown:
            raise TypeError(f"Unknown configuration section(s): {sorted(unknown)}")
        return _LocalConfigContext(self, kwargs)

    # -------------------------------------------------------------------------
    # Callback Registration
    # -------------------------------------------------------------------------

    def on_change(self, config_name: str, callback: Callable):
        """
        Register callback for configuration changes.

        Args:
            config_name: Name of config ("compute")
            callback: Function to call when config changes
        """
        if config_name in self._callbacks:
            self._callbacks[config_name].append(callback)

    def _notify(self, config_name: str, value):
        for callback in self._callbacks.get(config_name, []):
            callback(value)

    def reset(self):
        """Reset to default configuration (ignores environment)."""
        self._overrides.clear()
        self.compute = ComputeConfig()

    def copy_compute(self, **changes) -> ComputeConfig:
        """Return a copy of the active compute config with ``changes`` applied."""
        return replace(self.compute, **changes)


class _LocalConfigContext:
    """Context manager for scoped configuration overrides."""

    def __init__(self, config: StatisticsConfig, overrides: Dict[str, object]):
        self._config = config
        self._overrides = {k: v for k, v in overrides.items() if v is not None}

    def __enter__(self) -> StatisticsConfig:
        self._config._overrides.append(self._overrides)
        return self._config

    def __exit__(self, exc_type, exc_val, exc_tb):
        stack = self._config._overrides
        for i in range(len(stack) - 1, -1, -1):
            if stack[i] is self._overrides:
                del stack[i]
                break
        return False


# Global configuration instance
config = StatisticsConfig()
