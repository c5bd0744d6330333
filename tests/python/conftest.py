"""
Pytest configuration and shared fixtures for incstats tests.

numpy is the reference implementation for moment checks.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

import incstats
from incstats import ComputeConfig


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def default_config():
    """Run every test against the default configuration."""
    incstats.config.reset()
    yield incstats.config
    incstats.config.reset()


@pytest.fixture
def lenient_config():
    """Let the moment engine accept NaN and inf for the duration of a test."""
    with incstats.config.local(compute=ComputeConfig(check_finite=False)) as cfg:
        yield cfg


@pytest.fixture
def random_values():
    """Random sample (seeded) with a few repeated values."""
    rng = np.random.default_rng(42)
    values = rng.normal(loc=10.0, scale=3.0, size=200)
    return np.concatenate([values, values[:20]]).tolist()


@pytest.fixture
def gcd_values():
    """Values whose GCD needs a 100x integer multiplier."""
    return [0.05, 0.2, 2.0, 20.0, 400.0, 8000.0]


@pytest.fixture
def reference():
    """Return a function computing reference statistics with numpy."""
    return reference_stats


# =============================================================================
# Helper Functions
# =============================================================================

def reference_stats(values):
    """Reference statistics of ``values`` computed by numpy."""
    arr = np.asarray(values, dtype=np.float64)
    n = arr.size
    mean = float(arr.mean())
    return {
        "count": n,
        "sum": float(arr.sum()),
        "mean": mean,
        "variance": float(arr.var(ddof=1)) if n > 1 else 0.0,
        "population_variance": float(arr.var()) if n > 1 else 0.0,
        "sum_squared_error": float(((arr - mean) ** 2).sum()),
    }
