"""
incstats - Incremental Statistics

Descriptive statistics over a changing sample without storing the values:
- O(1) add and remove of weighted observations (Welford moments)
- Parallel merge and exact rescaling of whole samples
- Frequency histogram with min/max, probabilities and an exact GCD
- Empirical PDF/CDF built from observed probabilities

Modules:
- moments: MomentAccumulator (count, sum, SSE)
- advanced: AdvancedAccumulator (moments + histogram + GCD)
- distribution: EmpiricalPDF / EmpiricalCDF
- trackers: mutable tracker API (errors wrapped in TrackerOperationError)
- sample: immutable value API (every operation returns a new instance)
- serialization: tagged JSON payloads

Architecture:
    ┌─────────────────────────────────────────────────┐
    │  StatisticsTracker        SampleStatistics      │
    │  (mutable, wraps errors)  (immutable, clones)   │
    ├─────────────────────────────────────────────────┤
    │  MomentAccumulator | AdvancedAccumulator        │
    │                      ├─ FrequencyHistogram      │
    │                      └─ GcdTracker              │
    └─────────────────────────────────────────────────┘

Example:
    >>> from incstats import AdvancedStatisticsTracker
    >>>
    >>> tracker = AdvancedStatisticsTracker.from_values(0.05, 0.2, 2, 20)
    >>> tracker.remove(0.05)
    >>> snap = tracker.take_snapshot()
    >>> snap.greatest_common_divisor
    0.2
    >>> snap.to_cdf().pr_less_than_or_equal(2)
    0.6666666666666666
"""

__version__ = '0.1.0'

import logging

from ._config import ComputeConfig, StatisticsConfig, config
from ._errors import (
    StatisticsError,
    ArgumentError,
    InvalidCountError,
    SortOrderError,
    ProbabilityMassError,
    EmptyAccumulatorError,
    CountUnderflowError,
    TrackerOperationError,
)
from .snapshot import Snapshot, AdvancedSnapshot
from .moments import MomentAccumulator
from .histogram import FrequencyHistogram
from .gcd import GcdTracker, MAX_DECIMAL_PLACES, decimal_places
from .advanced import AdvancedAccumulator
from .distribution import EmpiricalPDF, EmpiricalCDF
from .trackers import StatisticsTracker, SimpleStatisticsTracker, AdvancedStatisticsTracker
from .sample import SampleStatistics, AdvancedSampleStatistics
from . import serialization

logging.getLogger("incstats").addHandler(logging.NullHandler())

__all__ = [
    # Configuration
    'ComputeConfig',
    'StatisticsConfig',
    'config',

    # Errors
    'StatisticsError',
    'ArgumentError',
    'InvalidCountError',
    'SortOrderError',
    'ProbabilityMassError',
    'EmptyAccumulatorError',
    'CountUnderflowError',
    'TrackerOperationError',

    # Snapshots
    'Snapshot',
    'AdvancedSnapshot',

    # Engines
    'MomentAccumulator',
    'FrequencyHistogram',
    'GcdTracker',
    'MAX_DECIMAL_PLACES',
    'decimal_places',
    'AdvancedAccumulator',

    # Distributions
    'EmpiricalPDF',
    'EmpiricalCDF',

    # Public APIs
    'StatisticsTracker',
    'SimpleStatisticsTracker',
    'AdvancedStatisticsTracker',
    'SampleStatistics',
    'AdvancedSampleStatistics',
    'serialization',
]
