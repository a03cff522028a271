"""Weekly progress tracking module.

This module computes progress metrics from sparse weekly check-ins. Every
function recomputes from the full series it is given; nothing is cached.

Key components:
- Series normalization and baseline resolution
- Individual week deltas (percent change vs nearest earlier measured week)
- Momentum ("plateau prevention") rate, overall rate and trend
- Patient and check-in queries
"""

from __future__ import annotations

from checkin.tracking.deltas import compute_deltas
from checkin.tracking.models import (
    AggregatedRate,
    Baseline,
    IndividualDelta,
    Patient,
    Trend,
    TrendResult,
    WeeklyRecord,
)
from checkin.tracking.rates import (
    aggregate_rate,
    compute_momentum_rate,
    compute_overall_rate,
    compute_trend,
    momentum_series,
    momentum_window,
)
from checkin.tracking.series import normalize_series, resolve_baseline

__all__ = [
    "AggregatedRate",
    "Baseline",
    "IndividualDelta",
    "Patient",
    "Trend",
    "TrendResult",
    "WeeklyRecord",
    "aggregate_rate",
    "compute_deltas",
    "compute_momentum_rate",
    "compute_overall_rate",
    "compute_trend",
    "momentum_series",
    "momentum_window",
    "normalize_series",
    "resolve_baseline",
]
