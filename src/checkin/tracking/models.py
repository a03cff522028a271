"""Data models for weekly check-ins and progress metrics."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


# Quantities the engine can run on
VALID_QUANTITIES = ("quantity", "waist")
VALID_UNIT_SYSTEMS = ("imperial", "metric")


class Trend(str, Enum):
    """Direction of the momentum compared with the previous week."""

    ACCELERATING = "accelerating"
    DECELERATING = "decelerating"
    STABLE = "stable"

    @property
    def direction_phrase(self) -> str:
        """Short phrase used in the weekly message."""
        return {
            Trend.ACCELERATING: "trending up",
            Trend.DECELERATING: "trending down",
            Trend.STABLE: "stable",
        }[self]

    @property
    def description_phrase(self) -> str:
        """Longer phrase used in the weekly message."""
        return {
            Trend.ACCELERATING: "actually speeding up",
            Trend.DECELERATING: "slowing down",
            Trend.STABLE: "maintaining pace",
        }[self]


@dataclass
class Patient:
    """Patient profile used by the weekly message."""

    patient_id: Optional[int]
    full_name: str
    goal_rate_percent: Optional[float] = None  # target % loss per week
    protein_goal_grams: Optional[float] = None
    unit_system: str = "imperial"
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.full_name.strip():
            raise ValueError("full_name must not be empty")
        if self.unit_system not in VALID_UNIT_SYSTEMS:
            raise ValueError(
                f"unit_system must be one of {VALID_UNIT_SYSTEMS}, got '{self.unit_system}'"
            )

    @property
    def first_name(self) -> str:
        parts = self.full_name.split()
        return parts[0] if parts else "Patient"


@dataclass(frozen=True)
class WeeklyRecord:
    """One weekly check-in. Week 0 is the baseline week.

    `quantity` is the tracked measurement (usually body weight). `None`
    means nothing was measured that week. `recorded_at` is for display only;
    ordering always uses `week_number`.
    """

    week_number: int
    quantity: Optional[float] = None
    recorded_at: Optional[date] = None
    waist: Optional[float] = None
    notes: Optional[str] = None
    record_id: Optional[int] = None
    patient_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.week_number < 0:
            raise ValueError(f"week_number must be >= 0, got {self.week_number}")
        for name in VALID_QUANTITIES:
            value = getattr(self, name)
            if value is None:
                continue
            if not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value}")
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    def measure(self, quantity: str = "quantity") -> Optional[float]:
        """Return the selected measurement ('quantity' or 'waist')."""
        if quantity not in VALID_QUANTITIES:
            raise ValueError(f"quantity must be one of {VALID_QUANTITIES}, got '{quantity}'")
        return getattr(self, quantity)


@dataclass(frozen=True)
class IndividualDelta:
    """Percent change against the nearest earlier measured week.

    Positive means the quantity went down (loss).
    """

    week_number: int
    percent_change: float


@dataclass(frozen=True)
class Baseline:
    """Reference starting measurement."""

    week_number: int
    quantity: float


@dataclass(frozen=True)
class TrendResult:
    """Trend classification for one week."""

    direction: Trend
    current_delta: Optional[float]


@dataclass(frozen=True)
class AggregatedRate:
    """All rate metrics for a single target week."""

    week_number: int
    momentum_rate: Optional[float]
    overall_rate: Optional[float]
    trend: TrendResult
    window_size: int = 0
