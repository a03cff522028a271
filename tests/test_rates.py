"""Tests for momentum rate, overall rate and trend classification."""

from __future__ import annotations

import pytest

from checkin.config.settings import MetricsConfig
from checkin.tracking.deltas import compute_deltas
from checkin.tracking.models import Trend
from checkin.tracking.rates import (
    aggregate_rate,
    compute_momentum_rate,
    compute_overall_rate,
    compute_trend,
    momentum_series,
    momentum_window,
    round_half_away,
)

from conftest import make_series


class TestRoundHalfAway:
    """Tests for round_half_away."""

    def test_half_rounds_up(self) -> None:
        assert round_half_away(0.125) == 0.13

    def test_negative_half_rounds_away_from_zero(self) -> None:
        assert round_half_away(-0.125) == -0.13

    def test_decimal_representation_used(self) -> None:
        """2.675 is stored just below the half but displays as 2.675."""
        assert round_half_away(2.675) == 2.68

    def test_places(self) -> None:
        assert round_half_away(1.25, 1) == 1.3


class TestScenarios:
    """End-to-end checks on small hand-computed series."""

    def test_single_week(self) -> None:
        """Week 0 -> week 1 at 200 -> 198."""
        series = make_series({0: 200.0, 1: 198.0})

        assert compute_momentum_rate(series, 1) == pytest.approx(1.0)
        assert compute_overall_rate(series, 1) == pytest.approx(1.0)
        trend = compute_trend(series, 1)
        assert trend.direction == Trend.STABLE
        assert trend.current_delta == pytest.approx(1.0)

    def test_progressive_week_four(self) -> None:
        series = make_series({0: 200.0, 1: 198.0, 2: 197.0, 3: 195.0, 4: 194.0})
        # mean(1.0, 0.505, 1.015, 0.513) = 0.758
        assert compute_momentum_rate(series, 4) == pytest.approx(0.76)

    def test_rolling_window_week_six(self, steady_series) -> None:
        """Week 6 averages weeks 3-6 only, not weeks 1-6."""
        deltas = compute_deltas(steady_series)
        last_four = [d.percent_change for d in deltas if 3 <= d.week_number <= 6]
        expected = round_half_away(sum(last_four) / 4)

        assert compute_momentum_rate(steady_series, 6) == pytest.approx(expected)
        assert compute_momentum_rate(steady_series, 6) == pytest.approx(0.90)

        all_six = round_half_away(sum(d.percent_change for d in deltas) / 6)
        assert compute_momentum_rate(steady_series, 6) != pytest.approx(all_six)

    def test_missing_week_bridged(self, gapped_series) -> None:
        """Week 7 compares against week 5 when week 6 has no weight."""
        trend = compute_trend(gapped_series, 7)
        assert trend.current_delta == pytest.approx((193.0 - 185.0) / 193.0 * 100)

    def test_large_swing_forces_stable(self) -> None:
        """A 9% week counts toward momentum but never drives the trend."""
        series = make_series({0: 200.0, 1: 198.0, 2: 196.0, 3: 178.36, 4: 176.0, 5: 174.0})

        assert compute_trend(series, 3).direction == Trend.STABLE
        assert compute_trend(series, 4).direction == Trend.STABLE
        assert compute_trend(series, 5).direction == Trend.STABLE

        # Week 3 delta is 9% and still averaged in
        assert compute_momentum_rate(series, 4) == pytest.approx(3.08)
        assert compute_overall_rate(series, 3) == pytest.approx((200 - 178.36) / 200 * 100 / 3)


class TestMomentumRate:
    """Tests for compute_momentum_rate windowing."""

    def test_no_delta_at_target_is_none(self, gapped_series) -> None:
        assert compute_momentum_rate(gapped_series, 6) is None

    def test_week_zero_is_none(self, steady_series) -> None:
        assert compute_momentum_rate(steady_series, 0) is None

    def test_beyond_series_is_none(self, steady_series) -> None:
        assert compute_momentum_rate(steady_series, 10) is None

    def test_insufficient_data(self) -> None:
        assert compute_momentum_rate(make_series({0: 200.0}), 1) is None
        assert compute_momentum_rate([], 1) is None

    def test_progressive_weeks_zero_fill_gaps(self) -> None:
        """Week 2 missing counts as 0 in the week-3 mean."""
        series = make_series({0: 200.0, 1: 198.0, 3: 195.0})
        week_3_delta = (198.0 - 195.0) / 198.0 * 100
        expected = round_half_away((1.0 + 0.0 + week_3_delta) / 3)

        assert compute_momentum_rate(series, 3) == pytest.approx(expected)
        assert compute_momentum_rate(series, 3) == pytest.approx(0.84)

    def test_progressive_window_size(self) -> None:
        series = make_series({0: 200.0, 1: 198.0, 3: 195.0})
        window = momentum_window(compute_deltas(series), 3)
        assert window is not None
        assert len(window) == 3
        assert window[1] == 0.0

    def test_rolling_weeks_do_not_zero_fill(self) -> None:
        """From week 5 on, gaps are simply absent from the last four."""
        series = make_series({0: 200.0, 1: 198.0, 2: 197.0, 5: 194.0, 6: 193.0, 7: 190.0})
        deltas = compute_deltas(series)
        window = momentum_window(deltas, 7)

        assert window is not None
        assert len(window) == 4
        assert window == [d.percent_change for d in deltas if d.week_number in (2, 5, 6, 7)]
        assert compute_momentum_rate(series, 7) == pytest.approx(1.02)

    def test_rolling_with_fewer_than_four(self) -> None:
        series = make_series({0: 200.0, 5: 195.0, 6: 194.0})
        assert compute_momentum_rate(series, 5) == pytest.approx(2.5)
        assert compute_momentum_rate(series, 6) == pytest.approx(1.51)
        assert len(momentum_window(compute_deltas(series), 6)) == 2  # type: ignore[arg-type]

    def test_week_five(self, steady_series) -> None:
        # weeks 2-5
        assert compute_momentum_rate(steady_series, 5) == pytest.approx(0.64)

    def test_custom_window(self, steady_series) -> None:
        config = MetricsConfig(rolling_window=2)
        deltas = compute_deltas(steady_series)
        expected = round_half_away((deltas[-1].percent_change + deltas[-2].percent_change) / 2)
        assert compute_momentum_rate(steady_series, 6, config) == pytest.approx(expected)

    def test_gain_is_negative(self) -> None:
        series = make_series({0: 200.0, 1: 202.0})
        assert compute_momentum_rate(series, 1) == pytest.approx(-1.0)

    def test_zero_weight_never_nan(self) -> None:
        series = make_series({0: 200.0, 1: 0.0, 2: 198.0, 3: 197.0})
        for week in range(0, 5):
            value = compute_momentum_rate(series, week)
            if value is not None:
                assert value == value
                assert abs(value) != float("inf")
        assert compute_momentum_rate(series, 2) is None

    def test_waist_measure(self) -> None:
        from checkin.tracking.models import WeeklyRecord

        series = [
            WeeklyRecord(0, 200.0, waist=40.0),
            WeeklyRecord(1, 198.0, waist=39.0),
        ]
        assert compute_momentum_rate(series, 1, quantity="waist") == pytest.approx(2.5)


class TestOverallRate:
    """Tests for compute_overall_rate."""

    def test_even_average(self, steady_series) -> None:
        # 200 -> 190 is 5% over 6 weeks
        assert compute_overall_rate(steady_series, 6) == pytest.approx(5.0 / 6)

    def test_week_zero_is_none(self, steady_series) -> None:
        assert compute_overall_rate(steady_series, 0) is None

    def test_no_measurement_at_target_is_none(self, gapped_series) -> None:
        assert compute_overall_rate(gapped_series, 6) is None

    def test_no_baseline_is_none(self) -> None:
        assert compute_overall_rate(make_series({0: None, 1: None}), 1) is None
        assert compute_overall_rate([], 1) is None

    def test_zero_baseline_is_none(self) -> None:
        assert compute_overall_rate(make_series({0: 0.0, 1: 198.0}), 1) is None

    def test_earliest_week_baseline(self) -> None:
        """Without week 0 the earliest measured week is the baseline."""
        series = make_series({2: 200.0, 4: 196.0})
        assert compute_overall_rate(series, 4) == pytest.approx(2.0 / 4)

    def test_unmeasured_week_before_baseline_is_none(self) -> None:
        series = make_series({1: None, 2: 200.0, 4: 196.0})
        assert compute_overall_rate(series, 1) is None

    def test_not_rounded(self, steady_series) -> None:
        value = compute_overall_rate(steady_series, 6)
        assert value == pytest.approx(0.833333, abs=1e-6)


class TestTrend:
    """Tests for compute_trend."""

    def test_accelerating(self) -> None:
        series = make_series({0: 200.0, 1: 199.0, 2: 198.0, 3: 196.0})
        assert compute_trend(series, 3).direction == Trend.ACCELERATING

    def test_decelerating(self) -> None:
        series = make_series({0: 200.0, 1: 198.0, 2: 196.0, 3: 195.5})
        assert compute_trend(series, 3).direction == Trend.DECELERATING

    def test_stable_within_band(self) -> None:
        series = make_series({0: 200.0, 1: 198.0, 2: 196.0, 3: 194.0})
        assert compute_trend(series, 3).direction == Trend.STABLE

    def test_early_weeks_stable(self, steady_series) -> None:
        result = compute_trend(steady_series, 2)
        assert result.direction == Trend.STABLE
        assert result.current_delta == pytest.approx((198.0 - 197.0) / 198.0 * 100)

    def test_needs_two_earlier_deltas(self) -> None:
        """Week 3 has only one earlier delta when week 1 is missing."""
        series = make_series({0: 200.0, 2: 199.0, 3: 196.0})
        assert compute_trend(series, 3).direction == Trend.STABLE

    def test_sparse_weeks_use_latest_earlier_deltas(self) -> None:
        """Earlier deltas are found by order, not by week - 1 / week - 2."""
        series = make_series({0: 200.0, 1: 199.0, 4: 198.0, 8: 196.0})
        assert compute_trend(series, 8).direction == Trend.ACCELERATING

    def test_no_delta_at_target(self, gapped_series) -> None:
        result = compute_trend(gapped_series, 6)
        assert result.direction == Trend.STABLE
        assert result.current_delta is None

    def test_outlier_threshold_configurable(self) -> None:
        series = make_series({0: 200.0, 1: 198.0, 2: 196.0, 3: 178.36})
        assert compute_trend(series, 3).direction == Trend.STABLE
        relaxed = MetricsConfig(outlier_threshold=10.0)
        assert compute_trend(series, 3, relaxed).direction == Trend.ACCELERATING

    def test_trend_phrases(self) -> None:
        assert Trend.ACCELERATING.direction_phrase == "trending up"
        assert Trend.DECELERATING.description_phrase == "slowing down"
        assert Trend.STABLE.description_phrase == "maintaining pace"


class TestAggregate:
    """Tests for aggregate_rate and momentum_series."""

    def test_deterministic(self, gapped_series) -> None:
        first = [aggregate_rate(gapped_series, w) for w in range(0, 9)]
        second = [aggregate_rate(gapped_series, w) for w in range(0, 9)]
        assert first == second

    def test_aggregate_matches_individual_operations(self, steady_series) -> None:
        rate = aggregate_rate(steady_series, 6)
        assert rate.momentum_rate == compute_momentum_rate(steady_series, 6)
        assert rate.overall_rate == compute_overall_rate(steady_series, 6)
        assert rate.trend == compute_trend(steady_series, 6)
        assert rate.window_size == 4

    def test_undefined_week(self, gapped_series) -> None:
        rate = aggregate_rate(gapped_series, 6)
        assert rate.momentum_rate is None
        assert rate.overall_rate is None
        assert rate.window_size == 0

    def test_series_covers_delta_weeks(self, gapped_series) -> None:
        weeks = [r.week_number for r in momentum_series(gapped_series)]
        assert weeks == [1, 2, 3, 4, 5, 7]

    def test_series_agrees_with_single_week(self, steady_series) -> None:
        for rate in momentum_series(steady_series):
            assert rate.momentum_rate == compute_momentum_rate(steady_series, rate.week_number)

    def test_order_independent(self, steady_series) -> None:
        reversed_series = list(reversed(steady_series))
        assert momentum_series(reversed_series) == momentum_series(steady_series)
