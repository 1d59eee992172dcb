"""
Weekly Holt-Winters forecaster tests.
"""
from __future__ import annotations

import math
from datetime import date

import pytest

from inventory_forecast.forecasting.config import WeeklyForecastConfig
from inventory_forecast.forecasting.holt_winters import (
    MAX_SEASONAL_INDEX,
    MIN_SEASONAL_INDEX,
    SmoothingState,
    build_weekly_forecast,
    initialize_level,
    initialize_seasonals,
    initialize_trend,
    smoothing_step,
)
from inventory_forecast.forecasting.results import FORECAST_PHASE, HISTORY_PHASE

from conftest import weekly_series


# ============================================================
# Configuration
# ============================================================

def test_config_defaults():
    config = WeeklyForecastConfig.from_options()

    assert (config.alpha, config.beta, config.gamma) == (0.3, 0.2, 0.3)
    assert config.seasonal_period == 4
    assert config.horizon == 8
    assert config.min_history_length == 12


def test_config_clamps_out_of_range_values():
    config = WeeklyForecastConfig.from_options(
        alpha=2, beta=-1, gamma=math.nan, seasonal_period=20, horizon=0, min_history_length=1
    )

    assert config.alpha == 1.0
    assert config.beta == 0.0
    assert config.gamma == 0.0
    assert config.seasonal_period == 12
    assert config.horizon == 1
    assert config.min_history_length == 24


def test_config_rounds_seasonal_period_and_derives_min_history():
    assert WeeklyForecastConfig.from_options(seasonal_period=2.5).seasonal_period == 3
    assert WeeklyForecastConfig.from_options(seasonal_period=math.nan).seasonal_period == 4
    assert WeeklyForecastConfig.from_options(seasonal_period=6).min_history_length == 18


def test_config_resolve_accepts_mapping_and_instance():
    from_mapping = WeeklyForecastConfig.resolve({"horizon": 3})
    from_instance = WeeklyForecastConfig.resolve(WeeklyForecastConfig(alpha=5))

    assert from_mapping.horizon == 3
    assert from_instance.alpha == 1.0
    assert from_instance.min_history_length == 12


# ============================================================
# Initialization
# ============================================================

def test_initialize_level_uses_first_season():
    assert initialize_level([2, 4, 6], 4) == 4
    assert initialize_level([10, 20, 30, 40, 50], 2) == 15
    assert initialize_level([], 4) == 0.0


def test_initialize_trend():
    assert initialize_trend([0, 0, 4, 4], 2) == 2
    assert initialize_trend([10, 20, 30], 4) == 10


def test_initialize_seasonals_from_two_seasons():
    assert initialize_seasonals([10, 30, 10, 30], 2) == pytest.approx([0.5, 1.5])
    assert initialize_seasonals([10, 30, 10], 2) == [1.0, 1.0]


# ============================================================
# Recurrence
# ============================================================

def test_seasonal_index_clamped_upward():
    config = WeeklyForecastConfig.from_options(alpha=0, beta=0, gamma=1)
    state = SmoothingState(level=1.0, trend=0.0, seasonals=(1.0, 1.0))

    new_state, fitted = smoothing_step(state, 1e6, 0, config)

    assert fitted == 1.0
    assert new_state.seasonals == (MAX_SEASONAL_INDEX, 1.0)


def test_seasonal_index_clamped_downward():
    config = WeeklyForecastConfig.from_options(alpha=0, beta=0, gamma=1)
    state = SmoothingState(level=1.0, trend=0.0, seasonals=(1.0, 0.001))

    new_state, _ = smoothing_step(state, 0.0, 1, config)

    assert new_state.seasonals[1] == MIN_SEASONAL_INDEX


def test_smoothing_step_returns_new_state():
    config = WeeklyForecastConfig.from_options()
    state = SmoothingState(level=100.0, trend=0.0, seasonals=(1.0, 1.0, 1.0, 1.0))

    new_state, _ = smoothing_step(state, 130.0, 2, config)

    assert new_state is not state
    assert state.level == 100.0
    assert new_state.level == pytest.approx(109.0)


# ============================================================
# build_weekly_forecast
# ============================================================

def test_constant_history_forecasts_constant(constant_weekly_history):
    result = build_weekly_forecast(constant_weekly_history)

    assert len(result.history_points) == 12
    assert len(result.forecast_points) == 8
    assert all(abs(point.forecast - 100) <= 1 for point in result.timeline)
    assert result.mape is not None and result.mape <= 1.0
    assert result.seasonal_factors == pytest.approx([1.0] * 4)


def test_future_weeks_follow_last_history_week(constant_weekly_history):
    result = build_weekly_forecast(constant_weekly_history, {"horizon": 2})

    assert result.history_points[-1].date == "2024-03-18"
    assert [point.date for point in result.forecast_points] == ["2024-03-25", "2024-04-01"]
    assert all(point.actual is None for point in result.forecast_points)


def test_all_zero_history():
    result = build_weekly_forecast(weekly_series([0] * 12))

    assert all(point.forecast == 0 for point in result.timeline)
    assert result.mape is None
    assert result.seasonal_factors == [1.0, 1.0, 1.0, 1.0]
    assert result.level == 0.0 and result.trend == 0.0


def test_empty_history_synthesizes_zero_weeks(today):
    result = build_weekly_forecast([], today=today)

    assert len(result.timeline) == 20
    assert result.history_points[-1].date == "2024-06-03"
    assert all(point.forecast == 0 for point in result.timeline)


def test_short_history_is_padded_with_mean():
    history = weekly_series([40, 50, 60])

    result = build_weekly_forecast(history)

    history_points = result.history_points
    assert len(history_points) == 12
    assert [point.actual for point in history_points[-3:]] == [40, 50, 60]
    assert all(point.actual == 50 for point in history_points[:9])


def test_seasonal_factors_normalized(seasonal_weekly_history):
    result = build_weekly_forecast(seasonal_weekly_history)

    factors = result.seasonal_factors
    assert len(factors) == result.seasonal_period == 4
    assert sum(factors) / len(factors) == pytest.approx(1.0)
    assert all(MIN_SEASONAL_INDEX <= factor <= MAX_SEASONAL_INDEX for factor in factors)


def test_forecast_is_deterministic(seasonal_weekly_history):
    first = build_weekly_forecast(seasonal_weekly_history, today=date(2024, 6, 5))
    second = build_weekly_forecast(seasonal_weekly_history, today=date(2024, 6, 5))

    assert first.to_dict() == second.to_dict()


def test_timeline_shape_and_values(seasonal_weekly_history):
    result = build_weekly_forecast(seasonal_weekly_history, {"horizon": 5})

    phases = [point.phase for point in result.timeline]
    assert phases == [HISTORY_PHASE] * 16 + [FORECAST_PHASE] * 5
    assert all(isinstance(point.forecast, int) and point.forecast >= 0 for point in result.timeline)
    assert result.mape is not None and result.mape >= 0
    assert result.smoothing == {"alpha": 0.3, "beta": 0.2, "gamma": 0.3}


def test_promo_flag_carried_to_history():
    history = weekly_series([100] * 12, promo_weeks=(5,))

    result = build_weekly_forecast(history)

    assert [point.promo for point in result.history_points].count(True) == 1
    assert result.history_points[5].promo


def test_to_dataframe_has_timeline_columns(constant_weekly_history):
    frame = build_weekly_forecast(constant_weekly_history).to_dataframe()

    assert list(frame.columns) == ["date", "actual", "forecast", "phase", "promo"]
    assert len(frame) == 20


def test_seasonal_indices_stay_bounded_on_every_step():
    config = WeeklyForecastConfig.from_options(gamma=1)
    values = [1, 5000, 0, 2, 0, 9000, 1, 0, 3, 7000, 0, 1]
    state = SmoothingState(level=initialize_level(values, 4),
                           trend=initialize_trend(values, 4),
                           seasonals=tuple(initialize_seasonals(values, 4)))

    for index, actual in enumerate(values):
        state, _ = smoothing_step(state, actual, index % 4, config)
        assert MIN_SEASONAL_INDEX <= state.seasonals[index % 4] <= MAX_SEASONAL_INDEX


def test_week_marker_history_keeps_every_week(today):
    history = [
        {"weekMarker": "2024-05-13", "quantity": 10},
        {"weekMarker": "2024-05-20", "quantity": 20},
        {"weekMarker": "2024-05-27", "quantity": 30},
        {"weekMarker": "2024-06-03", "quantity": 40},
    ]

    result = build_weekly_forecast(history, today=today)

    tail = [(point.date, point.actual) for point in result.history_points[-4:]]
    assert tail == [("2024-05-13", 10), ("2024-05-20", 20), ("2024-05-27", 30), ("2024-06-03", 40)]
    assert all(point.actual == 25 for point in result.history_points[:-4])
