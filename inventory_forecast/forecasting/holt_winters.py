"""
Weekly Holt-Winters forecaster.

Triple exponential smoothing with additive level and trend and a
multiplicative seasonal component over a short seasonal period (4 weeks by
default). The smoothing state is an immutable value: each step of the
recurrence returns a new state instead of updating shared variables.
"""

import logging
from typing import Iterable, List, Mapping, Optional, Tuple, Union
from dataclasses import dataclass
from datetime import date

import numpy as np

from .config import WeeklyForecastConfig
from .history import (
    ObservationInput,
    add_weeks,
    ensure_minimum_history,
    format_date,
    normalize_weekly_history,
    parse_calendar_date,
)
from .metrics import clamp_non_negative, compute_mape, rescale_to_mean_one, round_quantity
from .results import (
    FORECAST_PHASE,
    HISTORY_PHASE,
    ForecastPoint,
    NormalizedWeek,
    WeeklyForecastResult,
)


logger = logging.getLogger(__name__)

MIN_SEASONAL_INDEX = 0.01
MAX_SEASONAL_INDEX = 10.0


@dataclass(frozen=True)
class SmoothingState:
    """Level, trend and seasonal indices carried between steps."""

    level: float
    trend: float
    seasonals: Tuple[float, ...]


# ------------------------------------------------------------------------------
# Initialization
# ------------------------------------------------------------------------------
def initialize_level(values: List[float], period: int) -> float:
    if not values:
        return 0.0
    span = min(period, len(values))
    return sum(values[:span]) / span


def _endpoint_slope(values: List[float]) -> float:
    first = values[0] if values else 0.0
    last = values[-1] if values else 0.0
    return (last - first) / max(len(values) - 1, 1)


def initialize_trend(values: List[float], period: int) -> float:
    """Average period-over-period change, or the end-to-end slope for short series."""
    if len(values) < period + 1 or len(values) < period * 2:
        return _endpoint_slope(values)

    total = sum((values[index + period] - values[index]) / period for index in range(period))
    return total / period


def initialize_seasonals(values: List[float], period: int) -> List[float]:
    """
    Seasonal indices from the ratio of each value to its season's average.

    At least two full seasons are needed; otherwise every index is 1. The
    result is scaled so the indices sum to `period`.
    """
    season_count = len(values) // period
    if season_count < 2:
        return [1.0] * period

    season_averages = [
        sum(values[season * period:(season + 1) * period]) / period
        for season in range(season_count)
    ]

    seasonals = []
    for position in range(period):
        ratios = [
            values[season * period + position] / season_averages[season]
            for season in range(season_count)
            if season_averages[season] > 0
        ]
        seasonals.append(sum(ratios) / len(ratios) if ratios else 1.0)

    if sum(seasonals) <= 0:
        return [1.0] * period
    return rescale_to_mean_one(seasonals)


# ------------------------------------------------------------------------------
# Recurrence
# ------------------------------------------------------------------------------
def smoothing_step(state: SmoothingState,
                   actual: float,
                   season: int,
                   config: WeeklyForecastConfig) -> Tuple[SmoothingState, float]:
    """
    Advance the smoothing state by one observed week.

    Args:
        state: State before observing `actual`
        actual: Observed quantity for the week
        season: Position of the week within the seasonal cycle
        config: Smoothing constants

    Returns:
        The new state and the one-step-ahead fitted value made with the
        previous state
    """
    alpha, beta, gamma = config.alpha, config.beta, config.gamma
    seasonal = state.seasonals[season]
    fitted = clamp_non_negative((state.level + state.trend) * seasonal)

    deseasonalized = actual / seasonal if seasonal > 0 else actual
    level = alpha * deseasonalized + (1 - alpha) * (state.level + state.trend)
    trend = beta * (level - state.level) + (1 - beta) * state.trend

    updated = seasonal
    if level > 0:
        raw = gamma * (actual / level) + (1 - gamma) * seasonal
        if np.isfinite(raw) and raw > 0:
            updated = raw
    updated = min(max(updated, MIN_SEASONAL_INDEX), MAX_SEASONAL_INDEX)

    seasonals = state.seasonals[:season] + (updated,) + state.seasonals[season + 1:]
    return SmoothingState(level=level, trend=trend, seasonals=seasonals), fitted


def run_smoothing(values: List[float],
                  config: WeeklyForecastConfig) -> Tuple[SmoothingState, List[float]]:
    """Fold the recurrence over the history, collecting fitted values."""
    period = config.seasonal_period
    state = SmoothingState(
        level=initialize_level(values, period),
        trend=initialize_trend(values, period),
        seasonals=tuple(initialize_seasonals(values, period))
    )

    fitted = []
    for index, actual in enumerate(values):
        state, value = smoothing_step(state, actual, index % period, config)
        fitted.append(value)
    return state, fitted


def project(state: SmoothingState, history_length: int, horizon: int) -> List[float]:
    """Forecast `horizon` weeks past the end of history from the final state."""
    period = len(state.seasonals)
    return [
        clamp_non_negative(
            (state.level + state.trend * step) * state.seasonals[(history_length + step - 1) % period]
        )
        for step in range(1, horizon + 1)
    ]


# ------------------------------------------------------------------------------
# Public entry point
# ------------------------------------------------------------------------------
def _future_weeks(weeks: List[NormalizedWeek], horizon: int) -> List[str]:
    last_week = parse_calendar_date(weeks[-1].week_start)
    return [format_date(add_weeks(last_week, step)) for step in range(1, horizon + 1)]


def _zero_forecast(weeks: List[NormalizedWeek], config: WeeklyForecastConfig) -> WeeklyForecastResult:
    timeline = [
        ForecastPoint(date=week.week_start, actual=week.quantity, forecast=0,
                      phase=HISTORY_PHASE, promo=week.promo)
        for week in weeks
    ]
    timeline.extend(
        ForecastPoint(date=week_start, actual=None, forecast=0, phase=FORECAST_PHASE)
        for week_start in _future_weeks(weeks, config.horizon)
    )
    return WeeklyForecastResult(
        timeline=timeline,
        seasonal_factors=[1.0] * config.seasonal_period,
        seasonal_period=config.seasonal_period,
        smoothing=config.smoothing,
        level=0.0,
        trend=0.0,
        mape=None
    )


def build_weekly_forecast(history: Iterable[Optional[ObservationInput]],
                          config: Union[WeeklyForecastConfig, Mapping, None] = None,
                          today: Optional[date] = None) -> WeeklyForecastResult:
    """
    Forecast weekly demand with Holt-Winters smoothing.

    Args:
        history: Demand observations; duplicates per week are summed
        config: WeeklyForecastConfig or a mapping of its options
        today: Reference date for invalid markers and synthetic padding

    Returns:
        WeeklyForecastResult spanning the history plus `horizon` weeks
    """
    config = WeeklyForecastConfig.resolve(config)
    weeks = ensure_minimum_history(
        normalize_weekly_history(history, today=today),
        config.min_history_length,
        today=today
    )
    values = [clamp_non_negative(week.quantity) for week in weeks]

    if all(value == 0 for value in values):
        logger.debug("All-zero weekly history of %d weeks; skipping smoothing", len(values))
        return _zero_forecast(weeks, config)

    state, fitted = run_smoothing(values, config)
    projected = project(state, len(values), config.horizon)

    timeline = [
        ForecastPoint(date=week.week_start, actual=week.quantity, forecast=round_quantity(value),
                      phase=HISTORY_PHASE, promo=week.promo)
        for week, value in zip(weeks, fitted)
    ]
    timeline.extend(
        ForecastPoint(date=week_start, actual=None, forecast=round_quantity(value), phase=FORECAST_PHASE)
        for week_start, value in zip(_future_weeks(weeks, config.horizon), projected)
    )

    return WeeklyForecastResult(
        timeline=timeline,
        seasonal_factors=rescale_to_mean_one(state.seasonals),
        seasonal_period=config.seasonal_period,
        smoothing=config.smoothing,
        level=state.level,
        trend=state.trend,
        mape=compute_mape(values, fitted)
    )
