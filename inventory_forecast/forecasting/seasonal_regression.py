"""
Monthly trend plus seasonal index forecaster.

Fits an ordinary least-squares line over the position of each month in the
series, derives a multiplicative index per calendar month from the ratio of
actuals to that line, and projects both forward with a fixed-width band
around the residual dispersion.
"""

import logging
import math
from typing import Iterable, List, Mapping, Optional, Tuple, Union
from dataclasses import dataclass

import numpy as np

from .config import MonthlyForecastConfig
from .exceptions import InsufficientHistoryError
from .history import ObservationInput, add_months, format_date, parse_calendar_date
from .metrics import clamp_non_negative, compute_mape, round_quantity, to_float
from .results import (
    FORECAST_PHASE,
    HISTORY_PHASE,
    DemandObservation,
    ForecastPoint,
    MonthlyForecastResult,
)


logger = logging.getLogger(__name__)

MONTHS_IN_YEAR = 12
BAND_MULTIPLIER = 1.64


@dataclass(frozen=True)
class RegressionState:
    """Fitted trend line, calendar-month indices and residual spread."""

    slope: float
    intercept: float
    seasonal_factors: Tuple[float, ...]
    sigma: float

    def baseline(self, index: int) -> float:
        return self.intercept + self.slope * index


def linear_regression(values: np.ndarray) -> Tuple[float, float]:
    """
    Least-squares slope and intercept of `values` against their index.

    Returns:
        (slope, intercept); a flat line through the mean when the fit is
        undetermined
    """
    n = len(values)
    if n <= 1:
        return 0.0, float(values[0]) if n else 0.0

    x = np.arange(n, dtype=float)
    mean_x = (n - 1) / 2
    mean_y = float(values.mean())
    deviation_x = x - mean_x
    denominator = float(np.dot(deviation_x, deviation_x))
    if denominator == 0:
        return 0.0, mean_y

    slope = float(np.dot(deviation_x, values - mean_y)) / denominator
    return slope, mean_y - slope * mean_x


def compute_seasonal_factors(quantities: np.ndarray,
                             months: List[int],
                             slope: float,
                             intercept: float) -> List[float]:
    """
    Average ratio of actual to trend baseline for each calendar month.

    Months without observations get index 1. The valid indices are scaled
    to average 1; a degenerate average falls back to a flat vector.
    """
    totals = [0.0] * MONTHS_IN_YEAR
    counts = [0] * MONTHS_IN_YEAR

    for index, (quantity, month) in enumerate(zip(quantities, months)):
        baseline = intercept + slope * index
        if not np.isfinite(baseline) or baseline == 0:
            totals[month] += 1
        else:
            totals[month] += quantity / baseline
        counts[month] += 1

    factors = []
    for total, count in zip(totals, counts):
        value = total / count if count else 1.0
        factors.append(value if np.isfinite(value) and value > 0 else 1.0)

    average = float(np.mean(factors))
    if not np.isfinite(average) or average == 0:
        return [1.0] * MONTHS_IN_YEAR
    return [factor / average for factor in factors]


def _band(value: float, sigma: float) -> Tuple[int, int]:
    lower = max(value - BAND_MULTIPLIER * sigma, 0.0)
    upper = max(value + BAND_MULTIPLIER * sigma, value)
    return round_quantity(lower), round_quantity(upper)


def _prepare_history(history: Iterable[Optional[ObservationInput]]) -> List[Tuple[DemandObservation, object]]:
    prepared = []
    skipped = 0
    for item in history:
        if item is None:
            continue
        observation = item if isinstance(item, DemandObservation) else DemandObservation.from_dict(item)
        parsed = parse_calendar_date(observation.date)
        if parsed is None:
            skipped += 1
            continue
        prepared.append((observation, parsed))

    if skipped:
        logger.debug("Dropped %d monthly observations without a usable date", skipped)
    prepared.sort(key=lambda pair: pair[1])
    return prepared


def _date_label(observation: DemandObservation, parsed) -> str:
    if isinstance(observation.date, str):
        return observation.date
    return format_date(parsed)


def build_seasonal_forecast(history: Iterable[Optional[ObservationInput]],
                            config: Union[MonthlyForecastConfig, Mapping, None] = None) -> MonthlyForecastResult:
    """
    Forecast monthly demand from a linear trend and calendar-month seasonality.

    Args:
        history: Monthly demand observations, in any order
        config: MonthlyForecastConfig or a mapping of its options

    Returns:
        MonthlyForecastResult with history, `horizon` future months and bounds

    Raises:
        InsufficientHistoryError: If the history is empty
    """
    config = MonthlyForecastConfig.resolve(config)
    prepared = _prepare_history(history)
    if not prepared:
        raise InsufficientHistoryError("Demand history is empty; cannot compute a monthly forecast.")

    quantities = np.array([to_float(obs.quantity) for obs, _ in prepared], dtype=float)
    quantities = np.where(np.isfinite(quantities), quantities, 0.0)
    months = [parsed.month - 1 for _, parsed in prepared]

    slope, intercept = linear_regression(quantities)
    factors = compute_seasonal_factors(quantities, months, slope, intercept)

    baselines = intercept + slope * np.arange(len(quantities), dtype=float)
    fitted = [clamp_non_negative(baseline * factors[month]) for baseline, month in zip(baselines, months)]
    residuals = quantities - np.array(fitted)
    sigma = math.sqrt(float(np.sum(residuals ** 2)) / max(len(quantities) - 1, 1))

    state = RegressionState(slope=slope, intercept=intercept, seasonal_factors=tuple(factors), sigma=sigma)

    timeline = []
    for (observation, parsed), quantity, value in zip(prepared, quantities, fitted):
        lower, upper = _band(value, sigma)
        timeline.append(ForecastPoint(
            date=_date_label(observation, parsed),
            actual=float(quantity),
            forecast=round_quantity(value),
            phase=HISTORY_PHASE,
            promo=bool(observation.promo),
            lower=lower,
            upper=upper
        ))

    last_date = prepared[-1][1]
    for step in range(1, config.horizon + 1):
        future = add_months(last_date, step)
        baseline = state.baseline(len(quantities) - 1 + step)
        value = clamp_non_negative(baseline * state.seasonal_factors[future.month - 1])
        lower, upper = _band(value, sigma)
        key = format_date(future)
        timeline.append(ForecastPoint(
            date=key,
            actual=None,
            forecast=round_quantity(value),
            phase=FORECAST_PHASE,
            promo=key in config.upcoming_promotions,
            lower=lower,
            upper=upper
        ))

    return MonthlyForecastResult(
        timeline=timeline,
        mape=compute_mape(quantities, fitted),
        sigma=sigma,
        slope=slope,
        intercept=intercept,
        seasonal_factors=list(state.seasonal_factors),
        training_start=timeline[0].date,
        training_end=_date_label(*prepared[-1])
    )
