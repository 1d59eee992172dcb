"""
Numeric helpers shared by the forecasting models.

Clamping, half-up rounding and the accuracy metric used by both the weekly
and the monthly model live here so the two models agree on them.
"""

import math
from typing import List, Optional, Sequence

import numpy as np
from sklearn.metrics import mean_absolute_percentage_error


def to_float(value) -> float:
    """Coerce an arbitrary input to float, returning NaN when impossible."""
    if value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def clamp_non_negative(value: float) -> float:
    """Clamp to zero when negative or non-finite."""
    if not np.isfinite(value):
        return 0.0
    return 0.0 if value < 0 else float(value)


def clamp_probability(value: float) -> float:
    """Clamp a smoothing constant into [0, 1]; non-finite resets to 0."""
    if not np.isfinite(value):
        return 0.0
    return float(np.clip(value, 0.0, 1.0))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves toward positive infinity, unlike Python's bankers rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_quantity(value: float) -> int:
    return int(round_half_up(value))


def rescale_to_mean_one(values: Sequence[float]) -> List[float]:
    """
    Scale values so that their mean is 1.

    The input is returned unchanged when its sum is not positive.
    """
    total = sum(values)
    if total <= 0:
        return list(values)
    period = len(values)
    return [value * period / total for value in values]


def compute_mape(actuals: Sequence[float], fitted: Sequence[float]) -> Optional[float]:
    """
    Mean absolute percentage error over points with a positive actual.

    Args:
        actuals: Observed quantities
        fitted: Model values aligned with ``actuals``

    Returns:
        Percentage rounded to one decimal place, or None when no actual
        value is strictly positive.
    """
    actual_array = np.asarray(actuals, dtype=float)
    fitted_array = np.asarray(fitted, dtype=float)
    mask = actual_array > 0
    if not mask.any():
        return None

    mape = mean_absolute_percentage_error(actual_array[mask], fitted_array[mask]) * 100
    if not np.isfinite(mape):
        return None
    return round_half_up(float(mape), 1)
