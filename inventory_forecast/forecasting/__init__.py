"""
Forecasting module for demand prediction.
"""

from .config import MonthlyForecastConfig, WeeklyForecastConfig
from .exceptions import ForecastError, InsufficientHistoryError
from .history import ensure_minimum_history, normalize_weekly_history
from .holt_winters import build_weekly_forecast
from .models import ForecastingEngine
from .results import (
    DemandObservation,
    ForecastPoint,
    MonthlyForecastResult,
    NormalizedWeek,
    WeeklyForecastResult,
)
from .seasonal_regression import build_seasonal_forecast
from .stockout import estimate_stockout_date

__all__ = [
    "ForecastingEngine",
    "WeeklyForecastConfig",
    "MonthlyForecastConfig",
    "ForecastError",
    "InsufficientHistoryError",
    "DemandObservation",
    "NormalizedWeek",
    "ForecastPoint",
    "WeeklyForecastResult",
    "MonthlyForecastResult",
    "normalize_weekly_history",
    "ensure_minimum_history",
    "build_weekly_forecast",
    "build_seasonal_forecast",
    "estimate_stockout_date",
]
