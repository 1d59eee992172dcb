"""
Inventory Forecast

Demand forecasting engine with weekly Holt-Winters smoothing, monthly
trend/seasonality regression, stockout projection and reorder planning.
"""

from .forecasting.models import ForecastingEngine
from .forecasting.holt_winters import build_weekly_forecast
from .forecasting.seasonal_regression import build_seasonal_forecast
from .forecasting.stockout import estimate_stockout_date
from .replenishment.planner import ReplenishmentPlanner

__all__ = [
    "ForecastingEngine",
    "build_weekly_forecast",
    "build_seasonal_forecast",
    "estimate_stockout_date",
    "ReplenishmentPlanner"
]
