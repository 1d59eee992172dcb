"""
Forecasting engine for demand prediction.

This module wraps the two forecasting models behind a single engine:

- Holt-Winters weekly smoothing (default) for short-range weekly outlooks
- Linear trend with calendar-month seasonality for monthly outlooks and
  stockout projection
"""

import logging
from typing import List, Dict, Any, Optional, Union, Mapping
from datetime import date
from dataclasses import asdict
import pandas as pd
import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

from .config import MonthlyForecastConfig, WeeklyForecastConfig
from .history import aggregate_monthly_history, weekly_history_from_monthly
from .holt_winters import build_weekly_forecast
from .metrics import compute_mape, to_float
from .results import DemandObservation, MonthlyForecastResult, WeeklyForecastResult
from .seasonal_regression import build_seasonal_forecast
from .stockout import estimate_stockout_date


logger = logging.getLogger(__name__)

ForecastResult = Union[WeeklyForecastResult, MonthlyForecastResult]


class ForecastingEngine:
    """
    Main forecasting engine supporting the weekly and monthly models.

    The engine keeps a private copy of the loaded history. Every forecast is
    computed from scratch by the stateless model functions, so repeated calls
    with the same inputs return identical results.
    """

    SUPPORTED_METHODS = [
        'holt_winters_weekly',
        'seasonal_regression_monthly'
    ]

    SUPPORTED_GRANULARITIES = ['daily', 'weekly', 'monthly']

    def __init__(self,
                 default_method: str = 'holt_winters_weekly',
                 weekly_config: Union[WeeklyForecastConfig, Mapping, None] = None,
                 monthly_config: Union[MonthlyForecastConfig, Mapping, None] = None):
        """
        Initialize forecasting engine.

        Args:
            default_method: Default forecasting method to use
            weekly_config: Options for the weekly model
            monthly_config: Options for the monthly model
        """
        if default_method not in self.SUPPORTED_METHODS:
            raise ValueError(f"Method must be one of {self.SUPPORTED_METHODS}")

        self.default_method = default_method
        self.weekly_config = WeeklyForecastConfig.resolve(weekly_config)
        self.monthly_config = MonthlyForecastConfig.resolve(monthly_config)
        self._historical_data: Optional[pd.DataFrame] = None
        self._granularity = 'daily'

    def load_historical_data(self, data: pd.DataFrame, granularity: str = 'daily') -> None:
        """
        Load historical demand data for forecasting.

        Args:
            data: DataFrame with columns ['date', 'quantity'] and optionally 'promo'
            granularity: 'daily' or 'weekly' for raw movements, 'monthly'
                when each row is already a monthly total
        """
        required_columns = ['date', 'quantity']
        missing_cols = [col for col in required_columns if col not in data.columns]
        if missing_cols:
            raise ValueError(f"Missing required columns: {missing_cols}")
        if granularity not in self.SUPPORTED_GRANULARITIES:
            raise ValueError(f"Granularity must be one of {self.SUPPORTED_GRANULARITIES}")

        data = data.copy()
        if 'promo' not in data.columns:
            data['promo'] = False
        data['promo'] = data['promo'].fillna(False).astype(bool)

        self._historical_data = data.reset_index(drop=True)
        self._granularity = granularity
        logger.info("Loaded %d %s demand records", len(data), granularity)

    def _observations(self) -> List[DemandObservation]:
        return [
            DemandObservation(date=self._date_marker(row['date']), quantity=row['quantity'], promo=bool(row['promo']))
            for _, row in self._historical_data.iterrows()
        ]

    @staticmethod
    def _date_marker(value):
        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()
        return value

    def _require_data(self) -> None:
        if self._historical_data is None:
            raise ValueError("Historical data not loaded. Call load_historical_data() first.")

    def forecast(self,
                 method: Optional[str] = None,
                 horizon: Optional[int] = None,
                 today: Optional[date] = None) -> ForecastResult:
        """
        Generate a forecast from the loaded history.

        Args:
            method: Forecasting method to use (default: instance default)
            horizon: Number of periods to project (default: model config)
            today: Reference date for the weekly model's fallback weeks

        Returns:
            WeeklyForecastResult or MonthlyForecastResult
        """
        self._require_data()

        method = method or self.default_method
        if method not in self.SUPPORTED_METHODS:
            raise ValueError(f"Method must be one of {self.SUPPORTED_METHODS}")

        if method == 'holt_winters_weekly':
            result = self._weekly_forecast(horizon, today)
        else:
            result = self._monthly_forecast(horizon)

        logger.info("Generated %s forecast with %d timeline points (MAPE %s)",
                    method, len(result.timeline), result.mape)
        return result

    def _weekly_forecast(self, horizon: Optional[int], today: Optional[date]) -> WeeklyForecastResult:
        config = self.weekly_config
        if horizon is not None:
            options = {**asdict(config), 'horizon': horizon}
            config = WeeklyForecastConfig.from_options(**options)

        observations = self._observations()
        if self._granularity == 'monthly':
            observations = weekly_history_from_monthly(observations)
        return build_weekly_forecast(observations, config, today=today)

    def _monthly_forecast(self, horizon: Optional[int]) -> MonthlyForecastResult:
        config = self.monthly_config
        if horizon is not None:
            config = MonthlyForecastConfig.from_options(
                horizon=horizon,
                upcoming_promotions=config.upcoming_promotions
            )

        if self._granularity == 'monthly':
            history = self._observations()
        else:
            history = aggregate_monthly_history(self._historical_data)
        return build_seasonal_forecast(history, config)

    def estimate_stockout(self, available_stock: float, horizon: Optional[int] = None) -> Optional[str]:
        """
        Project the date on which available stock runs out.

        Args:
            available_stock: Stock currently available
            horizon: Months to project (default: monthly config horizon)

        Returns:
            `YYYY-MM-DD` date or None if stock lasts beyond the horizon
        """
        monthly = self.forecast(method='seasonal_regression_monthly', horizon=horizon)
        return estimate_stockout_date(available_stock, monthly.forecast_points)

    def evaluate_model(self, method: Optional[str] = None) -> Dict[str, Any]:
        """
        Evaluate a model's in-sample fit on the loaded history.

        Args:
            method: Method to evaluate (default: instance default)

        Returns:
            Dictionary with evaluation metrics (MAE, RMSE, MAPE)
        """
        method = method or self.default_method
        result = self.forecast(method=method)

        history = result.history_points
        actual_values = np.array([to_float(point.actual) for point in history], dtype=float)
        predictions = np.array([point.forecast for point in history], dtype=float)

        mae = mean_absolute_error(actual_values, predictions)
        rmse = np.sqrt(mean_squared_error(actual_values, predictions))

        return {
            'method': method,
            'mae': float(mae),
            'rmse': float(rmse),
            'mape': compute_mape(actual_values, predictions),
            'model_mape': result.mape
        }

    def get_model_info(self) -> Dict[str, Any]:
        """Get information about available models and current configuration."""
        data = self._historical_data
        date_range = None
        if data is not None and not data.empty:
            dates = pd.to_datetime(data['date'], errors='coerce').dropna()
            if not dates.empty:
                date_range = {
                    'start': dates.min().isoformat(),
                    'end': dates.max().isoformat()
                }

        return {
            'supported_methods': self.SUPPORTED_METHODS,
            'default_method': self.default_method,
            'weekly_config': asdict(self.weekly_config),
            'monthly_config': asdict(self.monthly_config),
            'data_loaded': data is not None,
            'granularity': self._granularity,
            'data_points': len(data) if data is not None else 0,
            'date_range': date_range
        }
