"""
Data types exchanged with the forecasting models.
"""

from typing import List, Dict, Any, Optional, Union
from datetime import date, datetime
from dataclasses import dataclass, field
import pandas as pd


HISTORY_PHASE = 'history'
FORECAST_PHASE = 'forecast'

DateLike = Union[str, date, datetime, None]

MARKER_KEYS = ('date', 'weekMarker', 'week_marker', 'weekStart', 'week_start')


@dataclass(frozen=True)
class DemandObservation:
    """A single observed demand quantity at a date or week marker."""

    date: DateLike
    quantity: Any
    promo: bool = False

    @classmethod
    def from_dict(cls, data: Dict) -> 'DemandObservation':
        """
        Create an observation from a mapping.

        The marker is the first non-blank value among the `date`,
        `weekMarker`/`week_marker` and `weekStart`/`week_start` keys.
        """
        marker = None
        for key in MARKER_KEYS:
            value = data.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            marker = value
            break
        return cls(
            date=marker,
            quantity=data.get('quantity', 0),
            promo=bool(data.get('promo', False))
        )


@dataclass(frozen=True)
class NormalizedWeek:
    """One distinct calendar week of summed demand."""

    week_start: str
    quantity: float
    promo: bool = False


@dataclass(frozen=True)
class ForecastPoint:
    """A point of a forecast timeline, either fitted history or projection."""

    date: str
    actual: Optional[float]
    forecast: int
    phase: str
    promo: bool = False
    lower: Optional[int] = None
    upper: Optional[int] = None

    @property
    def is_history(self) -> bool:
        return self.phase == HISTORY_PHASE

    def to_dict(self) -> Dict:
        """Convert to dictionary representation."""
        data = {
            'date': self.date,
            'actual': self.actual,
            'forecast': self.forecast,
            'phase': self.phase,
            'promo': self.promo,
        }
        if self.lower is not None or self.upper is not None:
            data['lower'] = self.lower
            data['upper'] = self.upper
        return data


def _timeline_frame(timeline: List[ForecastPoint]) -> pd.DataFrame:
    frame = pd.DataFrame([point.to_dict() for point in timeline])
    if not frame.empty:
        frame['date'] = pd.to_datetime(frame['date'], errors='coerce')
    return frame


@dataclass(frozen=True)
class WeeklyForecastResult:
    """Result of the weekly Holt-Winters model."""

    timeline: List[ForecastPoint]
    seasonal_factors: List[float]
    seasonal_period: int
    smoothing: Dict[str, float]
    level: float
    trend: float
    mape: Optional[float] = None

    @property
    def history_points(self) -> List[ForecastPoint]:
        return [point for point in self.timeline if point.phase == HISTORY_PHASE]

    @property
    def forecast_points(self) -> List[ForecastPoint]:
        return [point for point in self.timeline if point.phase == FORECAST_PHASE]

    def to_dataframe(self) -> pd.DataFrame:
        """Convert the timeline to a pandas DataFrame."""
        return _timeline_frame(self.timeline)

    def to_dict(self) -> Dict:
        return {
            'timeline': [point.to_dict() for point in self.timeline],
            'seasonalFactors': list(self.seasonal_factors),
            'seasonalPeriod': self.seasonal_period,
            'smoothing': dict(self.smoothing),
            'level': self.level,
            'trend': self.trend,
            'mape': self.mape,
        }


@dataclass(frozen=True)
class MonthlyForecastResult:
    """Result of the monthly trend plus seasonal index model."""

    timeline: List[ForecastPoint]
    mape: Optional[float]
    sigma: float
    slope: float
    intercept: float
    seasonal_factors: List[float]
    training_start: str
    training_end: str
    seasonal_period: int = field(default=12)

    @property
    def history_points(self) -> List[ForecastPoint]:
        return [point for point in self.timeline if point.phase == HISTORY_PHASE]

    @property
    def forecast_points(self) -> List[ForecastPoint]:
        return [point for point in self.timeline if point.phase == FORECAST_PHASE]

    def trim_history(self, max_history_points: int = 18) -> List[ForecastPoint]:
        """
        Timeline restricted to the most recent history points.

        Args:
            max_history_points: Number of trailing history points to keep

        Returns:
            The kept history points followed by every forecast point
        """
        history = self.history_points
        if max_history_points <= 0:
            history = []
        else:
            history = history[-max_history_points:]
        return history + self.forecast_points

    def to_dataframe(self) -> pd.DataFrame:
        """Convert the timeline to a pandas DataFrame."""
        return _timeline_frame(self.timeline)

    def to_dict(self) -> Dict:
        return {
            'timeline': [point.to_dict() for point in self.timeline],
            'mape': self.mape,
            'sigma': self.sigma,
            'slope': self.slope,
            'intercept': self.intercept,
            'seasonalPeriod': self.seasonal_period,
            'seasonalFactors': list(self.seasonal_factors),
            'trainingStart': self.training_start,
            'trainingEnd': self.training_end,
        }
