"""
Tuning parameters for the forecasting models.

Every option is defaulted and clamped here rather than rejected, so the
models always receive a usable configuration.
"""

from typing import Dict, Mapping, Optional, Union
from dataclasses import asdict, dataclass, field

import numpy as np

from .metrics import clamp_probability, round_half_up, to_float


DEFAULT_ALPHA = 0.3
DEFAULT_BETA = 0.2
DEFAULT_GAMMA = 0.3
DEFAULT_SEASONAL_PERIOD = 4
MIN_SEASONAL_PERIOD = 2
MAX_SEASONAL_PERIOD = 12
DEFAULT_WEEKLY_HORIZON = 8

DEFAULT_MONTHLY_HORIZON = 6


def _option(value, default: float) -> float:
    return default if value is None else to_float(value)


def clamp_seasonal_period(value: float) -> int:
    if not np.isfinite(value):
        return DEFAULT_SEASONAL_PERIOD
    normalized = int(round_half_up(value))
    return min(max(normalized, MIN_SEASONAL_PERIOD), MAX_SEASONAL_PERIOD)


@dataclass(frozen=True)
class WeeklyForecastConfig:
    """Smoothing constants and window sizes for the weekly model."""

    alpha: float = DEFAULT_ALPHA
    beta: float = DEFAULT_BETA
    gamma: float = DEFAULT_GAMMA
    seasonal_period: int = DEFAULT_SEASONAL_PERIOD
    horizon: int = DEFAULT_WEEKLY_HORIZON
    min_history_length: Optional[int] = None

    @classmethod
    def from_options(cls,
                     alpha=None,
                     beta=None,
                     gamma=None,
                     seasonal_period=None,
                     horizon=None,
                     min_history_length=None) -> 'WeeklyForecastConfig':
        """
        Build a configuration, applying defaults and clamps.

        Args:
            alpha: Level smoothing constant, clamped to [0, 1]
            beta: Trend smoothing constant, clamped to [0, 1]
            gamma: Seasonal smoothing constant, clamped to [0, 1]
            seasonal_period: Weeks per season, rounded and clamped to [2, 12]
            horizon: Number of weeks to project, at least 1
            min_history_length: Weeks required before smoothing; never
                fewer than two seasonal cycles

        Returns:
            A fully resolved WeeklyForecastConfig
        """
        period = clamp_seasonal_period(_option(seasonal_period, DEFAULT_SEASONAL_PERIOD))

        horizon_value = _option(horizon, DEFAULT_WEEKLY_HORIZON)
        if not np.isfinite(horizon_value):
            horizon_value = DEFAULT_WEEKLY_HORIZON
        resolved_horizon = max(1, int(round_half_up(horizon_value)))

        min_length_value = _option(min_history_length, period * 3)
        if not np.isfinite(min_length_value):
            min_length_value = period * 3
        resolved_min_length = max(period * 2, int(round_half_up(min_length_value)))

        return cls(
            alpha=clamp_probability(_option(alpha, DEFAULT_ALPHA)),
            beta=clamp_probability(_option(beta, DEFAULT_BETA)),
            gamma=clamp_probability(_option(gamma, DEFAULT_GAMMA)),
            seasonal_period=period,
            horizon=resolved_horizon,
            min_history_length=resolved_min_length
        )

    @classmethod
    def resolve(cls, config: Union['WeeklyForecastConfig', Mapping, None]) -> 'WeeklyForecastConfig':
        """Accept a config instance, an options mapping or None."""
        if isinstance(config, cls):
            return cls.from_options(**asdict(config))
        return cls.from_options(**dict(config or {}))

    @property
    def smoothing(self) -> Dict[str, float]:
        return {'alpha': self.alpha, 'beta': self.beta, 'gamma': self.gamma}


def normalize_promotion_key(key: str) -> str:
    """Promotion keys given as `YYYY-MM` address the first day of that month."""
    key = str(key).strip()
    if len(key) == 7:
        return f"{key}-01"
    return key


@dataclass(frozen=True)
class MonthlyForecastConfig:
    """Horizon and promotion calendar for the monthly model."""

    horizon: int = DEFAULT_MONTHLY_HORIZON
    upcoming_promotions: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_options(cls,
                     horizon=None,
                     upcoming_promotions: Optional[Mapping[str, str]] = None) -> 'MonthlyForecastConfig':
        horizon_value = _option(horizon, DEFAULT_MONTHLY_HORIZON)
        if not np.isfinite(horizon_value):
            horizon_value = DEFAULT_MONTHLY_HORIZON
        promotions = {
            normalize_promotion_key(key): label
            for key, label in (upcoming_promotions or {}).items()
        }
        return cls(
            horizon=max(0, int(round_half_up(horizon_value))),
            upcoming_promotions=promotions
        )

    @classmethod
    def resolve(cls, config: Union['MonthlyForecastConfig', Mapping, None]) -> 'MonthlyForecastConfig':
        """Accept a config instance, an options mapping or None."""
        if isinstance(config, cls):
            return cls.from_options(**asdict(config))
        return cls.from_options(**dict(config or {}))
