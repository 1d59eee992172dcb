"""
Replenishment planner for reorder decisions.

Turns forecast results into stocking guidance:
1. Summarize recent weekly demand (mean and sample standard deviation)
2. Reorder point = mean weekly demand x lead time + Z x std x sqrt(lead time)
3. Recommended order = reorder point minus available stock, never negative
4. Projected stockout date from the monthly forecast
"""

import logging
import math
from typing import Dict, Iterable, Mapping, Optional

import numpy as np

from ..forecasting.metrics import clamp_non_negative, round_quantity, to_float
from ..forecasting.results import MonthlyForecastResult, WeeklyForecastResult
from ..forecasting.stockout import estimate_stockout_date
from .models import ReplenishmentPlan, WeeklyDemandSummary


logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7
DEFAULT_MIN_WEEKS = 4
DEFAULT_MAX_WEEKS = 8
DEFAULT_LEAD_TIME_DAYS = 14
DEFAULT_SERVICE_LEVEL_PERCENT = 95
DEFAULT_CORRELATION_RHO = 0.25
MAX_CORRELATION_RHO = 0.5

SERVICE_LEVEL_Z_TABLE = [
    (90, 1.2816),
    (95, 1.6449),
    (98, 2.0537),
    (99, 2.3263),
]

OUTLOOK_WEEKS = {'week1': 0, 'week2': 1, 'week4': 3, 'week8': 7}


def _clamp_window(value, minimum: int, maximum: int, fallback: int) -> int:
    value = to_float(value)
    if not np.isfinite(value):
        return fallback
    return min(max(int(value), minimum), maximum)


def _week_fields(point) -> tuple:
    if isinstance(point, Mapping):
        return point.get('quantity'), bool(point.get('promo', False))
    return getattr(point, 'quantity', None), bool(getattr(point, 'promo', False))


def summarize_weekly_demand(history: Iterable,
                            min_weeks: Optional[int] = None,
                            max_weeks: Optional[int] = None,
                            exclude_promo_weeks: bool = False) -> WeeklyDemandSummary:
    """
    Mean and sample standard deviation of the most recent weeks.

    Args:
        history: Weekly points with `quantity` and `promo` (objects or mappings),
            oldest first
        min_weeks: Preferred minimum window, clamped to [1, 16]
        max_weeks: Maximum window, clamped to [min_weeks, 26]
        exclude_promo_weeks: Drop promotional weeks before windowing

    Returns:
        WeeklyDemandSummary over the trailing window
    """
    min_weeks = _clamp_window(min_weeks, 1, 16, DEFAULT_MIN_WEEKS)
    max_weeks = _clamp_window(max_weeks, min_weeks, 26, DEFAULT_MAX_WEEKS)

    eligible = []
    for point in history or []:
        if point is None:
            continue
        quantity, promo = _week_fields(point)
        quantity = to_float(quantity)
        if not np.isfinite(quantity):
            continue
        if exclude_promo_weeks and promo:
            continue
        eligible.append(clamp_non_negative(quantity))

    if not eligible:
        return WeeklyDemandSummary(mean=0.0, std_dev=0.0, sample_size=0, total_quantity=0.0)

    window_length = min(max(min_weeks, len(eligible)), max_weeks)
    window = np.array(eligible[-window_length:], dtype=float)
    sample_size = len(window)
    total_quantity = float(window.sum())
    mean = total_quantity / sample_size

    if sample_size <= 1:
        return WeeklyDemandSummary(mean=mean, std_dev=0.0, sample_size=sample_size, total_quantity=total_quantity)

    variance = float(np.var(window, ddof=1))
    std_dev = math.sqrt(variance) if variance > 0 else 0.0
    return WeeklyDemandSummary(mean=mean, std_dev=std_dev, sample_size=sample_size, total_quantity=total_quantity)


def calculate_reorder_point_weekly(mean_weekly_demand: float,
                                   std_weekly_demand: float,
                                   lead_time_weeks: float,
                                   service_level_z: float) -> int:
    """Reorder point in units; 0 when the lead time is not positive."""
    mean = clamp_non_negative(to_float(mean_weekly_demand))
    std = clamp_non_negative(to_float(std_weekly_demand))
    lead_time = clamp_non_negative(to_float(lead_time_weeks))
    z = to_float(service_level_z)
    if not np.isfinite(z):
        z = 0.0

    if lead_time <= 0:
        return 0

    base_demand = mean * lead_time
    safety_stock = z * std * math.sqrt(lead_time) if z > 0 and std > 0 else 0.0
    reorder_point = base_demand + safety_stock
    if not np.isfinite(reorder_point):
        return 0
    return round_quantity(max(0.0, reorder_point))


def calculate_recommended_order_quantity(reorder_point: float, available_stock: float) -> int:
    rop = clamp_non_negative(to_float(reorder_point))
    available = clamp_non_negative(to_float(available_stock))
    return max(0, round_quantity(rop - available))


def resolve_service_level_z(percent: float) -> float:
    """Z value of the closest tabulated service level."""
    percent = to_float(percent)
    if not np.isfinite(percent):
        return 0.0
    _, z = min(SERVICE_LEVEL_Z_TABLE, key=lambda entry: abs(percent - entry[0]))
    return z


def compute_safety_stock(demand_std_dev: float,
                         lead_time_days: float,
                         service_level_percent: float = DEFAULT_SERVICE_LEVEL_PERCENT,
                         corr_rho: Optional[float] = None) -> int:
    """
    Safety stock for daily demand variability over the lead time.

    Args:
        demand_std_dev: Standard deviation of daily demand
        lead_time_days: Replenishment lead time in days
        service_level_percent: Target cycle service level
        corr_rho: Day-to-day demand correlation, clamped to [0, 0.5]

    Returns:
        round(Z x sigma x sqrt(lead time x (1 + rho)))
    """
    sigma = clamp_non_negative(to_float(demand_std_dev))
    if sigma <= 0:
        return 0

    lead_time = to_float(lead_time_days)
    if not np.isfinite(lead_time) or lead_time <= 0:
        return 0

    z = resolve_service_level_z(service_level_percent)
    if z <= 0:
        return 0

    rho = to_float(corr_rho)
    if not np.isfinite(rho):
        rho = DEFAULT_CORRELATION_RHO
    rho = min(max(rho, 0.0), MAX_CORRELATION_RHO)

    return max(0, round_quantity(z * sigma * math.sqrt(lead_time * (1 + rho))))


def weekly_outlook(result: WeeklyForecastResult) -> Dict[str, int]:
    """
    Forecast quantities 1, 2, 4 and 8 weeks ahead.

    The last forecast is repeated when the horizon is shorter than 8 weeks.
    """
    forecasts = [point.forecast for point in result.forecast_points]
    if not forecasts:
        return {key: 0 for key in OUTLOOK_WEEKS}
    return {
        key: forecasts[index] if index < len(forecasts) else forecasts[-1]
        for key, index in OUTLOOK_WEEKS.items()
    }


class ReplenishmentPlanner:
    """
    Builds reorder recommendations from forecast results.

    The planner holds only its policy parameters; each call to `plan` is
    independent.
    """

    def __init__(self,
                 lead_time_days: int = DEFAULT_LEAD_TIME_DAYS,
                 service_level_percent: float = DEFAULT_SERVICE_LEVEL_PERCENT):
        """
        Initialize planner with replenishment policy.

        Args:
            lead_time_days: Supplier lead time in days (at least 1)
            service_level_percent: Target service level used to pick Z
        """
        lead_time = to_float(lead_time_days)
        if not np.isfinite(lead_time) or lead_time <= 0:
            lead_time = DEFAULT_LEAD_TIME_DAYS
        self.lead_time_days = max(1, round_quantity(lead_time))
        self.service_level_percent = service_level_percent
        self.service_level_z = resolve_service_level_z(service_level_percent)

    @property
    def lead_time_weeks(self) -> float:
        return self.lead_time_days / DAYS_PER_WEEK

    def plan(self,
             weekly_result: WeeklyForecastResult,
             monthly_result: Optional[MonthlyForecastResult] = None,
             on_hand: float = 0.0,
             reserved: float = 0.0,
             exclude_promo_weeks: bool = False) -> ReplenishmentPlan:
        """
        Build a replenishment plan for one item.

        Args:
            weekly_result: Weekly forecast for the item
            monthly_result: Monthly forecast used for the stockout projection
            on_hand: Units on hand
            reserved: Units already committed
            exclude_promo_weeks: Ignore promotional weeks in the demand summary

        Returns:
            ReplenishmentPlan with reorder point, order quantity and outlook
        """
        available_stock = clamp_non_negative(to_float(on_hand) - clamp_non_negative(to_float(reserved)))

        history = [
            {'quantity': point.actual if point.actual is not None else 0, 'promo': point.promo}
            for point in weekly_result.history_points
        ]
        summary = summarize_weekly_demand(history, exclude_promo_weeks=exclude_promo_weeks)

        reorder_point = calculate_reorder_point_weekly(
            summary.mean, summary.std_dev, self.lead_time_weeks, self.service_level_z
        )
        order_quantity = calculate_recommended_order_quantity(reorder_point, available_stock)

        stockout_date = None
        if monthly_result is not None:
            stockout_date = estimate_stockout_date(available_stock, monthly_result.forecast_points)

        logger.debug("Reorder point %d, available %.0f, recommended order %d",
                     reorder_point, available_stock, order_quantity)

        return ReplenishmentPlan(
            available_stock=available_stock,
            lead_time_days=self.lead_time_days,
            service_level_z=self.service_level_z,
            weekly_summary=summary,
            reorder_point_weekly=reorder_point,
            recommended_order_qty_weekly=order_quantity,
            weekly_outlook=weekly_outlook(weekly_result),
            projected_stockout_date=stockout_date
        )
