"""
Projected stockout date from a monthly forecast.
"""

import math
from typing import Iterable, Optional
from datetime import timedelta

import numpy as np

from .history import format_date, parse_calendar_date
from .metrics import to_float
from .results import FORECAST_PHASE, ForecastPoint


DAYS_PER_MONTH = 30


def estimate_stockout_date(available_stock: float,
                           future_timeline: Iterable[ForecastPoint]) -> Optional[str]:
    """
    Date on which available stock is projected to run out.

    Each forecast month is consumed at a uniform daily rate of
    forecast / 30. Months with no positive forecast consume nothing.

    Args:
        available_stock: Stock currently available to fulfil demand
        future_timeline: Monthly forecast points; history points are ignored

    Returns:
        `YYYY-MM-DD` stockout date, or None when stock is not positive or
        outlasts the supplied horizon
    """
    remaining = to_float(available_stock)
    if not np.isfinite(remaining) or remaining <= 0:
        return None

    for point in future_timeline:
        if point.phase != FORECAST_PHASE:
            continue
        monthly_demand = point.forecast
        if monthly_demand <= 0:
            continue

        month_start = parse_calendar_date(point.date)
        if month_start is None:
            continue

        daily_demand = monthly_demand / DAYS_PER_MONTH
        consumption_days = math.ceil(remaining / daily_demand)
        if consumption_days <= DAYS_PER_MONTH:
            return format_date(month_start + timedelta(days=max(consumption_days - 1, 0)))

        remaining -= monthly_demand
        if remaining <= 0:
            return format_date(month_start + timedelta(days=DAYS_PER_MONTH - 1))

    return None
