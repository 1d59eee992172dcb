"""
Demand history preparation.

Turns raw, possibly duplicated and unordered demand observations into the
clean series the forecasting models consume:

- weekly normalization onto Monday week starts (UTC calendar)
- synthetic padding of short weekly series
- monthly aggregation of daily movements
- spreading of monthly totals over weeks
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Union
from datetime import date, datetime, timedelta, timezone

import numpy as np
import pandas as pd

from .metrics import clamp_non_negative, to_float
from .results import DemandObservation, NormalizedWeek


logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7
WEEKS_PER_MONTH = 4
DEFAULT_HISTORY_MONTH_LIMIT = 24

ObservationInput = Union[DemandObservation, Mapping]


# ------------------------------------------------------------------------------
# Calendar helpers
# ------------------------------------------------------------------------------
def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def parse_calendar_date(value) -> Optional[date]:
    """
    Parse a date-like marker in the UTC calendar.

    Accepts `date`/`datetime` objects and ISO-like strings. Returns None for
    anything missing or unparseable.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    parsed = pd.to_datetime(value.strip(), utc=True, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


def start_of_week(day: date) -> date:
    """Monday of the week containing `day`."""
    return day - timedelta(days=day.weekday())


def add_weeks(day: date, weeks: int) -> date:
    return day + timedelta(days=weeks * DAYS_PER_WEEK)


def month_start(day: date) -> date:
    return day.replace(day=1)


def add_months(day: date, months: int) -> date:
    """First day of the month `months` after the month of `day`."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def format_date(day: date) -> str:
    return day.strftime('%Y-%m-%d')


def _as_observation(item: ObservationInput) -> DemandObservation:
    if isinstance(item, DemandObservation):
        return item
    return DemandObservation.from_dict(item)


# ------------------------------------------------------------------------------
# Weekly normalization
# ------------------------------------------------------------------------------
def week_key(marker, today: Optional[date] = None) -> str:
    """Canonical `YYYY-MM-DD` week start for a marker; invalid markers map to the current week."""
    parsed = parse_calendar_date(marker)
    if parsed is None:
        parsed = today or utc_today()
    return format_date(start_of_week(parsed))


def normalize_weekly_history(observations: Iterable[Optional[ObservationInput]],
                             today: Optional[date] = None) -> List[NormalizedWeek]:
    """
    Aggregate observations into one entry per calendar week.

    Args:
        observations: DemandObservation objects or mappings with a date
            or week marker, a quantity and an optional promo flag
        today: Reference date used for invalid markers (default: UTC today)

    Returns:
        Weeks sorted ascending, quantities summed, promo if any contributor was
    """
    totals: Dict[str, float] = {}
    promo_weeks = set()
    fallback_count = 0

    for item in observations:
        if item is None:
            continue
        observation = _as_observation(item)
        if parse_calendar_date(observation.date) is None:
            fallback_count += 1
        key = week_key(observation.date, today)
        quantity = clamp_non_negative(to_float(observation.quantity))
        totals[key] = totals.get(key, 0.0) + quantity
        if observation.promo:
            promo_weeks.add(key)

    if fallback_count:
        logger.debug("Merged %d observations with invalid week markers into the current week", fallback_count)

    return [
        NormalizedWeek(week_start=key, quantity=totals[key], promo=key in promo_weeks)
        for key in sorted(totals)
    ]


def ensure_minimum_history(weeks: List[NormalizedWeek],
                           min_length: int,
                           today: Optional[date] = None) -> List[NormalizedWeek]:
    """
    Pad a weekly series to at least `min_length` entries.

    An empty series becomes `min_length` zero weeks ending at the current
    week. A short series is extended backwards with weeks carrying the mean
    quantity, so the real observations remain the tail of history.
    """
    if not weeks:
        current = start_of_week(today or utc_today())
        logger.debug("No weekly history; synthesizing %d zero weeks", min_length)
        return [
            NormalizedWeek(week_start=format_date(add_weeks(current, -offset)), quantity=0.0)
            for offset in range(min_length - 1, -1, -1)
        ]

    if len(weeks) >= min_length:
        return list(weeks)

    fallback_quantity = sum(week.quantity for week in weeks) / len(weeks)
    earliest = parse_calendar_date(weeks[0].week_start)
    missing = min_length - len(weeks)
    logger.debug("Padding weekly history with %d synthetic weeks of %.2f", missing, fallback_quantity)

    padding = [
        NormalizedWeek(week_start=format_date(add_weeks(earliest, -offset)), quantity=fallback_quantity)
        for offset in range(missing, 0, -1)
    ]
    return padding + list(weeks)


# ------------------------------------------------------------------------------
# Monthly aggregation
# ------------------------------------------------------------------------------
def aggregate_monthly_history(frame: pd.DataFrame,
                              months_limit: int = DEFAULT_HISTORY_MONTH_LIMIT) -> List[DemandObservation]:
    """
    Sum dated quantities into month-start buckets.

    Months between the first and last observed month with no data are
    filled with zero. Quantities are rounded and floored at zero.

    Args:
        frame: DataFrame with columns ['date', 'quantity'] and optionally 'promo'
        months_limit: Number of most recent months to keep (0 keeps all)

    Returns:
        Monthly observations dated `YYYY-MM-01`, oldest first
    """
    if frame.empty:
        return []

    data = frame.copy()
    data['date'] = pd.to_datetime(data['date'], utc=True, errors='coerce')
    data = data.dropna(subset=['date'])
    if data.empty:
        return []

    quantity = pd.to_numeric(data['quantity'], errors='coerce').astype(float)
    quantity = quantity.where(np.isfinite(quantity), 0.0)
    data['quantity'] = np.floor(quantity + 0.5).clip(lower=0)
    data['promo'] = data['promo'].fillna(False).astype(bool) if 'promo' in data.columns else False
    data['month'] = data['date'].dt.tz_convert(None).dt.to_period('M').dt.to_timestamp()

    monthly = data.groupby('month').agg(quantity=('quantity', 'sum'), promo=('promo', 'any'))
    full_range = pd.date_range(monthly.index.min(), monthly.index.max(), freq='MS')
    monthly = monthly.reindex(full_range)
    monthly['quantity'] = monthly['quantity'].fillna(0.0)
    monthly['promo'] = monthly['promo'].fillna(False).astype(bool)

    if months_limit > 0:
        monthly = monthly.tail(months_limit)

    return [
        DemandObservation(date=month.strftime('%Y-%m-%d'), quantity=float(row.quantity), promo=bool(row.promo))
        for month, row in monthly.iterrows()
    ]


def weekly_history_from_monthly(observations: Iterable[Optional[ObservationInput]]) -> List[DemandObservation]:
    """
    Spread monthly totals evenly over the four weeks starting at each month.

    Used when only monthly history exists but the weekly model is needed.
    Overlapping weeks are summed and keep any promo flag.
    """
    weekly: Dict[str, float] = {}
    promo_weeks = set()

    for item in observations:
        if item is None:
            continue
        observation = _as_observation(item)
        start = parse_calendar_date(observation.date)
        quantity = to_float(observation.quantity)
        if start is None or not np.isfinite(quantity):
            continue

        weekly_quantity = quantity / WEEKS_PER_MONTH if quantity > 0 else 0.0
        for offset in range(WEEKS_PER_MONTH):
            key = format_date(start_of_week(add_weeks(start, offset)))
            weekly[key] = weekly.get(key, 0.0) + weekly_quantity
            if observation.promo:
                promo_weeks.add(key)

    return [
        DemandObservation(date=key, quantity=weekly[key], promo=key in promo_weeks)
        for key in sorted(weekly)
    ]
