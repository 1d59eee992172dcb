import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


REFERENCE_MONDAY = date(2024, 1, 1)


def weekly_series(quantities, start=REFERENCE_MONDAY, promo_weeks=()):
    """Weekly observations starting at `start`, one per quantity."""
    return [
        {
            "date": (start + timedelta(weeks=index)).isoformat(),
            "quantity": quantity,
            "promo": index in promo_weeks,
        }
        for index, quantity in enumerate(quantities)
    ]


def monthly_series(quantities, year=2023, first_month=1):
    """Monthly observations dated on the first of consecutive months."""
    points = []
    for index, quantity in enumerate(quantities):
        month_index = (first_month - 1) + index
        month_date = date(year + month_index // 12, month_index % 12 + 1, 1)
        points.append({"date": month_date.isoformat(), "quantity": quantity})
    return points


@pytest.fixture
def today():
    """Fixed reference date (a Wednesday) for synthetic weeks."""
    return date(2024, 6, 5)


@pytest.fixture
def constant_weekly_history():
    return weekly_series([100] * 12)


@pytest.fixture
def seasonal_weekly_history():
    return weekly_series([80, 120, 160, 90, 85, 130, 170, 95, 90, 140, 180, 100, 95, 150, 185, 105])


@pytest.fixture
def linear_monthly_history():
    return monthly_series([100 + 10 * index for index in range(12)])


@pytest.fixture
def seasonal_monthly_history():
    return monthly_series([120, 110, 150, 170, 160, 140, 130, 125, 180, 200, 230, 260,
                           135, 125, 165, 185, 170, 150, 140, 135, 195, 215, 245, 280])
