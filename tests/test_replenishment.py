"""
Replenishment planner tests.
"""
from __future__ import annotations

import math

import pytest

from inventory_forecast.forecasting.holt_winters import build_weekly_forecast
from inventory_forecast.forecasting.seasonal_regression import build_seasonal_forecast
from inventory_forecast.replenishment import (
    ReplenishmentPlanner,
    calculate_recommended_order_quantity,
    calculate_reorder_point_weekly,
    compute_safety_stock,
    resolve_service_level_z,
    summarize_weekly_demand,
    weekly_outlook,
)

from conftest import monthly_series, weekly_series


# ============================================================
# Weekly demand summary
# ============================================================

def test_summary_uses_trailing_window():
    history = [{"quantity": value} for value in range(10, 110, 10)]

    summary = summarize_weekly_demand(history)

    assert summary.sample_size == 8
    assert summary.mean == pytest.approx(65.0)
    assert summary.std_dev == pytest.approx(math.sqrt(600))
    assert summary.total_quantity == pytest.approx(520.0)


def test_summary_excludes_promo_weeks():
    history = [
        {"quantity": 10, "promo": False},
        {"quantity": 500, "promo": True},
        {"quantity": 30, "promo": False},
    ]

    summary = summarize_weekly_demand(history, exclude_promo_weeks=True)

    assert summary.sample_size == 2
    assert summary.mean == pytest.approx(20.0)


def test_summary_of_empty_history():
    summary = summarize_weekly_demand([])

    assert summary.mean == 0.0
    assert summary.std_dev == 0.0
    assert summary.sample_size == 0


def test_single_week_has_no_spread():
    summary = summarize_weekly_demand([{"quantity": 40}], min_weeks=1)

    assert summary.mean == 40.0
    assert summary.std_dev == 0.0


# ============================================================
# Reorder arithmetic
# ============================================================

def test_reorder_point_weekly():
    assert calculate_reorder_point_weekly(100, 20, 4, 1.6449) == 466
    assert calculate_reorder_point_weekly(100, 20, 0, 1.6449) == 0
    assert calculate_reorder_point_weekly(100, 0, 2, 1.6449) == 200


def test_recommended_order_quantity():
    assert calculate_recommended_order_quantity(466, 500) == 0
    assert calculate_recommended_order_quantity(466, 100) == 366


@pytest.mark.parametrize("percent, expected", [
    (90, 1.2816),
    (96, 1.6449),
    (97, 2.0537),
    (99.9, 2.3263),
    (math.nan, 0.0),
])
def test_service_level_z(percent, expected):
    assert resolve_service_level_z(percent) == expected


def test_safety_stock():
    assert compute_safety_stock(6, 14) == 41
    assert compute_safety_stock(0, 14) == 0
    assert compute_safety_stock(6, 0) == 0
    assert compute_safety_stock(6, 14, corr_rho=5) == compute_safety_stock(6, 14, corr_rho=0.5)


# ============================================================
# Outlook and planning
# ============================================================

def test_weekly_outlook_repeats_last_forecast():
    result = build_weekly_forecast(weekly_series([100] * 12), {"horizon": 3})

    outlook = weekly_outlook(result)

    assert set(outlook) == {"week1", "week2", "week4", "week8"}
    assert outlook["week4"] == outlook["week8"] == result.forecast_points[-1].forecast


def test_planner_builds_plan():
    weekly = build_weekly_forecast(weekly_series([100] * 12))
    monthly = build_seasonal_forecast(monthly_series([100] * 12), {"horizon": 3})
    planner = ReplenishmentPlanner(lead_time_days=14, service_level_percent=95)

    plan = planner.plan(weekly, monthly, on_hand=250, reserved=100)

    assert planner.lead_time_weeks == 2
    assert plan.available_stock == 150
    assert plan.weekly_summary.mean == pytest.approx(100.0)
    assert plan.reorder_point_weekly == 200
    assert plan.recommended_order_qty_weekly == 50
    assert plan.needs_reorder
    assert plan.projected_stockout_date.startswith("2024-02")


def test_planner_without_monthly_result():
    weekly = build_weekly_forecast(weekly_series([100] * 12))

    plan = ReplenishmentPlanner().plan(weekly, on_hand=1000)

    assert plan.projected_stockout_date is None
    assert not plan.needs_reorder
    assert plan.to_dict()["weeklyStats"]["sampleSize"] == 8
    assert "REPLENISHMENT SUMMARY" in plan.get_summary_report()


def test_planner_rejects_invalid_lead_time():
    assert ReplenishmentPlanner(lead_time_days=-3).lead_time_days == 14
    assert ReplenishmentPlanner(lead_time_days=0.2).lead_time_days == 1
