#!/usr/bin/env python3
"""
Example usage of the Inventory Forecast engine.

This script demonstrates how to use the forecasting and replenishment
components together to produce weekly and monthly demand forecasts, a
projected stockout date and a reorder recommendation.
"""

import logging

import numpy as np
import pandas as pd
from inventory_forecast import ForecastingEngine, ReplenishmentPlanner


def synthetic_movements(days=540, seed=7):
    """Daily outbound movements with a trend, a yearly cycle and noise."""
    rng = np.random.default_rng(seed)
    dates = pd.date_range(end=pd.Timestamp.today().normalize(), periods=days, freq='D')
    trend = np.linspace(20, 30, days)
    season = 1 + 0.25 * np.sin(2 * np.pi * dates.dayofyear / 365.25)
    quantity = np.maximum(rng.normal(trend * season, 4), 0).round()
    promo = rng.random(days) < 0.03
    return pd.DataFrame({'date': dates, 'quantity': quantity, 'promo': promo})


def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    print("=== Inventory Forecast Demo ===\n")

    # 1. Load historical demand data
    print("1. Loading historical demand data...")
    try:
        demand_data = pd.read_csv('data/Historical_Demand_Data.csv')
        demand_data['date'] = pd.to_datetime(demand_data['date'], format='%Y-%m-%d')
        print(f"Loaded {len(demand_data)} historical records")
    except FileNotFoundError:
        print("data/Historical_Demand_Data.csv not found, using synthetic movements")
        demand_data = synthetic_movements()
    print(f"   Date range: {demand_data['date'].min().strftime('%Y-%m-%d')} to {demand_data['date'].max().strftime('%Y-%m-%d')}")

    # 2. Initialize forecasting engine
    print("\n2. Initializing forecasting engine...")
    forecaster = ForecastingEngine(
        default_method='holt_winters_weekly',
        monthly_config={'horizon': 6, 'upcoming_promotions': {}}
    )
    forecaster.load_historical_data(demand_data)

    model_info = forecaster.get_model_info()
    print(f"Engine initialized with {model_info['data_points']} data points")
    print(f"   Available methods: {', '.join(model_info['supported_methods'])}")
    print(f"   Default method: {model_info['default_method']}")

    # 3. Weekly forecast
    print("\n3. Generating weekly forecast...")
    weekly = forecaster.forecast()
    print(f"   ✓ Weekly forecast generated (MAPE {weekly.mape}%)")
    for point in weekly.forecast_points:
        print(f"     {point.date}: {point.forecast} units")

    # 4. Monthly forecast
    print("\n4. Generating monthly forecast...")
    monthly = forecaster.forecast(method='seasonal_regression_monthly')
    print(f"   ✓ Monthly forecast generated (MAPE {monthly.mape}%, sigma {monthly.sigma:.1f})")
    for point in monthly.forecast_points:
        print(f"     {point.date}: {point.forecast} units [{point.lower} - {point.upper}]")

    # 5. Model evaluation
    print("\n5. Evaluating models...")
    for method in model_info['supported_methods']:
        metrics = forecaster.evaluate_model(method)
        print(f"   {method}: MAE {metrics['mae']:.1f}, RMSE {metrics['rmse']:.1f}, MAPE {metrics['mape']}")

    # 6. Replenishment plan
    print("\n6. Building replenishment plan...")
    planner = ReplenishmentPlanner(lead_time_days=14, service_level_percent=95)
    plan = planner.plan(weekly, monthly, on_hand=400, reserved=50)
    print(plan.get_summary_report())

    # 7. Export results
    print("\n7. Exporting results...")
    weekly.to_dataframe().to_csv('weekly_forecast_output.csv', index=False)
    print("   ✓ Weekly forecast saved to weekly_forecast_output.csv")

    pd.DataFrame([point.to_dict() for point in monthly.trim_history()]).to_csv(
        'monthly_forecast_output.csv', index=False
    )
    print("   ✓ Monthly forecast saved to monthly_forecast_output.csv")

    print("\n=== Demo Complete ===")


if __name__ == "__main__":
    main()
