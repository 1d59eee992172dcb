"""
Replenishment module for reorder planning.
"""

from .models import ReplenishmentPlan, WeeklyDemandSummary
from .planner import (
    ReplenishmentPlanner,
    calculate_recommended_order_quantity,
    calculate_reorder_point_weekly,
    compute_safety_stock,
    resolve_service_level_z,
    summarize_weekly_demand,
    weekly_outlook,
)

__all__ = [
    "ReplenishmentPlanner",
    "ReplenishmentPlan",
    "WeeklyDemandSummary",
    "summarize_weekly_demand",
    "calculate_reorder_point_weekly",
    "calculate_recommended_order_quantity",
    "resolve_service_level_z",
    "compute_safety_stock",
    "weekly_outlook",
]
