"""
Data models for replenishment planning.
"""

from typing import Dict, Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class WeeklyDemandSummary:
    """Mean and spread of recent weekly demand."""

    mean: float
    std_dev: float
    sample_size: int
    total_quantity: float

    def to_dict(self) -> Dict:
        return {
            'mean': self.mean,
            'stdDev': self.std_dev,
            'sampleSize': self.sample_size,
            'totalQuantity': self.total_quantity
        }


@dataclass(frozen=True)
class ReplenishmentPlan:
    """Reorder recommendation derived from the weekly and monthly forecasts."""

    available_stock: float
    lead_time_days: int
    service_level_z: float
    weekly_summary: WeeklyDemandSummary
    reorder_point_weekly: int
    recommended_order_qty_weekly: int
    weekly_outlook: Dict[str, int]
    projected_stockout_date: Optional[str] = None

    @property
    def needs_reorder(self) -> bool:
        """Check if available stock is at or below the reorder point."""
        return self.recommended_order_qty_weekly > 0

    def to_dict(self) -> Dict:
        """Convert to dictionary representation."""
        return {
            'availableStock': self.available_stock,
            'leadTimeDays': self.lead_time_days,
            'serviceLevelZ': self.service_level_z,
            'weeklyStats': self.weekly_summary.to_dict(),
            'reorderPointWeekly': self.reorder_point_weekly,
            'recommendedOrderQtyWeekly': self.recommended_order_qty_weekly,
            'weeklyOutlook': dict(self.weekly_outlook),
            'projectedStockoutDate': self.projected_stockout_date
        }

    def get_summary_report(self) -> str:
        """Generate a text summary report."""
        report = []
        report.append("=== REPLENISHMENT SUMMARY ===")
        report.append(f"Available stock: {self.available_stock:,.0f}")
        report.append(f"Lead time: {self.lead_time_days} days (Z = {self.service_level_z:.2f})")
        report.append(f"Weekly demand: mean {self.weekly_summary.mean:.1f}, "
                      f"std {self.weekly_summary.std_dev:.1f} over {self.weekly_summary.sample_size} weeks")
        report.append(f"Reorder point (weekly): {self.reorder_point_weekly}")
        report.append(f"Recommended order: {self.recommended_order_qty_weekly}")
        report.append(f"Projected stockout: {self.projected_stockout_date or 'not within horizon'}")
        report.append("")
        report.append("WEEKLY OUTLOOK:")
        for key, value in self.weekly_outlook.items():
            report.append(f"  {key}: {value}")

        return "\n".join(report)
