"""Hour classification and pay calculation."""

from timekeeping_engine.calculators.categories import (
    CategoryHours,
    HourCategory,
    HourTotals,
    classify,
    pay,
)
from timekeeping_engine.calculators.overtime import (
    OvertimeSettings,
    split_daily_hours,
    split_week,
)

__all__ = [
    "CategoryHours",
    "HourCategory",
    "HourTotals",
    "classify",
    "pay",
    "OvertimeSettings",
    "split_daily_hours",
    "split_week",
]
