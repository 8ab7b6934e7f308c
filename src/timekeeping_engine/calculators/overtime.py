"""Suggested straight/overtime/double-time splits for worked hours.

The splitter is advisory: it proposes a CategoryHours breakdown from raw
hours using company overtime settings. Whatever breakdown the caller finally
submits is validated by the time entry store on its own.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal
from enum import Enum
from typing import TYPE_CHECKING

from timekeeping_engine.calculators.categories import (
    HOURS_PRECISION,
    ZERO,
    CategoryHours,
    to_decimal,
)
from timekeeping_engine.errors import ValidationError

if TYPE_CHECKING:
    from timekeeping_engine.config import Settings


class RoundingMode(str, Enum):
    """How raw hours snap to the rounding interval."""

    NEAREST = "nearest"
    UP = "up"
    DOWN = "down"


_ROUNDING = {
    RoundingMode.NEAREST: ROUND_HALF_UP,
    RoundingMode.UP: ROUND_CEILING,
    RoundingMode.DOWN: ROUND_FLOOR,
}


@dataclass(frozen=True)
class OvertimeSettings:
    """Company overtime rules."""

    daily_ot_threshold: Decimal = Decimal("8")
    daily_dt_threshold: Decimal = Decimal("12")
    weekly_ot_threshold: Decimal = Decimal("40")
    weekly_dt_threshold: Decimal = Decimal("60")
    seventh_day_ot: bool = True
    seventh_day_dt: bool = True
    use_daily_ot: bool = False
    use_weekly_ot: bool = True
    rounding_interval: int = 15  # minutes, 0 disables rounding
    rounding_mode: RoundingMode = RoundingMode.NEAREST

    @classmethod
    def from_settings(cls, settings: Settings) -> OvertimeSettings:
        return cls(
            daily_ot_threshold=settings.ot_daily_threshold,
            daily_dt_threshold=settings.dt_daily_threshold,
            weekly_ot_threshold=settings.ot_weekly_threshold,
            weekly_dt_threshold=settings.dt_weekly_threshold,
            use_daily_ot=settings.ot_use_daily,
            use_weekly_ot=settings.ot_use_weekly,
            rounding_interval=settings.ot_rounding_minutes,
        )


def round_hours(
    hours: Decimal,
    interval_minutes: int,
    mode: RoundingMode = RoundingMode.NEAREST,
) -> Decimal:
    """Snap hours to the rounding interval, result in hundredths."""
    if interval_minutes <= 0:
        return hours.quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)
    step = Decimal(interval_minutes) / Decimal(60)
    steps = (hours / step).quantize(Decimal("1"), rounding=_ROUNDING[mode])
    return (steps * step).quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)


def split_daily_hours(
    hours: Decimal,
    settings: OvertimeSettings,
    travel_hours: Decimal = ZERO,
    is_seventh_day: bool = False,
) -> CategoryHours:
    """Split one day's hours into straight, overtime and double time.

    ``travel_hours`` of the shift are then moved into the travel variants.
    """
    hours = to_decimal(hours, "hours")
    if hours < 0:
        raise ValidationError("hours cannot be negative", field="hours")

    rounded = round_hours(hours, settings.rounding_interval, settings.rounding_mode)
    regular = overtime = double = ZERO

    if is_seventh_day and settings.seventh_day_ot:
        # Seventh consecutive day: first block is all overtime
        if rounded <= settings.daily_ot_threshold or not settings.seventh_day_dt:
            overtime = rounded
        else:
            overtime = settings.daily_ot_threshold
            double = rounded - settings.daily_ot_threshold
    elif settings.use_daily_ot:
        if rounded <= settings.daily_ot_threshold:
            regular = rounded
        elif rounded <= settings.daily_dt_threshold:
            regular = settings.daily_ot_threshold
            overtime = rounded - settings.daily_ot_threshold
        else:
            regular = settings.daily_ot_threshold
            overtime = settings.daily_dt_threshold - settings.daily_ot_threshold
            double = rounded - settings.daily_dt_threshold
    else:
        regular = rounded

    breakdown = CategoryHours(straight_time=regular, overtime=overtime, double_time=double)
    if travel_hours:
        breakdown = allocate_travel(breakdown, travel_hours)
    return breakdown


def allocate_travel(breakdown: CategoryHours, travel_hours: Decimal) -> CategoryHours:
    """Move travel hours into the travel variants, straight time first."""
    travel_hours = to_decimal(travel_hours, "travelHours")
    if travel_hours < 0:
        raise ValidationError("travelHours cannot be negative", field="travelHours")
    if travel_hours > breakdown.total:
        raise ValidationError(
            f"travelHours {travel_hours} exceed total hours {breakdown.total}",
            field="travelHours",
        )

    remaining = travel_hours
    tiers = {}
    for work_field, travel_field in (
        ("straight_time", "straight_time_travel"),
        ("overtime", "overtime_travel"),
        ("double_time", "double_time_travel"),
    ):
        available = getattr(breakdown, work_field)
        moved = min(available, remaining)
        remaining -= moved
        tiers[work_field] = available - moved
        tiers[travel_field] = getattr(breakdown, travel_field) + moved
    return CategoryHours(**tiers)


def _is_seventh_consecutive_day(work_day: date, worked_days: set[date]) -> bool:
    return all(work_day - timedelta(days=offset) in worked_days for offset in range(1, 7))


def split_week(
    days: Sequence[tuple[date, Decimal]],
    settings: OvertimeSettings,
) -> list[tuple[date, CategoryHours]]:
    """Split a run of work days, applying weekly thresholds in date order.

    Once the running weekly total passes the weekly overtime threshold, the
    day's straight time becomes overtime; past the weekly double-time
    threshold it becomes double time. Seventh consecutive days keep their
    daily seventh-day split.
    """
    ordered = sorted(days, key=lambda item: item[0])
    worked_days = {work_day for work_day, hours in ordered if to_decimal(hours, "hours") > 0}
    accumulated = ZERO
    results: list[tuple[date, CategoryHours]] = []

    for work_day, hours in ordered:
        seventh = _is_seventh_consecutive_day(work_day, worked_days)
        daily = split_daily_hours(hours, settings, is_seventh_day=seventh)
        regular, overtime, double = daily.straight_time, daily.overtime, daily.double_time

        if settings.use_weekly_ot and not seventh and regular > 0:
            straight_room = max(ZERO, settings.weekly_ot_threshold - accumulated)
            kept = min(regular, straight_room)
            excess = regular - kept
            start = accumulated + kept
            end = start + excess
            to_double = max(ZERO, end - max(start, settings.weekly_dt_threshold))
            regular = kept
            overtime += excess - to_double
            double += to_double

        accumulated += daily.total
        results.append(
            (work_day, CategoryHours(straight_time=regular, overtime=overtime, double_time=double))
        )

    return results
