"""Pay categories and their arithmetic relationship to a shift's hours and pay.

Six categories, three multiplier tiers:

    STRAIGHT_TIME / STRAIGHT_TIME_TRAVEL   1.0x
    OVERTIME      / OVERTIME_TRAVEL        1.5x
    DOUBLE_TIME   / DOUBLE_TIME_TRAVEL     2.0x

Travel categories share their tier's multiplier but are paid on the travel
base rate, which defaults to the regular rate when the caller has none.

Hours are fixed-point hundredths of an hour; pay is rounded half-up to cents.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, fields
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from timekeeping_engine.errors import ValidationError

HOURS_PRECISION = Decimal("0.01")
CENTS = Decimal("0.01")
DEFAULT_MAX_SHIFT_HOURS = Decimal("24")
ZERO = Decimal("0")


class HourCategory(str, Enum):
    """Paid hour categories."""

    STRAIGHT_TIME = "STRAIGHT_TIME"
    STRAIGHT_TIME_TRAVEL = "STRAIGHT_TIME_TRAVEL"
    OVERTIME = "OVERTIME"
    OVERTIME_TRAVEL = "OVERTIME_TRAVEL"
    DOUBLE_TIME = "DOUBLE_TIME"
    DOUBLE_TIME_TRAVEL = "DOUBLE_TIME_TRAVEL"

    @property
    def multiplier(self) -> Decimal:
        return _MULTIPLIERS[self]

    @property
    def is_travel(self) -> bool:
        return self.value.endswith("_TRAVEL")

    @property
    def field_name(self) -> str:
        """Attribute name on CategoryHours and column name on TimeEntry."""
        return self.value.lower()

    @property
    def camel_name(self) -> str:
        """Wire name, e.g. ``straightTimeTravel``."""
        head, *rest = self.field_name.split("_")
        return head + "".join(part.capitalize() for part in rest)


_MULTIPLIERS: dict[HourCategory, Decimal] = {
    HourCategory.STRAIGHT_TIME: Decimal("1.0"),
    HourCategory.STRAIGHT_TIME_TRAVEL: Decimal("1.0"),
    HourCategory.OVERTIME: Decimal("1.5"),
    HourCategory.OVERTIME_TRAVEL: Decimal("1.5"),
    HourCategory.DOUBLE_TIME: Decimal("2.0"),
    HourCategory.DOUBLE_TIME_TRAVEL: Decimal("2.0"),
}

REGULAR_CATEGORIES = frozenset(
    {HourCategory.STRAIGHT_TIME, HourCategory.STRAIGHT_TIME_TRAVEL}
)
DOUBLE_TIME_CATEGORIES = frozenset(
    {HourCategory.DOUBLE_TIME, HourCategory.DOUBLE_TIME_TRAVEL}
)

# Every accepted spelling of a category key -> category
_KEY_ALIASES: dict[str, HourCategory] = {
    alias: category
    for category in HourCategory
    for alias in (
        category.value,
        category.field_name,
        category.camel_name,
        category.camel_name[0].upper() + category.camel_name[1:],
    )
}


def to_decimal(value: Any, field: str) -> Decimal:
    """Parse a numeric input into a finite Decimal, naming the field on failure."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field)
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite", field=field)
    return result


def to_hours(value: Any, field: str) -> Decimal:
    """Parse a non-negative hour quantity recorded in hundredths."""
    hours = to_decimal(value, field)
    if hours < 0:
        raise ValidationError(f"{field} cannot be negative (got {hours})", field=field)
    if hours != hours.quantize(HOURS_PRECISION):
        raise ValidationError(
            f"{field} must be recorded in hundredths of an hour (got {hours})",
            field=field,
        )
    return hours.quantize(HOURS_PRECISION)


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CategoryHours:
    """Hours worked in each of the six pay categories.

    Values are validated on construction: non-negative, finite, hundredths.
    """

    straight_time: Decimal = ZERO
    straight_time_travel: Decimal = ZERO
    overtime: Decimal = ZERO
    overtime_travel: Decimal = ZERO
    double_time: Decimal = ZERO
    double_time_travel: Decimal = ZERO

    def __post_init__(self) -> None:
        for f in fields(self):
            category = HourCategory(f.name.upper())
            object.__setattr__(
                self, f.name, to_hours(getattr(self, f.name), category.camel_name)
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CategoryHours:
        """Build from a loosely typed map (camel, Pascal, snake or enum-value keys).

        Missing or blank values count as zero; unknown keys are rejected.
        """
        values: dict[str, Any] = {}
        for key, value in data.items():
            category = _KEY_ALIASES.get(key)
            if category is None:
                raise ValidationError(f"Unknown hour category '{key}'", field=key)
            values[category.field_name] = value
        return cls(**values)

    def get(self, category: HourCategory) -> Decimal:
        return getattr(self, category.field_name)

    def items(self) -> Iterator[tuple[HourCategory, Decimal]]:
        for category in HourCategory:
            yield category, self.get(category)

    @property
    def total(self) -> Decimal:
        return sum((hours for _, hours in self.items()), ZERO)

    @property
    def regular(self) -> Decimal:
        return self.straight_time + self.straight_time_travel

    @property
    def overtime_total(self) -> Decimal:
        """Overtime aggregate for reporting: includes both double-time categories."""
        return self.overtime + self.overtime_travel + self.double_time + self.double_time_travel

    @property
    def double_time_total(self) -> Decimal:
        return self.double_time + self.double_time_travel

    @property
    def travel(self) -> Decimal:
        return sum((hours for category, hours in self.items() if category.is_travel), ZERO)

    def to_dict(self, camel: bool = True) -> dict[str, Decimal]:
        return {
            (category.camel_name if camel else category.field_name): hours
            for category, hours in self.items()
        }


@dataclass(frozen=True)
class HourTotals:
    """Roll-ups derived from a CategoryHours breakdown."""

    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    double_time_hours: Decimal


def validate(hours: CategoryHours, max_shift_hours: Decimal = DEFAULT_MAX_SHIFT_HOURS) -> None:
    """Reject a breakdown whose total exceeds the per-shift sanity ceiling."""
    total = hours.total
    if total > max_shift_hours:
        raise ValidationError(
            f"Total hours {total} exceed the per-shift limit of {max_shift_hours}",
            field="categoryHours",
        )


def classify(
    hours: CategoryHours,
    max_shift_hours: Decimal = DEFAULT_MAX_SHIFT_HOURS,
) -> HourTotals:
    """Compute total/regular/overtime roll-ups for a breakdown."""
    validate(hours, max_shift_hours)
    return HourTotals(
        total_hours=hours.total,
        regular_hours=hours.regular,
        overtime_hours=hours.overtime_total,
        double_time_hours=hours.double_time_total,
    )


def category_rate(
    category: HourCategory,
    regular_rate: Decimal,
    travel_rate: Decimal | None = None,
) -> Decimal:
    """Hourly rate paid for one category (base rate x tier multiplier)."""
    base = regular_rate
    if category.is_travel and travel_rate is not None:
        base = travel_rate
    return base * category.multiplier


def pay(
    hours: CategoryHours,
    regular_rate: Decimal,
    travel_rate: Decimal | None = None,
) -> Decimal:
    """Total pay for a breakdown, rounded to cents.

    Travel categories are paid on ``travel_rate`` (``regular_rate`` if None).
    """
    regular_rate = to_decimal(regular_rate, "regularRate")
    if regular_rate < 0:
        raise ValidationError("regularRate cannot be negative", field="regularRate")
    if travel_rate is not None:
        travel_rate = to_decimal(travel_rate, "travelRate")
        if travel_rate < 0:
            raise ValidationError("travelRate cannot be negative", field="travelRate")

    total = sum(
        (
            quantity * category_rate(category, regular_rate, travel_rate)
            for category, quantity in hours.items()
        ),
        ZERO,
    )
    return round_to_cents(total)
