"""Weekly calorie schedules: Monday-based weeks, flat and zigzag calorie cycling."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Tuple

from src.portioning.phase0_models import round_half_up


WEEKDAY_NAMES: Tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class PlanMode(str, Enum):
    MAINTAIN = "maintain"
    MILD_LOSS = "mild_loss"
    LOSS = "loss"
    EXTREME_LOSS = "extreme_loss"


class ZigzagShape(str, Enum):
    WEEKEND_HIGH = "weekend_high"
    ALTERNATING = "alternating"


# kcal/day relative to TDEE (0.25 / 0.5 / 1.0 kg per week)
PLAN_MODE_DAILY_ADJUSTMENT: Dict[PlanMode, int] = {
    PlanMode.MAINTAIN: 0,
    PlanMode.MILD_LOSS: -250,
    PlanMode.LOSS: -500,
    PlanMode.EXTREME_LOSS: -1000,
}

ALTERNATING_LOW_FACTOR = 0.85
ALTERNATING_HIGH_FACTOR = 1.15


@dataclass(frozen=True)
class WeeklyCalorieSchedule:
    """Calorie target for each day of a Monday-Sunday week."""

    monday: int
    tuesday: int
    wednesday: int
    thursday: int
    friday: int
    saturday: int
    sunday: int

    def calories_for(self, day: date) -> int:
        return getattr(self, WEEKDAY_NAMES[day.weekday()])

    def total(self) -> int:
        return sum(getattr(self, name) for name in WEEKDAY_NAMES)

    def to_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in WEEKDAY_NAMES}

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> WeeklyCalorieSchedule:
        missing = [name for name in WEEKDAY_NAMES if name not in data]
        if missing:
            raise KeyError(f"Weekly schedule is missing days: {', '.join(missing)}")
        return cls(**{name: int(data[name]) for name in WEEKDAY_NAMES})


def week_start_monday(day: date) -> date:
    """Monday of the Monday-Sunday week containing `day`."""
    return day - timedelta(days=day.weekday())


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def calories_for_date(day: date, schedule: WeeklyCalorieSchedule) -> int:
    return schedule.calories_for(day)


def weekly_average(schedule: WeeklyCalorieSchedule) -> int:
    return round_half_up(schedule.total() / 7)


def target_calories_for_plan(tdee: float, plan_mode: PlanMode) -> int:
    return round_half_up(tdee + PLAN_MODE_DAILY_ADJUSTMENT[plan_mode])


def build_flat_schedule(daily_calories: int) -> WeeklyCalorieSchedule:
    return WeeklyCalorieSchedule(*([daily_calories] * 7))


def build_zigzag_schedule(
    tdee: float,
    plan_mode: PlanMode,
    shape: ZigzagShape,
) -> WeeklyCalorieSchedule:
    """Calorie-cycled week whose total matches the plan's weekly budget within rounding.

    WEEKEND_HIGH: Saturday and Sunday at maintenance, weekdays absorb the deficit.
    ALTERNATING: low Mon/Wed, high Fri/Sat, medium Tue/Thu/Sun adjusted to the total.
    """
    target_daily = target_calories_for_plan(tdee, plan_mode)
    weekly_total = target_daily * 7

    if shape == ZigzagShape.WEEKEND_HIGH:
        high = round_half_up(tdee)
        low = round_half_up((weekly_total - high * 2) / 5)
        return WeeklyCalorieSchedule(low, low, low, low, low, high, high)

    low = round_half_up(target_daily * ALTERNATING_LOW_FACTOR)
    high = round_half_up(target_daily * ALTERNATING_HIGH_FACTOR)
    raw_total = low * 2 + target_daily * 3 + high * 2
    medium = target_daily + round_half_up((weekly_total - raw_total) / 3)
    return WeeklyCalorieSchedule(low, medium, low, medium, high, high, medium)
