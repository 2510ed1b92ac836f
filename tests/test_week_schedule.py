"""Tests for weekly calorie schedules."""

from datetime import date

import pytest

from src.portioning.week_schedule import (
    PlanMode,
    WeeklyCalorieSchedule,
    ZigzagShape,
    build_flat_schedule,
    build_zigzag_schedule,
    calories_for_date,
    is_weekend,
    target_calories_for_plan,
    week_start_monday,
    weekly_average,
)


class TestWeekBoundaries:
    def test_monday_is_its_own_week_start(self):
        assert week_start_monday(date(2024, 1, 1)) == date(2024, 1, 1)

    def test_sunday_belongs_to_preceding_monday(self):
        assert week_start_monday(date(2024, 1, 7)) == date(2024, 1, 1)

    def test_weekend_detection(self):
        assert is_weekend(date(2024, 1, 6))
        assert is_weekend(date(2024, 1, 7))
        assert not is_weekend(date(2024, 1, 5))


class TestWeeklyCalorieSchedule:
    def test_calories_for_date(self):
        schedule = WeeklyCalorieSchedule(1800, 1800, 1800, 1800, 1800, 2400, 2400)
        assert calories_for_date(date(2024, 1, 6), schedule) == 2400
        assert calories_for_date(date(2024, 1, 3), schedule) == 1800

    def test_from_dict_requires_every_day(self):
        with pytest.raises(KeyError, match="sunday"):
            WeeklyCalorieSchedule.from_dict({"monday": 2000})

    def test_dict_roundtrip_preserves_order(self):
        schedule = build_flat_schedule(2100)
        assert list(schedule.to_dict()) == [
            "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
        ]
        assert WeeklyCalorieSchedule.from_dict(schedule.to_dict()) == schedule


class TestPlanModes:
    def test_daily_adjustment(self):
        assert target_calories_for_plan(2500, PlanMode.MAINTAIN) == 2500
        assert target_calories_for_plan(2500, PlanMode.MILD_LOSS) == 2250
        assert target_calories_for_plan(2500, PlanMode.LOSS) == 2000
        assert target_calories_for_plan(2500, PlanMode.EXTREME_LOSS) == 1500


class TestZigzag:
    @pytest.mark.parametrize("shape", list(ZigzagShape))
    @pytest.mark.parametrize("mode", list(PlanMode))
    def test_weekly_total_matches_budget(self, shape, mode):
        schedule = build_zigzag_schedule(2500, mode, shape)
        budget = target_calories_for_plan(2500, mode) * 7
        assert abs(schedule.total() - budget) <= 5

    def test_weekend_high_puts_weekend_at_tdee(self):
        schedule = build_zigzag_schedule(2500, PlanMode.LOSS, ZigzagShape.WEEKEND_HIGH)
        assert schedule.saturday == 2500
        assert schedule.sunday == 2500
        assert schedule.monday == 1800

    def test_alternating_shape(self):
        schedule = build_zigzag_schedule(2500, PlanMode.MAINTAIN, ZigzagShape.ALTERNATING)
        assert schedule.monday == schedule.wednesday == 2125
        assert schedule.friday == schedule.saturday == 2875
        assert schedule.monday < schedule.tuesday < schedule.friday

    def test_weekly_average(self):
        assert weekly_average(build_flat_schedule(1950)) == 1950
