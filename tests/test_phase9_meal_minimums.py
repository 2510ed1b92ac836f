"""Phase 9 unit tests: per-meal calorie floors."""

from __future__ import annotations

from src.portioning.phase0_models import (
    EditableMode,
    FoodCategory,
    MealSlot,
    NutrientDensity,
    PortionableItem,
)
from src.portioning.phase9_meal_minimums import meal_calories, validate_meal_minimums


def _make_item(iid: str, meal: MealSlot, calories: float = 100, **kwargs) -> PortionableItem:
    return PortionableItem(
        id=iid,
        name=iid,
        category=kwargs.pop("category", FoodCategory.OTHER),
        meal_slot=meal,
        density=NutrientDensity(calories, 5, 10, 2),
        max_grams=kwargs.pop("max_grams", 300),
        **kwargs,
    )


class TestMealCalories:
    def test_sums_per_meal(self):
        items = [
            _make_item("a", MealSlot.LUNCH),
            _make_item("b", MealSlot.LUNCH),
            _make_item("c", MealSlot.DINNER),
        ]
        totals = meal_calories(items, {"a": 100, "b": 50, "c": 200})
        assert totals == {MealSlot.LUNCH: 150, MealSlot.DINNER: 200}

    def test_zero_gram_items_do_not_make_a_meal(self):
        items = [_make_item("a", MealSlot.BREAKFAST)]
        assert meal_calories(items, {"a": 0}) == {}


class TestValidateMealMinimums:
    def test_breakfast_below_floor(self):
        items = [_make_item("a", MealSlot.BREAKFAST), _make_item("b", MealSlot.LUNCH)]
        shortfalls = validate_meal_minimums(items, {"a": 80, "b": 300})
        assert len(shortfalls) == 1
        blocker = shortfalls[0].to_blocker()
        assert blocker.item_name == "breakfast"
        assert blocker.constraint == "meal_minimum"
        assert blocker.detail == "breakfast has only 80 kcal (min 100)"

    def test_floor_is_inclusive(self):
        items = [_make_item("a", MealSlot.DINNER)]
        assert validate_meal_minimums(items, {"a": 100}) == []

    def test_snacks_exempt(self):
        items = [_make_item("a", MealSlot.SNACK)]
        assert validate_meal_minimums(items, {"a": 10}) == []

    def test_empty_meal_not_checked(self):
        items = [_make_item("a", MealSlot.LUNCH)]
        assert validate_meal_minimums(items, {"a": 200}) == []

    def test_non_counting_seasoning_excluded(self):
        sauce = _make_item(
            "sauce", MealSlot.DINNER, calories=400, category=FoodCategory.SEASONING,
            editable_mode=EditableMode.LOCKED, max_grams=15, counts_toward_totals=False,
        )
        shortfalls = validate_meal_minimums([sauce, _make_item("veg", MealSlot.DINNER)], {"sauce": 15, "veg": 50})
        assert [s.calories for s in shortfalls] == [50]
        assert validate_meal_minimums(
            [sauce, _make_item("veg", MealSlot.DINNER)], {"sauce": 15, "veg": 50}, seasonings_count_macros=True
        ) == []
