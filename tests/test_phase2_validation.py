"""Phase 2 unit tests: per-100g nutrient density validation."""

import pytest

from src.portioning.phase0_models import FoodCategory, MealSlot, NutrientDensity, PortionableItem
from src.portioning.phase2_validation import validate_item_nutrition, validate_items


def _make_item(iid: str, calories: float, protein: float, carbs: float, fat: float) -> PortionableItem:
    return PortionableItem(
        id=iid,
        name=iid,
        category=FoodCategory.OTHER,
        meal_slot=MealSlot.LUNCH,
        density=NutrientDensity(calories, protein, carbs, fat),
        max_grams=300,
    )


class TestValidateItemNutrition:
    def test_valid_item_has_no_blockers(self):
        assert validate_item_nutrition(_make_item("chicken", 165, 31, 0, 3.6)) == []

    def test_pure_fat_is_valid(self):
        assert validate_item_nutrition(_make_item("oil", 884, 0, 0, 100)) == []

    def test_calories_above_900(self):
        blockers = validate_item_nutrition(_make_item("bad", 950, 0, 0, 99))
        assert [b.constraint for b in blockers] == ["invalid_calories"]
        assert blockers[0].item_name == "bad"
        assert blockers[0].value == 950

    def test_negative_macro(self):
        blockers = validate_item_nutrition(_make_item("bad", 100, -1, 10, 5))
        assert [b.constraint for b in blockers] == ["invalid_protein"]

    def test_macro_sum_tolerance(self):
        assert validate_item_nutrition(_make_item("label", 400, 40, 40, 22)) == []
        blockers = validate_item_nutrition(_make_item("bad", 500, 40, 40, 23))
        assert [b.constraint for b in blockers] == ["invalid_macro_sum"]

    def test_non_finite_values(self):
        blockers = validate_item_nutrition(_make_item("nan", float("nan"), 1, 1, 1))
        assert len(blockers) == 1
        assert blockers[0].constraint == "invalid_nutrition"

    def test_multiple_violations_reported(self):
        blockers = validate_item_nutrition(_make_item("bad", -5, 120, 0, 0))
        constraints = {b.constraint for b in blockers}
        assert constraints == {"invalid_calories", "invalid_protein", "invalid_macro_sum"}


class TestValidateItems:
    def test_collects_across_items(self):
        items = [
            _make_item("ok", 130, 2.7, 28, 0.3),
            _make_item("bad1", 1000, 0, 0, 0),
            _make_item("bad2", 100, 0, 150, 0),
        ]
        names = [b.item_name for b in validate_items(items)]
        assert names == ["bad1", "bad2", "bad2"]

    @pytest.mark.parametrize("calories", [0, 900])
    def test_calorie_bounds_inclusive(self, calories):
        assert validate_items([_make_item("edge", calories, 0, 0, 0)]) == []
