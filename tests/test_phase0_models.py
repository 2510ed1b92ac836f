"""Phase 0 unit tests: item validation, rounding, clamping and macro arithmetic.

No search or scoring; hand-built items only.
"""

from __future__ import annotations

import pytest

from src.portioning.phase0_models import (
    DEFAULT_MAX_GRAMS,
    EditableMode,
    FoodCategory,
    MacroTarget,
    MacroTolerance,
    MacroTotals,
    MealSlot,
    NutrientDensity,
    PortionableItem,
    RoundingRule,
    SolverOptions,
    ToleranceWindow,
    apply_portions,
    apply_rounding_rule,
    clamp_to_constraints,
    is_within_tolerance,
    item_macros,
    round_half_up,
    sum_macros,
    target_delta,
)


def _make_item(
    iid: str = "chicken",
    category: FoodCategory = FoodCategory.PROTEIN,
    density: NutrientDensity = NutrientDensity(165, 31, 0, 3.6),
    **kwargs,
) -> PortionableItem:
    return PortionableItem(
        id=iid,
        name=iid,
        category=category,
        meal_slot=kwargs.pop("meal_slot", MealSlot.DINNER),
        density=density,
        **kwargs,
    )


class TestRoundHalfUp:
    def test_half_rounds_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(49.5) == 50

    def test_below_half_rounds_down(self):
        assert round_half_up(2.49) == 2

    def test_negative_half_rounds_toward_positive(self):
        assert round_half_up(-0.5) == 0


class TestApplyRoundingRule:
    def test_nearest_5g(self):
        assert apply_rounding_rule(142, RoundingRule.NEAREST_5G) == 140
        assert apply_rounding_rule(142.5, RoundingRule.NEAREST_5G) == 145

    def test_nearest_10g(self):
        assert apply_rounding_rule(145, RoundingRule.NEAREST_10G) == 150

    def test_whole_unit_uses_unit_size(self):
        assert apply_rounding_rule(100, RoundingRule.WHOLE_UNIT_ONLY, unit_size_grams=60) == 120


class TestPortionableItemValidation:
    def test_inverted_bounds_raise(self):
        with pytest.raises(ValueError, match="exceeds max_grams"):
            _make_item(min_grams=200, max_grams=100)

    def test_negative_bounds_raise(self):
        with pytest.raises(ValueError):
            _make_item(min_grams=-1)

    def test_eaten_factor_out_of_range_raises(self):
        with pytest.raises(ValueError, match="eaten_factor"):
            _make_item(eaten_factor=0)
        with pytest.raises(ValueError, match="eaten_factor"):
            _make_item(eaten_factor=1.2)

    def test_step_below_one_raises(self):
        with pytest.raises(ValueError, match="step_grams"):
            _make_item(step_grams=0)

    def test_whole_unit_without_unit_size_raises(self):
        with pytest.raises(ValueError, match="unit_size_grams"):
            _make_item(rounding_rule=RoundingRule.WHOLE_UNIT_ONLY)

    def test_seasoning_must_be_locked(self):
        with pytest.raises(ValueError, match="LOCKED"):
            _make_item(
                "salt",
                FoodCategory.SEASONING,
                NutrientDensity(0, 0, 0, 0),
                editable_mode=EditableMode.FREE,
                max_grams=10,
            )

    def test_seasoning_cap_enforced(self):
        with pytest.raises(ValueError, match="15g"):
            _make_item(
                "sauce",
                FoodCategory.SEASONING,
                NutrientDensity(100, 1, 20, 1),
                editable_mode=EditableMode.LOCKED,
                max_grams=40,
            )

    def test_unbounded_max_uses_default_ceiling(self):
        item = _make_item(max_grams=0)
        assert item.effective_max_grams == DEFAULT_MAX_GRAMS

    def test_min_above_default_ceiling_raises(self):
        with pytest.raises(ValueError, match="exceeds max_grams 500"):
            _make_item(min_grams=600, max_grams=0)

    def test_min_at_default_ceiling_allowed(self):
        item = _make_item(min_grams=DEFAULT_MAX_GRAMS, max_grams=0)
        assert item.gram_range() == (DEFAULT_MAX_GRAMS, DEFAULT_MAX_GRAMS)

    def test_locked_and_seasoning_are_not_adjustable(self):
        locked = _make_item(editable_mode=EditableMode.LOCKED, current_grams=100)
        salt = _make_item(
            "salt", FoodCategory.SEASONING, NutrientDensity(0, 0, 0, 0),
            editable_mode=EditableMode.LOCKED, max_grams=15,
        )
        assert not locked.is_adjustable
        assert not salt.is_adjustable
        assert _make_item(editable_mode=EditableMode.BOUNDED).is_adjustable


class TestClampToConstraints:
    def test_clamps_into_range(self):
        item = _make_item(min_grams=100, max_grams=300)
        assert clamp_to_constraints(50, item) == 100
        assert clamp_to_constraints(999, item) == 300

    def test_snaps_to_step_then_rounds(self):
        item = _make_item(min_grams=0, max_grams=300, step_grams=10, rounding_rule=RoundingRule.NEAREST_10G)
        assert clamp_to_constraints(144, item) == 140
        assert clamp_to_constraints(145, item) == 150

    def test_reclamp_stays_on_rule_multiple(self):
        # 298 rounds to 300 which overshoots 297; step back one granule
        item = _make_item(min_grams=0, max_grams=297, rounding_rule=RoundingRule.NEAREST_10G)
        assert clamp_to_constraints(298, item) == 290

    def test_whole_units(self):
        item = _make_item(
            "egg", min_grams=0, max_grams=300,
            rounding_rule=RoundingRule.WHOLE_UNIT_ONLY, unit_size_grams=60,
        )
        assert clamp_to_constraints(100, item) == 120
        assert clamp_to_constraints(80, item) == 60

    def test_never_negative(self):
        assert clamp_to_constraints(-20, _make_item()) == 0


class TestMacroArithmetic:
    def test_item_macros_applies_eaten_factor(self):
        item = _make_item(eaten_factor=0.5)
        macros = item_macros(item, 200)
        assert macros.calories == pytest.approx(165)
        assert macros.protein_g == pytest.approx(31)

    def test_sum_skips_non_counting_items(self):
        chicken = _make_item()
        salt = _make_item(
            "sauce", FoodCategory.SEASONING, NutrientDensity(100, 0, 20, 0),
            editable_mode=EditableMode.LOCKED, max_grams=15, counts_toward_totals=False,
        )
        portions = {"chicken": 100, "sauce": 10}
        assert sum_macros([chicken, salt], portions).calories == pytest.approx(165)
        assert sum_macros([chicken, salt], portions, seasonings_count_macros=True).calories == pytest.approx(175)

    def test_target_delta_uses_rounded_totals(self):
        delta = target_delta(MacroTotals(429.5, 50.28, 39.2, 5.82), MacroTarget(430, 50, 38, 5))
        assert delta == MacroTotals(0, 0, 1, 1)

    def test_within_tolerance_bounds_inclusive(self):
        target = MacroTarget(2000, 150, 200, 67)
        assert is_within_tolerance(MacroTotals(2050, 151, 199, 66), target)
        assert not is_within_tolerance(MacroTotals(2051, 150, 200, 67), target)
        assert not is_within_tolerance(MacroTotals(2000, 152, 200, 67), target)

    def test_asymmetric_tolerance(self):
        target = MacroTarget(2000, 150, 200, 67)
        window = ToleranceWindow(calories=MacroTolerance(0, 100))
        assert is_within_tolerance(MacroTotals(2080, 150, 200, 67), target, window)
        assert not is_within_tolerance(MacroTotals(1990, 150, 200, 67), target, window)


class TestTargetsAndOptions:
    def test_negative_target_raises(self):
        with pytest.raises(ValueError):
            MacroTarget(2000, -1, 200, 67)

    def test_negative_tolerance_raises(self):
        with pytest.raises(ValueError):
            MacroTolerance(-1, 1)

    def test_non_positive_iterations_raise(self):
        with pytest.raises(ValueError, match="max_iterations"):
            SolverOptions(max_iterations=0)

    def test_default_tolerances(self):
        tol = SolverOptions().tolerances
        assert tol.calories == MacroTolerance(50, 50)
        assert tol.fat_g == MacroTolerance(1, 1)


class TestApplyPortions:
    def test_returns_new_items_with_solved_grams(self):
        item = _make_item(current_grams=100)
        updated = apply_portions([item], {"chicken": 150})
        assert updated[0].current_grams == 150
        assert item.current_grams == 100

    def test_items_without_portion_unchanged(self):
        item = _make_item(current_grams=100)
        assert apply_portions([item], {})[0] is item
