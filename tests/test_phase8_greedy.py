"""Phase 8 unit tests: greedy hill-climb fallback."""

from __future__ import annotations

from src.portioning.phase0_models import (
    FoodCategory,
    MacroTarget,
    MealSlot,
    NutrientDensity,
    PortionableItem,
    RoundingRule,
    SolverOptions,
)
from src.portioning.phase7_search import AttemptState, SolveContext
from src.portioning.phase8_greedy import GREEDY_STRATEGY, best_greedy_move, greedy_moves, run_greedy_attempt


def _make_chicken() -> PortionableItem:
    return PortionableItem(
        id="chicken",
        name="chicken",
        category=FoodCategory.PROTEIN,
        meal_slot=MealSlot.DINNER,
        density=NutrientDensity(165, 31, 0, 3.6),
        min_grams=100,
        max_grams=300,
        step_grams=10,
        rounding_rule=RoundingRule.NEAREST_10G,
    )


def _make_rice() -> PortionableItem:
    return PortionableItem(
        id="rice",
        name="rice",
        category=FoodCategory.CARB,
        meal_slot=MealSlot.DINNER,
        density=NutrientDensity(130, 2.7, 28, 0.3),
        min_grams=80,
        max_grams=250,
        step_grams=10,
        rounding_rule=RoundingRule.NEAREST_10G,
    )


def _make_context(items, target=MacroTarget(430, 50, 38, 5)) -> SolveContext:
    return SolveContext.build(items, target, SolverOptions())


class TestGreedyMoves:
    def test_step_multiples_both_directions(self):
        assert greedy_moves(_make_chicken(), 150) == [160, 140, 170, 130, 200, 100, 250]

    def test_moves_clamped_and_deduplicated_at_bounds(self):
        moves = greedy_moves(_make_chicken(), 300)
        assert 300 not in moves
        assert max(moves) == 290
        assert len(moves) == len(set(moves))


class TestBestGreedyMove:
    def test_picks_lowest_error(self):
        ctx = _make_context([_make_chicken(), _make_rice()])
        item_id, grams, error = best_greedy_move(ctx, {"chicken": 140, "rice": 140})
        assert (item_id, grams) == ("chicken", 150)
        assert error == 18


class TestRunGreedyAttempt:
    def test_reaches_tolerance(self):
        ctx = _make_context([_make_chicken(), _make_rice()])
        outcome = run_greedy_attempt(ctx, {"chicken": 140, "rice": 140}, budget=100)
        assert outcome.strategy == GREEDY_STRATEGY
        assert outcome.state == AttemptState.CONVERGED
        assert outcome.candidates[0].portions == {"chicken": 150, "rice": 140}

    def test_stops_without_improving_move(self):
        ctx = _make_context([_make_rice()], MacroTarget(2000, 150, 200, 67))
        outcome = run_greedy_attempt(ctx, {"rice": 80}, budget=100)
        assert outcome.state == AttemptState.STAGNANT
        assert outcome.best_portions == {"rice": 250}
        assert outcome.iterations < 100

    def test_budget_exhausted(self):
        ctx = _make_context([_make_chicken(), _make_rice()])
        outcome = run_greedy_attempt(ctx, {"chicken": 140, "rice": 140}, budget=1)
        assert outcome.state == AttemptState.BUDGET_EXHAUSTED
        assert outcome.best_portions == {"chicken": 140, "rice": 140}

    def test_debug_trace(self):
        ctx = _make_context([_make_chicken(), _make_rice()])
        outcome = run_greedy_attempt(ctx, {"chicken": 140, "rice": 140}, budget=100, debug=True)
        assert outcome.trace[0].phase == GREEDY_STRATEGY
        assert outcome.trace[0].adjustments == (("chicken", 140, 150),)
