"""Phase 9: Meal-level minimum calories.

Rejects day-level valid candidates that leave a breakfast, lunch or dinner with
contributing items but under 100 kcal. Snacks are exempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence

from src.portioning.phase0_models import (
    Blocker,
    MealSlot,
    PortionableItem,
    Portions,
    item_macros,
    round_half_up,
)

MEAL_CALORIE_MINIMUMS: Dict[MealSlot, int] = {
    MealSlot.BREAKFAST: 100,
    MealSlot.LUNCH: 100,
    MealSlot.DINNER: 100,
}


@dataclass(frozen=True)
class MealShortfall:
    meal_slot: MealSlot
    calories: int
    minimum: int

    def to_blocker(self) -> Blocker:
        meal = self.meal_slot.value
        return Blocker(
            item_name=meal,
            constraint="meal_minimum",
            value=self.calories,
            detail=f"{meal} has only {self.calories} kcal (min {self.minimum})",
        )


def meal_calories(
    items: Sequence[PortionableItem],
    portions: Portions,
    seasonings_count_macros: bool = False,
) -> Dict[MealSlot, float]:
    """Calories per meal slot over counted items with nonzero grams."""
    totals: Dict[MealSlot, float] = {}
    for item in items:
        grams = portions.get(item.id, 0)
        if grams <= 0 or not item.counts(seasonings_count_macros):
            continue
        totals[item.meal_slot] = totals.get(item.meal_slot, 0.0) + item_macros(item, grams).calories
    return totals


def validate_meal_minimums(
    items: Sequence[PortionableItem],
    portions: Portions,
    seasonings_count_macros: bool = False,
) -> List[MealShortfall]:
    """Empty when every non-snack meal with contributing items reaches its floor."""
    per_meal = meal_calories(items, portions, seasonings_count_macros)
    shortfalls: List[MealShortfall] = []
    for slot, minimum in MEAL_CALORIE_MINIMUMS.items():
        if slot in per_meal and per_meal[slot] < minimum:
            shortfalls.append(
                MealShortfall(meal_slot=slot, calories=round_half_up(per_meal[slot]), minimum=minimum)
            )
    return shortfalls
