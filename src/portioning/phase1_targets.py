"""Phase 1: Nutrient target resolution.

Resolves the authoritative daily MacroTarget for a date from global settings and
an optional weekly override. Fat is never read from storage: it is always derived
from the calories left after protein and carbohydrates, floored at 30g.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional, Tuple

from src.data_layer.models import NutritionSettings, WeeklyTargetsOverride
from src.portioning.phase0_models import MacroTarget, round_half_up
from src.portioning.week_schedule import is_weekend, week_start_monday

logger = logging.getLogger(__name__)

DEFAULT_CALORIES = 2000
DEFAULT_PROTEIN_G = 150
DEFAULT_CARBS_G = 200

FAT_FLOOR_G = 30
KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARBS = 4
KCAL_PER_G_FAT = 9

# protein*4 + carbs*4 + fat*9 must land within this many kcal of calories
ENERGY_BALANCE_SLACK_KCAL = 8

MIN_PLANNABLE_CALORIES = FAT_FLOOR_G * KCAL_PER_G_FAT


def derive_fat(calories: float, protein_g: float, carbs_g: float) -> int:
    """Fat grams from the calories remaining after protein and carbs (floor 30g).

    >>> derive_fat(2000, 150, 200)
    67
    >>> derive_fat(1500, 200, 200)
    30
    """
    remaining = calories - protein_g * KCAL_PER_G_PROTEIN - carbs_g * KCAL_PER_G_CARBS
    fat = max(0, round_half_up(remaining / KCAL_PER_G_FAT))
    return max(FAT_FLOOR_G, fat)


def energy_of(protein_g: float, carbs_g: float, fat_g: float) -> float:
    return (
        protein_g * KCAL_PER_G_PROTEIN
        + carbs_g * KCAL_PER_G_CARBS
        + fat_g * KCAL_PER_G_FAT
    )


def build_target(calories: float, protein_g: float, carbs_g: float) -> MacroTarget:
    """MacroTarget with derived fat and a balanced energy equation.

    When the fat floor binds, carbs are lowered (then protein, once carbs reach
    zero) so that protein*4 + carbs*4 + fat*9 stays within 8 kcal of calories.

    Raises:
        ValueError: If calories cannot even cover the fat floor.
    """
    if calories < MIN_PLANNABLE_CALORIES:
        raise ValueError(
            f"Calorie target {calories} is below the plannable minimum of "
            f"{MIN_PLANNABLE_CALORIES} kcal"
        )
    fat_g = derive_fat(calories, protein_g, carbs_g)
    if energy_of(protein_g, carbs_g, fat_g) - calories > ENERGY_BALANCE_SLACK_KCAL:
        budget = calories - fat_g * KCAL_PER_G_FAT
        reconciled_carbs = max(0, round_half_up((budget - protein_g * KCAL_PER_G_PROTEIN) / KCAL_PER_G_CARBS))
        reconciled_protein = protein_g
        if reconciled_carbs == 0:
            reconciled_protein = min(protein_g, round_half_up(budget / KCAL_PER_G_PROTEIN))
        logger.warning(
            "Fat floor of %dg binds at %s kcal; carbs %s -> %s, protein %s -> %s",
            FAT_FLOOR_G, calories, carbs_g, reconciled_carbs, protein_g, reconciled_protein,
        )
        protein_g, carbs_g = reconciled_protein, reconciled_carbs
    return MacroTarget(calories=calories, protein_g=protein_g, carbs_g=carbs_g, fat_g=fat_g)


def _first_set(*values: Optional[float]) -> float:
    for value in values:
        if value is not None:
            return value
    raise ValueError("No value and no default supplied")


def _override_for(
    day: date,
    overrides: Iterable[WeeklyTargetsOverride],
) -> Optional[WeeklyTargetsOverride]:
    monday = week_start_monday(day)
    for override in overrides:
        if override.week_start_date == monday:
            return override
    return None


def resolve_calories_protein_carbs(
    day: date,
    settings: Optional[NutritionSettings],
    override: Optional[WeeklyTargetsOverride] = None,
) -> Tuple[float, float, float]:
    """(calories, protein, carbs) by priority: weekly override, weekday/weekend setting, default."""
    if settings is None:
        return DEFAULT_CALORIES, DEFAULT_PROTEIN_G, DEFAULT_CARBS_G

    if override is not None and override.week_start_date == week_start_monday(day):
        calories = override.schedule.calories_for(day)
        protein = _first_set(override.protein_target_grams, settings.protein_target_grams, DEFAULT_PROTEIN_G)
        carbs = _first_set(override.carbs_target_grams, settings.carbs_target_grams, DEFAULT_CARBS_G)
        return calories, protein, carbs

    if is_weekend(day) and settings.weekend_targets_enabled:
        calories = _first_set(settings.weekend_calorie_target, settings.daily_calorie_target, DEFAULT_CALORIES)
        protein = _first_set(
            settings.weekend_protein_target_grams, settings.protein_target_grams, DEFAULT_PROTEIN_G
        )
        carbs = _first_set(settings.weekend_carbs_target_grams, settings.carbs_target_grams, DEFAULT_CARBS_G)
        return calories, protein, carbs

    calories = _first_set(settings.daily_calorie_target, DEFAULT_CALORIES)
    protein = _first_set(settings.protein_target_grams, DEFAULT_PROTEIN_G)
    carbs = _first_set(settings.carbs_target_grams, DEFAULT_CARBS_G)
    return calories, protein, carbs


def resolve_daily_targets(
    day: date,
    settings: Optional[NutritionSettings],
    overrides: Iterable[WeeklyTargetsOverride] = (),
) -> MacroTarget:
    """The authoritative MacroTarget for `day`. A stored override fat value is ignored."""
    override = _override_for(day, overrides)
    calories, protein, carbs = resolve_calories_protein_carbs(day, settings, override)
    target = build_target(calories, protein, carbs)
    logger.debug(
        "Targets for %s: %s kcal, %sg protein, %sg carbs, %sg fat (override=%s)",
        day.isoformat(), target.calories, target.protein_g, target.carbs_g, target.fat_g,
        override is not None,
    )
    return target
