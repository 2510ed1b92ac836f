"""Body-stats target calculator: BMR, TDEE and macro targets from height, weight and activity.

Metric units only (cm, kg). The TDEE it produces feeds the zigzag schedules in
week_schedule; the calories/protein/carbs it produces feed phase1 build_target.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from src.portioning.phase0_models import round_half_up
from src.portioning.phase1_targets import KCAL_PER_G_CARBS, KCAL_PER_G_FAT, KCAL_PER_G_PROTEIN


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    MODERATELY_ACTIVE = "moderately_active"
    VERY_ACTIVE = "very_active"
    EXTREMELY_ACTIVE = "extremely_active"


class BmrFormula(str, Enum):
    MIFFLIN_ST_JEOR = "mifflin_st_jeor"
    HARRIS_BENEDICT = "harris_benedict"
    KATCH_MCARDLE = "katch_mcardle"


class GoalType(str, Enum):
    MAINTAIN = "maintain"
    CUT = "cut"
    BULK = "bulk"


ACTIVITY_MULTIPLIERS: Dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,  # little or no exercise
    ActivityLevel.LIGHTLY_ACTIVE: 1.375,  # 1-3 days/week
    ActivityLevel.MODERATELY_ACTIVE: 1.55,  # 3-5 days/week
    ActivityLevel.VERY_ACTIVE: 1.725,  # 6-7 days/week
    ActivityLevel.EXTREMELY_ACTIVE: 1.9,  # physical job
}

# kcal/day added to TDEE
GOAL_ADJUSTMENTS: Dict[GoalType, int] = {
    GoalType.MAINTAIN: 0,
    GoalType.CUT: -300,
    GoalType.BULK: 200,
}

MACRO_BALANCE_TOLERANCE_KCAL = 5


@dataclass(frozen=True)
class CalculatorInput:
    age: int
    sex: Sex
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel
    formula: BmrFormula = BmrFormula.MIFFLIN_ST_JEOR
    body_fat_percent: Optional[float] = None


@dataclass(frozen=True)
class MacroRules:
    """Grams per kg of bodyweight; carbs take the remaining calories."""

    protein_per_kg: float = 2.2
    fat_per_kg: float = 0.8


DEFAULT_MACRO_RULES = MacroRules()


@dataclass(frozen=True)
class CalculatorOutput:
    bmr: int
    tdee: int
    target_calories: int
    protein_g: int
    fat_g: int
    carbs_g: int


# --- BMR ---


def mifflin_st_jeor_bmr(weight_kg: float, height_cm: float, age: int, sex: Sex) -> float:
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if sex == Sex.MALE else base - 161


def harris_benedict_bmr(weight_kg: float, height_cm: float, age: int, sex: Sex) -> float:
    """Revised Harris-Benedict (1984)."""
    if sex == Sex.MALE:
        return 13.397 * weight_kg + 4.799 * height_cm - 5.677 * age + 88.362
    return 9.247 * weight_kg + 3.098 * height_cm - 4.330 * age + 447.593


def katch_mcardle_bmr(weight_kg: float, body_fat_percent: float) -> float:
    lean_mass_kg = weight_kg * (1 - body_fat_percent / 100)
    return 370 + 21.6 * lean_mass_kg


def calculate_bmr(data: CalculatorInput) -> float:
    """BMR in kcal for the chosen formula.

    Raises:
        ValueError: If Katch-McArdle is chosen without a body fat percentage
    """
    if data.formula == BmrFormula.HARRIS_BENEDICT:
        return harris_benedict_bmr(data.weight_kg, data.height_cm, data.age, data.sex)
    if data.formula == BmrFormula.KATCH_MCARDLE:
        if data.body_fat_percent is None:
            raise ValueError("Katch-McArdle formula requires body fat percentage")
        return katch_mcardle_bmr(data.weight_kg, data.body_fat_percent)
    return mifflin_st_jeor_bmr(data.weight_kg, data.height_cm, data.age, data.sex)


def calculate_tdee(bmr: float, activity_level: ActivityLevel) -> float:
    return bmr * ACTIVITY_MULTIPLIERS[activity_level]


# --- Macros ---


def calculate_macros(
    target_calories: float,
    weight_kg: float,
    rules: MacroRules = DEFAULT_MACRO_RULES,
) -> Dict[str, int]:
    """Protein and fat from bodyweight, carbs from whatever calories remain (never negative)."""
    protein_g = round_half_up(rules.protein_per_kg * weight_kg)
    fat_g = round_half_up(rules.fat_per_kg * weight_kg)
    remaining = max(0, target_calories - protein_g * KCAL_PER_G_PROTEIN - fat_g * KCAL_PER_G_FAT)
    carbs_g = round_half_up(remaining / KCAL_PER_G_CARBS)
    return {"protein_g": protein_g, "fat_g": fat_g, "carbs_g": carbs_g}


def validate_calculator_input(data: CalculatorInput) -> List[str]:
    """Human-readable problems with the input; empty when it is usable."""
    errors = []
    if not data.age or not 15 <= data.age <= 100:
        errors.append("Age must be between 15 and 100")
    if not data.sex:
        errors.append("Sex is required")
    if not data.height_cm or not 100 <= data.height_cm <= 250:
        errors.append("Height must be between 100 and 250 cm")
    if not data.weight_kg or not 30 <= data.weight_kg <= 300:
        errors.append("Weight must be between 30 and 300 kg")
    if data.body_fat_percent is not None and not 3 <= data.body_fat_percent <= 60:
        errors.append("Body fat must be between 3% and 60%")
    if data.formula == BmrFormula.KATCH_MCARDLE and data.body_fat_percent is None:
        errors.append("Katch-McArdle formula requires body fat percentage")
    return errors


def calculate_nutrition_targets(
    data: CalculatorInput,
    goal: GoalType = GoalType.MAINTAIN,
    rules: MacroRules = DEFAULT_MACRO_RULES,
) -> CalculatorOutput:
    """Full calculation: BMR -> TDEE -> goal-adjusted calories -> macros.

    Raises:
        ValueError: If the input fails validate_calculator_input
    """
    errors = validate_calculator_input(data)
    if errors:
        raise ValueError("; ".join(errors))
    bmr = calculate_bmr(data)
    tdee = calculate_tdee(bmr, data.activity_level)
    target_calories = round_half_up(tdee + GOAL_ADJUSTMENTS[goal])
    macros = calculate_macros(target_calories, data.weight_kg, rules)
    return CalculatorOutput(
        bmr=round_half_up(bmr),
        tdee=round_half_up(tdee),
        target_calories=target_calories,
        **macros,
    )


def verify_macro_balance(output: CalculatorOutput, tolerance: float = MACRO_BALANCE_TOLERANCE_KCAL) -> bool:
    """Whether the macros add back up to the target calories within `tolerance` kcal."""
    energy = (
        output.protein_g * KCAL_PER_G_PROTEIN
        + output.carbs_g * KCAL_PER_G_CARBS
        + output.fat_g * KCAL_PER_G_FAT
    )
    return abs(energy - output.target_calories) <= tolerance
