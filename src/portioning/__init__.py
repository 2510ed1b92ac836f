"""Portioning module: constraint-based gram optimization for meal plan items."""

from .phase0_models import (
    EditableMode,
    FailureReason,
    FoodCategory,
    MacroTarget,
    MealSlot,
    NutrientDensity,
    PortionableItem,
    RoundingRule,
    SolveFailure,
    SolverOptions,
    SolveSuccess,
    ToleranceWindow,
)
from .solver import solve

__all__ = [
    "EditableMode",
    "FailureReason",
    "FoodCategory",
    "MacroTarget",
    "MealSlot",
    "NutrientDensity",
    "PortionableItem",
    "RoundingRule",
    "SolveFailure",
    "SolverOptions",
    "SolveSuccess",
    "ToleranceWindow",
    "solve",
]
