"""Data models for persisted records consumed by the portion solver."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from src.portioning.week_schedule import WeeklyCalorieSchedule


@dataclass
class NutritionSettings:
    """Global nutrition settings. Fat is never stored; it is always derived."""

    daily_calorie_target: Optional[int] = None
    protein_target_grams: Optional[float] = None
    carbs_target_grams: Optional[float] = None
    weekend_targets_enabled: bool = False
    weekend_calorie_target: Optional[int] = None
    weekend_protein_target_grams: Optional[float] = None
    weekend_carbs_target_grams: Optional[float] = None


@dataclass
class WeeklyTargetsOverride:
    """Per-week calorie schedule and macro overrides, keyed by the Monday of the week."""

    week_start_date: date  # Monday
    schedule: WeeklyCalorieSchedule
    protein_target_grams: Optional[float] = None
    carbs_target_grams: Optional[float] = None
    fat_target_grams: Optional[float] = None  # Stored but ignored


@dataclass
class ProductRecord:
    """A product as stored: per-100g nutrition plus loosely-typed portioning config."""

    id: str
    name: str
    calories_per_100g: float
    protein_per_100g: float
    carbs_per_100g: float
    fat_per_100g: float
    food_type: Optional[str] = None
    editable_mode: Optional[str] = None
    min_portion_grams: Optional[int] = None
    max_portion_grams: Optional[int] = None
    portion_step_grams: Optional[int] = None
    rounding_rule: Optional[str] = None
    eaten_factor: Optional[float] = None
    seasoning_rate_per_100g: Optional[float] = None
    unit_size_g: Optional[int] = None
    fixed_portion_grams: Optional[int] = None
    ignore_macros: bool = False
    meal_eligibility: List[str] = field(default_factory=list)  # empty = any meal


@dataclass
class MealPlanEntry:
    """One row of a day's meal plan: product + meal context + stored quantity."""

    id: str
    product_id: str
    meal_type: str  # breakfast, lunch, dinner, snack
    quantity_grams: int = 0
    is_locked: bool = False
    paired_item_id: Optional[str] = None


@dataclass
class MealPlanDay:
    plan_date: Optional[date]
    entries: List[MealPlanEntry] = field(default_factory=list)
