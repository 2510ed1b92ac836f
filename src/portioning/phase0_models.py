"""Phase 0: Items, targets, options and result structures for the portion solver.

Data structures, construction-time validation and the small numeric helpers
every later phase shares (rounding, clamping, macro arithmetic).
No search, feasibility, or scoring logic.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union


MACROS: Tuple[str, ...] = ("calories", "protein_g", "carbs_g", "fat_g")

# maxGrams == 0 means "unbounded" up to this ceiling
DEFAULT_MAX_GRAMS = 500
SEASONING_MAX_GRAMS = 15


# --- Closed sets ---


class FoodCategory(str, Enum):
    PROTEIN = "protein"
    CARB = "carb"
    VEGETABLE = "vegetable"
    DAIRY = "dairy"
    FRUIT = "fruit"
    SNACK = "snack"
    SEASONING = "seasoning"
    PREMADE = "premade"
    FAT = "fat"
    OTHER = "other"


class MealSlot(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class EditableMode(str, Enum):
    LOCKED = "LOCKED"
    BOUNDED = "BOUNDED"
    FREE = "FREE"


class RoundingRule(str, Enum):
    NEAREST_1G = "nearest_1g"
    NEAREST_5G = "nearest_5g"
    NEAREST_10G = "nearest_10g"
    WHOLE_UNIT_ONLY = "whole_unit_only"


class FailureReason(str, Enum):
    INVALID_PRODUCT_NUTRITION = "invalid_product_nutrition"
    NO_ADJUSTABLE_ITEMS = "no_adjustable_items"
    IMPOSSIBLE_TARGETS = "impossible_targets"
    STAGNATION = "stagnation"
    MAX_ITERATIONS_EXCEEDED = "max_iterations_exceeded"


_RULE_GRANULARITY = {
    RoundingRule.NEAREST_1G: 1,
    RoundingRule.NEAREST_5G: 5,
    RoundingRule.NEAREST_10G: 10,
}


# --- Numeric helpers ---


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 always going up (no banker's rounding)."""
    return int(math.floor(value + 0.5))


def apply_rounding_rule(
    grams: float,
    rule: RoundingRule,
    unit_size_grams: Optional[int] = None,
) -> int:
    """Round grams to the granularity a rounding rule allows."""
    granularity = rule_granularity(rule, unit_size_grams)
    return round_half_up(grams / granularity) * granularity


def rule_granularity(rule: RoundingRule, unit_size_grams: Optional[int] = None) -> int:
    if rule == RoundingRule.WHOLE_UNIT_ONLY:
        return unit_size_grams if unit_size_grams else 1
    return _RULE_GRANULARITY[rule]


# --- Macro arithmetic ---


@dataclass(frozen=True)
class NutrientDensity:
    """Macro composition per 100g. Not validated here: see phase2_validation."""

    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float


@dataclass(frozen=True)
class MacroTotals:
    """Summed calories and macros for a set of portions."""

    calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0

    def __add__(self, other: MacroTotals) -> MacroTotals:
        return MacroTotals(
            calories=self.calories + other.calories,
            protein_g=self.protein_g + other.protein_g,
            carbs_g=self.carbs_g + other.carbs_g,
            fat_g=self.fat_g + other.fat_g,
        )

    def get(self, macro: str) -> float:
        return getattr(self, macro)

    def rounded(self) -> MacroTotals:
        return MacroTotals(
            calories=round_half_up(self.calories),
            protein_g=round_half_up(self.protein_g),
            carbs_g=round_half_up(self.carbs_g),
            fat_g=round_half_up(self.fat_g),
        )

    def to_dict(self) -> Dict[str, float]:
        return {m: self.get(m) for m in MACROS}


@dataclass(frozen=True)
class MacroTarget:
    """Daily (or per-call) macro target; every component must be >= 0."""

    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float

    def __post_init__(self) -> None:
        for macro in MACROS:
            value = getattr(self, macro)
            if value < 0:
                raise ValueError(f"Target {macro} must be >= 0; got {value}")

    def get(self, macro: str) -> float:
        return getattr(self, macro)

    def to_dict(self) -> Dict[str, float]:
        return {m: self.get(m) for m in MACROS}


@dataclass(frozen=True)
class MacroTolerance:
    """Allowed deviation below (min) and above (max) a target value."""

    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min < 0 or self.max < 0:
            raise ValueError(
                f"Tolerance bounds must be >= 0; got min={self.min}, max={self.max}"
            )


@dataclass(frozen=True)
class ToleranceWindow:
    calories: MacroTolerance = MacroTolerance(50, 50)
    protein_g: MacroTolerance = MacroTolerance(1, 1)
    carbs_g: MacroTolerance = MacroTolerance(1, 1)
    fat_g: MacroTolerance = MacroTolerance(1, 1)

    @classmethod
    def symmetric(
        cls,
        calories: float = 50,
        protein_g: float = 1,
        carbs_g: float = 1,
        fat_g: float = 1,
    ) -> ToleranceWindow:
        return cls(
            calories=MacroTolerance(calories, calories),
            protein_g=MacroTolerance(protein_g, protein_g),
            carbs_g=MacroTolerance(carbs_g, carbs_g),
            fat_g=MacroTolerance(fat_g, fat_g),
        )

    def get(self, macro: str) -> MacroTolerance:
        return getattr(self, macro)


DEFAULT_TOLERANCES = ToleranceWindow()


@dataclass(frozen=True)
class SolverOptions:
    max_iterations: int = 1500
    tolerances: ToleranceWindow = DEFAULT_TOLERANCES
    seasonings_count_macros: bool = False
    debug_mode: bool = False

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise ValueError(
                f"max_iterations must be positive; got {self.max_iterations}"
            )


# --- Items ---


@dataclass(frozen=True)
class PortionableItem:
    """One optimizable (or fixed) ingredient instance within a single solve call.

    Seasonings must be LOCKED with min 0 and max <= 15g; any other combination
    raises. Use product_conversion to build items from loosely-typed records.
    """

    id: str
    name: str
    category: FoodCategory
    meal_slot: MealSlot
    density: NutrientDensity
    editable_mode: EditableMode = EditableMode.FREE
    min_grams: int = 0
    max_grams: int = 0  # 0 = unbounded up to DEFAULT_MAX_GRAMS
    step_grams: int = 1
    rounding_rule: RoundingRule = RoundingRule.NEAREST_1G
    unit_size_grams: Optional[int] = None
    eaten_factor: float = 1.0
    seasoning_rate: Optional[float] = None  # grams per 100g of the paired item
    paired_item_id: Optional[str] = None
    current_grams: int = 0
    counts_toward_totals: bool = True

    def __post_init__(self) -> None:
        if self.min_grams < 0 or self.max_grams < 0:
            raise ValueError(
                f"Item '{self.id}': gram bounds must be >= 0; "
                f"got min={self.min_grams}, max={self.max_grams}"
            )
        if self.min_grams > self.effective_max_grams:
            raise ValueError(
                f"Item '{self.id}': min_grams {self.min_grams} exceeds max_grams {self.effective_max_grams}"
            )
        if self.step_grams < 1:
            raise ValueError(f"Item '{self.id}': step_grams must be >= 1; got {self.step_grams}")
        if not 0 < self.eaten_factor <= 1:
            raise ValueError(
                f"Item '{self.id}': eaten_factor must be in (0, 1]; got {self.eaten_factor}"
            )
        if self.current_grams < 0:
            raise ValueError(
                f"Item '{self.id}': current_grams must be >= 0; got {self.current_grams}"
            )
        if self.rounding_rule == RoundingRule.WHOLE_UNIT_ONLY and not (
            self.unit_size_grams and self.unit_size_grams > 0
        ):
            raise ValueError(
                f"Item '{self.id}': whole_unit_only rounding needs a positive unit_size_grams"
            )
        if self.seasoning_rate is not None and self.seasoning_rate < 0:
            raise ValueError(
                f"Item '{self.id}': seasoning_rate must be >= 0; got {self.seasoning_rate}"
            )
        if self.category == FoodCategory.SEASONING:
            if self.editable_mode != EditableMode.LOCKED:
                raise ValueError(f"Seasoning '{self.id}' must be LOCKED")
            if self.min_grams != 0 or self.max_grams > SEASONING_MAX_GRAMS:
                raise ValueError(
                    f"Seasoning '{self.id}' must have min 0 and max <= {SEASONING_MAX_GRAMS}g; "
                    f"got min={self.min_grams}, max={self.max_grams}"
                )

    @property
    def is_seasoning(self) -> bool:
        return self.category == FoodCategory.SEASONING

    @property
    def is_adjustable(self) -> bool:
        return self.editable_mode != EditableMode.LOCKED and not self.is_seasoning

    @property
    def effective_max_grams(self) -> int:
        if self.is_seasoning:
            return min(self.max_grams or SEASONING_MAX_GRAMS, SEASONING_MAX_GRAMS)
        return self.max_grams if self.max_grams > 0 else DEFAULT_MAX_GRAMS

    @property
    def granularity(self) -> int:
        return rule_granularity(self.rounding_rule, self.unit_size_grams)

    def gram_range(self) -> Tuple[int, int]:
        return self.min_grams, self.effective_max_grams

    def midpoint_grams(self) -> int:
        low, high = self.gram_range()
        return clamp_to_constraints((low + high) / 2, self)

    def counts(self, seasonings_count_macros: bool = False) -> bool:
        """Whether this item's nutrients are summed into achieved totals."""
        if self.counts_toward_totals:
            return True
        return self.is_seasoning and seasonings_count_macros


def clamp_to_constraints(grams: float, item: PortionableItem) -> int:
    """Clamp to range, snap to step, apply the rounding rule, then re-clamp.

    The re-clamp moves by whole granules so the result stays consistent with
    the rounding rule whenever any multiple fits in the range.
    """
    low, high = item.gram_range()
    value = min(max(grams, low), high)
    if item.step_grams > 1:
        value = round_half_up(value / item.step_grams) * item.step_grams
    value = apply_rounding_rule(value, item.rounding_rule, item.unit_size_grams)
    granule = item.granularity
    if value > high:
        value -= granule * math.ceil((value - high) / granule)
    if value < low:
        value += granule * math.ceil((low - value) / granule)
        if value > high:
            value = low
    return max(0, int(value))


def item_macros(item: PortionableItem, grams: float) -> MacroTotals:
    factor = grams * item.eaten_factor / 100
    d = item.density
    return MacroTotals(
        calories=d.calories * factor,
        protein_g=d.protein_g * factor,
        carbs_g=d.carbs_g * factor,
        fat_g=d.fat_g * factor,
    )


def per_gram_density(item: PortionableItem) -> Dict[str, float]:
    """Macro contribution of one extra gram, eaten factor included."""
    return {m: getattr(item.density, m) * item.eaten_factor / 100 for m in MACROS}


Portions = Dict[str, int]


def sum_macros(
    items: Iterable[PortionableItem],
    portions: Portions,
    seasonings_count_macros: bool = False,
) -> MacroTotals:
    total = MacroTotals()
    for item in items:
        if not item.counts(seasonings_count_macros):
            continue
        total = total + item_macros(item, portions.get(item.id, 0))
    return total


def target_delta(totals: MacroTotals, target: MacroTarget) -> MacroTotals:
    """Rounded achieved minus target, per macro."""
    r = totals.rounded()
    return MacroTotals(
        calories=r.calories - target.calories,
        protein_g=r.protein_g - target.protein_g,
        carbs_g=r.carbs_g - target.carbs_g,
        fat_g=r.fat_g - target.fat_g,
    )


def is_within_tolerance(
    totals: MacroTotals,
    target: MacroTarget,
    tolerances: ToleranceWindow = DEFAULT_TOLERANCES,
) -> bool:
    r = totals.rounded()
    for macro in MACROS:
        tol = tolerances.get(macro)
        t = target.get(macro)
        if not t - tol.min <= r.get(macro) <= t + tol.max:
            return False
    return True


def apply_portions(items: Iterable[PortionableItem], portions: Portions) -> List[PortionableItem]:
    """New items with current_grams set from a solved gram map."""
    return [
        replace(item, current_grams=portions[item.id]) if item.id in portions else item
        for item in items
    ]


# --- Result types ---


@dataclass(frozen=True)
class Blocker:
    """Why a target cannot be met: item (or scope), constraint, value, human detail."""

    item_name: str
    constraint: str
    value: float
    detail: str


@dataclass(frozen=True)
class DebugEntry:
    strategy: str
    iteration: int
    phase: str  # "gradient", "fine_tune", "greedy"
    totals: MacroTotals
    delta: MacroTotals
    adjustments: Tuple[Tuple[str, int, int], ...] = ()  # (item_id, from, to)


@dataclass
class SolveSuccess:
    portions: Portions
    totals: MacroTotals
    score: float
    iterations: int
    warnings: List[str] = field(default_factory=list)
    debug_trace: List[DebugEntry] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return True


@dataclass
class SolveFailure:
    reason: FailureReason
    blockers: List[Blocker]
    closest_totals: MacroTotals
    target_delta: MacroTotals
    best_effort_portions: Portions
    iterations: int = 0
    warnings: List[str] = field(default_factory=list)
    debug_trace: List[DebugEntry] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return False


SolveResult = Union[SolveSuccess, SolveFailure]
