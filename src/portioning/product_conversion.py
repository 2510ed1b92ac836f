"""Conversion from stored product + meal context + quantity into PortionableItem.

This is where loosely-typed records are normalized: food-type labels map onto
the closed category set, seasonings hiding under "other" are caught by name,
category default ranges fill missing bounds and seasonings are forced into the
only shape PortionableItem accepts for them.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from src.data_layer.models import MealPlanEntry, ProductRecord
from src.portioning.phase0_models import (
    DEFAULT_MAX_GRAMS,
    SEASONING_MAX_GRAMS,
    EditableMode,
    FoodCategory,
    MealSlot,
    NutrientDensity,
    PortionableItem,
    RoundingRule,
)
from src.portioning.phase5_seasoning import DEFAULT_SEASONING_FALLBACK_GRAMS

logger = logging.getLogger(__name__)

# Sanity ceiling for configured maxima
MAX_CONFIGURED_PORTION_GRAMS = 9999

FOOD_TYPE_CATEGORIES: Dict[str, FoodCategory] = {
    "protein": FoodCategory.PROTEIN,
    "carb": FoodCategory.CARB,
    "veg": FoodCategory.VEGETABLE,
    "vegetable": FoodCategory.VEGETABLE,
    "dairy": FoodCategory.DAIRY,
    "fruit": FoodCategory.FRUIT,
    "sauce": FoodCategory.SEASONING,
    "seasoning": FoodCategory.SEASONING,
    "treat": FoodCategory.SNACK,
    "snack": FoodCategory.SNACK,
    "fat": FoodCategory.FAT,
    "premade": FoodCategory.PREMADE,
    "other": FoodCategory.OTHER,
}

SEASONING_NAME_PATTERNS: Tuple[str, ...] = (
    "sauce",
    "seasoning",
    "spice",
    "dressing",
    "mayo",
    "ketchup",
    "mustard",
    "herb",
    "pepper",
    "salt",
    "schwartz",
    "paprika",
    "garlic",
    "cajun",
    "curry",
    "teriyaki",
    "soy",
)

CATEGORY_DEFAULT_RANGES: Dict[FoodCategory, Tuple[int, int]] = {
    FoodCategory.PROTEIN: (100, 300),
    FoodCategory.CARB: (50, 250),
    FoodCategory.DAIRY: (100, 500),
    FoodCategory.FRUIT: (50, 150),
    FoodCategory.VEGETABLE: (50, 200),
    FoodCategory.SEASONING: (0, SEASONING_MAX_GRAMS),
    FoodCategory.SNACK: (20, 80),
    FoodCategory.FAT: (5, 50),
    FoodCategory.PREMADE: (100, 500),
    FoodCategory.OTHER: (10, 300),
}


def is_product_allowed_for_meal(product: ProductRecord, meal_slot: MealSlot) -> bool:
    """An empty eligibility list allows every meal."""
    if not product.meal_eligibility:
        return True
    return meal_slot.value in product.meal_eligibility


def ineligible_products(products: Iterable[ProductRecord], meal_slot: MealSlot) -> List[ProductRecord]:
    return [p for p in products if not is_product_allowed_for_meal(p, meal_slot)]


def looks_like_seasoning(name: str) -> bool:
    lowered = name.lower()
    return any(pattern in lowered for pattern in SEASONING_NAME_PATTERNS)


def category_for(product: ProductRecord) -> FoodCategory:
    """Closed category for a stored food-type label, with a name fallback for "other"."""
    label = (product.food_type or "other").strip().lower()
    category = FOOD_TYPE_CATEGORIES.get(label, FoodCategory.OTHER)
    if category == FoodCategory.OTHER and looks_like_seasoning(product.name):
        logger.debug("Treating '%s' as a seasoning by name", product.name)
        category = FoodCategory.SEASONING
    return category


def _rounding_rule(value: Optional[str], unit_size: Optional[int]) -> RoundingRule:
    if not value:
        return RoundingRule.NEAREST_1G
    rule = RoundingRule(value)
    if rule == RoundingRule.WHOLE_UNIT_ONLY and not unit_size:
        logger.warning("whole_unit_only without a unit size; using nearest_1g")
        return RoundingRule.NEAREST_1G
    return rule


def product_to_item(
    product: ProductRecord,
    meal_slot: MealSlot,
    stored_grams: int = 0,
    paired_item_id: Optional[str] = None,
    item_id: Optional[str] = None,
    locked: bool = False,
) -> PortionableItem:
    """Build the solver's view of one meal-plan row.

    Locked quantity resolution: the stored quantity when positive, otherwise
    the product's fixed portion, otherwise the stored value as-is. Seasonings
    fall back to DEFAULT_SEASONING_FALLBACK_GRAMS and are capped at 15g.
    """
    category = category_for(product)
    density = NutrientDensity(
        calories=product.calories_per_100g,
        protein_g=product.protein_per_100g,
        carbs_g=product.carbs_per_100g,
        fat_g=product.fat_per_100g,
    )
    common = dict(
        id=item_id or product.id,
        name=product.name,
        category=category,
        meal_slot=meal_slot,
        density=density,
        eaten_factor=product.eaten_factor or 1.0,
        paired_item_id=paired_item_id,
    )

    if category == FoodCategory.SEASONING:
        seed = stored_grams or product.fixed_portion_grams or DEFAULT_SEASONING_FALLBACK_GRAMS
        return PortionableItem(
            **common,
            editable_mode=EditableMode.LOCKED,
            min_grams=0,
            max_grams=SEASONING_MAX_GRAMS,
            step_grams=1,
            rounding_rule=RoundingRule.NEAREST_1G,
            seasoning_rate=product.seasoning_rate_per_100g,
            current_grams=min(seed, SEASONING_MAX_GRAMS),
            counts_toward_totals=False,
        )

    default_min, default_max = CATEGORY_DEFAULT_RANGES[category]
    min_grams = product.min_portion_grams if product.min_portion_grams is not None else default_min
    max_grams = product.max_portion_grams if product.max_portion_grams is not None else default_max
    max_grams = min(max_grams, MAX_CONFIGURED_PORTION_GRAMS)
    ceiling = max_grams or DEFAULT_MAX_GRAMS
    if min_grams > ceiling:
        logger.warning(
            "Product '%s' has min %dg above max %dg; using max as min", product.name, min_grams, ceiling
        )
        min_grams = ceiling

    if locked:
        mode = EditableMode.LOCKED
    else:
        mode = EditableMode(product.editable_mode) if product.editable_mode else EditableMode.FREE
    if stored_grams > 0:
        current = stored_grams
    else:
        current = product.fixed_portion_grams or stored_grams

    return PortionableItem(
        **common,
        editable_mode=mode,
        min_grams=min_grams,
        max_grams=max_grams,
        step_grams=product.portion_step_grams or 1,
        rounding_rule=_rounding_rule(product.rounding_rule, product.unit_size_g),
        unit_size_grams=product.unit_size_g,
        current_grams=current,
        counts_toward_totals=not product.ignore_macros,
    )


def eligibility_warning(entry: MealPlanEntry, product: ProductRecord) -> Optional[str]:
    """Message for a row whose product is not allowed at its meal, else None."""
    if is_product_allowed_for_meal(product, MealSlot(entry.meal_type)):
        return None
    allowed = ", ".join(product.meal_eligibility)
    return f"{product.name} is not allowed for {entry.meal_type} (allowed: {allowed})"


def entry_to_item(entry: MealPlanEntry, product: ProductRecord) -> PortionableItem:
    """Solver item for one row. Rows at a meal the product is not eligible for are
    still converted; the mismatch is logged.
    """
    warning = eligibility_warning(entry, product)
    if warning:
        logger.warning(warning)
    return product_to_item(
        product,
        MealSlot(entry.meal_type),
        stored_grams=entry.quantity_grams,
        paired_item_id=entry.paired_item_id,
        item_id=entry.id,
        locked=entry.is_locked,
    )
