"""Phase 2: Nutrient density validation.

A data-integrity gate run before any solve: an item whose per-100g density is
physically impossible yields blockers and no optimization is attempted.
"""

from __future__ import annotations

import math
from typing import Iterable, List

from src.portioning.phase0_models import Blocker, PortionableItem

MAX_MACRO_G_PER_100G = 100.0
MAX_CALORIES_PER_100G = 900.0
# Labels round each macro independently
MAX_MACRO_SUM_G_PER_100G = 102.0

_MACRO_LABELS = (
    ("protein_g", "protein"),
    ("carbs_g", "carbs"),
    ("fat_g", "fat"),
)


def validate_item_nutrition(item: PortionableItem) -> List[Blocker]:
    """Blockers for every density bound this item violates (empty when valid)."""
    blockers: List[Blocker] = []
    d = item.density

    values = [d.calories, d.protein_g, d.carbs_g, d.fat_g]
    if not all(math.isfinite(v) for v in values):
        return [
            Blocker(
                item_name=item.name,
                constraint="invalid_nutrition",
                value=float("nan"),
                detail=f"{item.name} has non-numeric nutrition values",
            )
        ]

    if not 0 <= d.calories <= MAX_CALORIES_PER_100G:
        blockers.append(
            Blocker(
                item_name=item.name,
                constraint="invalid_calories",
                value=d.calories,
                detail=f"{d.calories:g} kcal per 100g is outside 0-{MAX_CALORIES_PER_100G:g}",
            )
        )
    for attr, label in _MACRO_LABELS:
        value = getattr(d, attr)
        if not 0 <= value <= MAX_MACRO_G_PER_100G:
            blockers.append(
                Blocker(
                    item_name=item.name,
                    constraint=f"invalid_{label}",
                    value=value,
                    detail=f"{value:g}g {label} per 100g is outside 0-{MAX_MACRO_G_PER_100G:g}g",
                )
            )
    macro_sum = d.protein_g + d.carbs_g + d.fat_g
    if macro_sum > MAX_MACRO_SUM_G_PER_100G:
        blockers.append(
            Blocker(
                item_name=item.name,
                constraint="invalid_macro_sum",
                value=macro_sum,
                detail=(
                    f"Protein + carbs + fat is {macro_sum:g}g per 100g "
                    f"(max {MAX_MACRO_SUM_G_PER_100G:g}g)"
                ),
            )
        )
    return blockers


def validate_items(items: Iterable[PortionableItem]) -> List[Blocker]:
    blockers: List[Blocker] = []
    for item in items:
        blockers.extend(validate_item_nutrition(item))
    return blockers
