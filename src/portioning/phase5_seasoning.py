"""Phase 5: Dependent-variable (seasoning) scaling.

Seasoning grams are derived, never searched: a rate per 100g of a paired item,
else per 100g of all protein-category items, else the seeded or fallback amount.
Every derived amount is capped at 15g, including in the post-solve pass.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from src.portioning.phase0_models import (
    SEASONING_MAX_GRAMS,
    FoodCategory,
    PortionableItem,
    Portions,
    clamp_to_constraints,
    round_half_up,
)

# Used when a seasoning has neither a rate nor a seeded amount
DEFAULT_SEASONING_FALLBACK_GRAMS = 5


def protein_basis_grams(items: Iterable[PortionableItem], portions: Portions) -> int:
    return sum(
        portions.get(item.id, item.current_grams)
        for item in items
        if item.category == FoodCategory.PROTEIN
    )


def derive_seasoning_grams(
    item: PortionableItem,
    portions: Portions,
    protein_grams: int,
) -> int:
    """Uncapped grams for one seasoning given the current portions."""
    rate = item.seasoning_rate
    if rate and item.paired_item_id and item.paired_item_id in portions:
        return round_half_up(portions[item.paired_item_id] * rate / 100)
    if rate and protein_grams > 0:
        return round_half_up(protein_grams * rate / 100)
    if item.current_grams > 0:
        return item.current_grams
    return DEFAULT_SEASONING_FALLBACK_GRAMS


def seasoning_cap(item: PortionableItem) -> int:
    return min(item.effective_max_grams, SEASONING_MAX_GRAMS)


def _scale(
    items: Sequence[PortionableItem],
    portions: Portions,
) -> Tuple[Portions, List[str]]:
    scaled = dict(portions)
    capped: List[str] = []
    basis = protein_basis_grams(items, scaled)
    for item in items:
        if not item.is_seasoning:
            continue
        raw = derive_seasoning_grams(item, scaled, basis)
        if raw > seasoning_cap(item):
            capped.append(item.id)
        scaled[item.id] = min(clamp_to_constraints(raw, item), seasoning_cap(item))
    return scaled, capped


def scale_seasonings(items: Sequence[PortionableItem], portions: Portions) -> Portions:
    """New gram map with every seasoning recomputed from the latest portions."""
    scaled, _ = _scale(items, portions)
    return scaled


def normalize_seasoning_portions(
    items: Sequence[PortionableItem],
    portions: Portions,
) -> Tuple[Portions, List[str]]:
    """Post-solve pass: rescale and hard-cap seasonings. Returns (portions, capped ids)."""
    return _scale(items, portions)


def capped_warning(capped_ids: List[str]) -> str:
    return f"Capped {len(capped_ids)} seasoning(s) to max {SEASONING_MAX_GRAMS}g"
