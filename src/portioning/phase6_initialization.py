"""Phase 6: Deterministic initialization strategies for the multi-start search.

Each strategy builds a fresh gram map; LOCKED items always start (and stay) at
their current grams and seasonings are derived from the result.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from src.portioning.phase0_models import (
    MacroTarget,
    PortionableItem,
    Portions,
    clamp_to_constraints,
    per_gram_density,
    sum_macros,
)
from src.portioning.phase5_seasoning import scale_seasonings


class InitStrategy(str, Enum):
    MACRO_BALANCE = "macro_balance"
    MIDPOINT = "midpoint"
    CURRENT = "current"


# Order and share of the iteration budget; the greedy fallback gets what is left
STRATEGY_BUDGET_SHARES: Tuple[Tuple[InitStrategy, float], ...] = (
    (InitStrategy.MACRO_BALANCE, 0.45),
    (InitStrategy.MIDPOINT, 0.20),
    (InitStrategy.CURRENT, 0.20),
)

# Classification candidates, in tie-break order
_BALANCE_MACROS = ("protein_g", "carbs_g", "fat_g")


def dominant_macro(item: PortionableItem, target: MacroTarget) -> Optional[str]:
    """Macro whose density is largest relative to its target; None if nothing dominates."""
    best: Optional[str] = None
    best_ratio = 0.0
    for macro in _BALANCE_MACROS:
        goal = target.get(macro)
        if goal <= 0:
            continue
        ratio = getattr(item.density, macro) / goal
        if ratio > best_ratio:
            best, best_ratio = macro, ratio
    return best


def _base_portions(items: Sequence[PortionableItem], from_current: bool) -> Portions:
    portions: Portions = {}
    for item in items:
        if not item.is_adjustable:
            portions[item.id] = item.current_grams
        elif from_current:
            portions[item.id] = clamp_to_constraints(item.current_grams, item)
        else:
            portions[item.id] = item.midpoint_grams()
    return portions


def _macro_balance(
    items: Sequence[PortionableItem],
    target: MacroTarget,
    portions: Portions,
    seasonings_count_macros: bool,
) -> Portions:
    """Size each macro group so it covers that macro's remaining target.

    Within a group, grams are proportional to each item's density for the
    group's macro, scaled so the group's summed contribution hits the remainder
    left after locked and seasoning contributions.
    """
    balanced = dict(portions)
    fixed_items = [item for item in items if not item.is_adjustable]
    fixed = sum_macros(fixed_items, balanced, seasonings_count_macros)

    groups: Dict[str, List[PortionableItem]] = {}
    for item in items:
        if not item.is_adjustable or not item.counts(seasonings_count_macros):
            continue
        macro = dominant_macro(item, target)
        if macro is None:
            continue  # keeps its midpoint
        groups.setdefault(macro, []).append(item)

    for macro, members in groups.items():
        remaining = max(0.0, target.get(macro) - fixed.get(macro))
        densities = [per_gram_density(item)[macro] for item in members]
        denominator = sum(d * d for d in densities)
        if denominator <= 0:
            continue
        scale = remaining / denominator
        for item, density in zip(members, densities):
            balanced[item.id] = clamp_to_constraints(scale * density, item)
    return balanced


def initial_portions(
    items: Sequence[PortionableItem],
    target: MacroTarget,
    strategy: InitStrategy,
    seasonings_count_macros: bool = False,
) -> Portions:
    """Fresh working gram map for one attempt."""
    portions = _base_portions(items, from_current=strategy == InitStrategy.CURRENT)
    portions = scale_seasonings(items, portions)
    if strategy == InitStrategy.MACRO_BALANCE:
        portions = _macro_balance(items, target, portions, seasonings_count_macros)
        portions = scale_seasonings(items, portions)
    return portions
