"""Phase 4: Plan scoring and error measures. Lower is better everywhere.

score_plan ranks valid candidates (target distance plus portion naturalness);
net_error drives convergence, stagnation and greedy moves; weighted_delta picks
the least-wrong failed attempt.
"""

from __future__ import annotations

from typing import Dict, Iterable

from src.portioning.phase0_models import (
    MACROS,
    MacroTarget,
    MacroTotals,
    PortionableItem,
    Portions,
    ToleranceWindow,
    target_delta,
)

# Macro weights: macros far above calories (±1g tolerance vs ±50 kcal)
SEARCH_WEIGHTS: Dict[str, float] = {
    "calories": 1.0,
    "protein_g": 10.0,
    "carbs_g": 8.0,
    "fat_g": 10.0,
}

SCORE_WEIGHTS: Dict[str, float] = {
    "calories": 1.0,
    "protein_g": 10.0,
    "carbs_g": 10.0,
    "fat_g": 10.0,
}

# Extra weight on the part of a deviation beyond tolerance
OVER_TOLERANCE_PENALTIES: Dict[str, float] = {
    "calories": 5.0,
    "protein_g": 30.0,
    "carbs_g": 20.0,
    "fat_g": 30.0,
}

UNROUND_PORTION_PENALTY = 0.5
ROUND_PORTION_MULTIPLE = 5
MIDPOINT_DISTANCE_WEIGHT = 0.1


def naturalness_penalty(items: Iterable[PortionableItem], portions: Portions) -> float:
    """Prefer multiples of 5g and portions near the middle of each item's range."""
    penalty = 0.0
    for item in items:
        if not item.is_adjustable:
            continue
        grams = portions.get(item.id, 0)
        if grams % ROUND_PORTION_MULTIPLE != 0:
            penalty += UNROUND_PORTION_PENALTY
        low, high = item.gram_range()
        span = high - low
        if span > 0:
            midpoint = (low + high) / 2
            penalty += abs(grams - midpoint) / span * MIDPOINT_DISTANCE_WEIGHT
    return penalty


def score_plan(
    portions: Portions,
    totals: MacroTotals,
    target: MacroTarget,
    items: Iterable[PortionableItem],
) -> float:
    delta = target_delta(totals, target)
    score = sum(abs(delta.get(m)) * SCORE_WEIGHTS[m] for m in MACROS)
    return score + naturalness_penalty(items, portions)


def net_error(delta: MacroTotals, tolerances: ToleranceWindow) -> float:
    """Symmetric weighted error with extra penalty beyond the tolerance band."""
    error = 0.0
    for macro in MACROS:
        value = delta.get(macro)
        error += abs(value) * SEARCH_WEIGHTS[macro]
        tol = tolerances.get(macro)
        allowed = tol.max if value > 0 else tol.min
        if abs(value) > allowed:
            error += (abs(value) - allowed) * OVER_TOLERANCE_PENALTIES[macro]
    return error


def weighted_delta(delta: MacroTotals) -> float:
    """Weighted deviation magnitude used to rank failed attempts."""
    return sum(abs(delta.get(m)) * SEARCH_WEIGHTS[m] for m in MACROS)
