"""Phase 10: Result assembly and blocker reporting.

Builds SolveSuccess / SolveFailure values, attaches diagnostic blockers and
guarantees that a failure always carries a usable best-effort allocation.
Reporting only. No search, scoring, or constraint changes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from src.portioning.phase0_models import (
    MACROS,
    Blocker,
    DebugEntry,
    FailureReason,
    MacroTarget,
    MacroTotals,
    PortionableItem,
    Portions,
    SolveFailure,
    SolveResult,
    SolveSuccess,
    item_macros,
    round_half_up,
    sum_macros,
    target_delta,
)
from src.portioning.phase5_seasoning import scale_seasonings

# A LOCKED item is reported once it covers this share of a macro target
LOCKED_SHARE_THRESHOLD = 0.30

_MACRO_LABELS = {
    "calories": "kcal",
    "protein_g": "protein",
    "carbs_g": "carbs",
    "fat_g": "fat",
}


# --- Blockers ---


def primary_nutrient(item: PortionableItem) -> str:
    """Label of the macro the item supplies most of per gram."""
    d = item.density
    best = max(("protein_g", "carbs_g", "fat_g"), key=lambda m: getattr(d, m))
    if getattr(d, best) <= 0:
        return "calories"
    return _MACRO_LABELS[best]


def locked_contribution_blockers(
    items: Sequence[PortionableItem],
    portions: Portions,
    target: MacroTarget,
) -> List[Blocker]:
    blockers: List[Blocker] = []
    for item in items:
        if item.is_adjustable or item.is_seasoning:
            continue
        contribution = item_macros(item, portions.get(item.id, 0))
        for macro in MACROS:
            goal = target.get(macro)
            amount = contribution.get(macro)
            if goal <= 0 or amount <= goal * LOCKED_SHARE_THRESHOLD:
                continue
            share = round_half_up(amount / goal * 100)
            if macro == "calories":
                text = f"{round_half_up(amount)} kcal"
            else:
                text = f"{round_half_up(amount)}g {_MACRO_LABELS[macro]}"
            blockers.append(
                Blocker(
                    item_name=item.name,
                    constraint="LOCKED",
                    value=amount,
                    detail=f"Contributes {text} ({share}% of target)",
                )
            )
    return blockers


def limit_blockers(items: Sequence[PortionableItem], portions: Portions) -> List[Blocker]:
    """Adjustable items pinned at the edge of their allowed range."""
    blockers: List[Blocker] = []
    for item in items:
        if not item.is_adjustable:
            continue
        grams = portions.get(item.id, 0)
        low, high = item.gram_range()
        nutrient = primary_nutrient(item)
        if grams >= high:
            blockers.append(
                Blocker(
                    item_name=item.name,
                    constraint="max_portion",
                    value=high,
                    detail=f"{item.name} at maximum {high}g, cannot add more {nutrient}",
                )
            )
        elif low > 0 and grams <= low:
            blockers.append(
                Blocker(
                    item_name=item.name,
                    constraint="min_portion",
                    value=low,
                    detail=f"{item.name} at minimum {low}g, cannot reduce {nutrient} further",
                )
            )
    return blockers


def collect_blockers(
    items: Sequence[PortionableItem],
    portions: Portions,
    target: MacroTarget,
) -> List[Blocker]:
    return locked_contribution_blockers(items, portions, target) + limit_blockers(items, portions)


# --- Best-effort portions ---


def ensure_non_degenerate(items: Sequence[PortionableItem], portions: Portions) -> Portions:
    """Replace an all-zero adjustable allocation with range midpoints.

    Seasonings are rescaled from the repaired map.
    """
    adjustable = [item for item in items if item.is_adjustable]
    if not adjustable or any(portions.get(item.id, 0) > 0 for item in adjustable):
        return portions
    repaired = dict(portions)
    for item in adjustable:
        repaired[item.id] = item.midpoint_grams()
    return scale_seasonings(items, repaired)


# --- Result builders ---


def build_success(
    portions: Portions,
    totals: MacroTotals,
    score: float,
    iterations: int,
    warnings: Optional[List[str]] = None,
    debug_trace: Optional[List[DebugEntry]] = None,
) -> SolveSuccess:
    return SolveSuccess(
        portions=dict(portions),
        totals=totals.rounded(),
        score=score,
        iterations=iterations,
        warnings=list(warnings or []),
        debug_trace=list(debug_trace or []),
    )


def build_failure(
    items: Sequence[PortionableItem],
    target: MacroTarget,
    reason: FailureReason,
    blockers: List[Blocker],
    portions: Portions,
    iterations: int,
    seasonings_count_macros: bool = False,
    warnings: Optional[List[str]] = None,
    debug_trace: Optional[List[DebugEntry]] = None,
) -> SolveFailure:
    """Failure carrying the best-effort portions and the totals they achieve."""
    best_effort = ensure_non_degenerate(items, portions)
    totals = sum_macros(items, best_effort, seasonings_count_macros)
    return SolveFailure(
        reason=reason,
        blockers=list(blockers),
        closest_totals=totals.rounded(),
        target_delta=target_delta(totals, target),
        best_effort_portions=dict(best_effort),
        iterations=iterations,
        warnings=list(warnings or []),
        debug_trace=list(debug_trace or []),
    )


# --- Serializable snapshots ---


def totals_to_dict(totals: MacroTotals) -> Dict[str, float]:
    return {
        "calories": totals.calories,
        "protein": totals.protein_g,
        "carbs": totals.carbs_g,
        "fat": totals.fat_g,
    }


def blocker_to_dict(blocker: Blocker) -> Dict[str, Any]:
    return {
        "item_name": blocker.item_name,
        "constraint": blocker.constraint,
        "value": blocker.value,
        "detail": blocker.detail,
    }


def debug_entry_to_dict(entry: DebugEntry) -> Dict[str, Any]:
    return {
        "strategy": entry.strategy,
        "iteration": entry.iteration,
        "phase": entry.phase,
        "totals": totals_to_dict(entry.totals),
        "delta": totals_to_dict(entry.delta),
        "adjustments": [
            {"item_id": item_id, "from": old, "to": new} for item_id, old, new in entry.adjustments
        ],
    }


def result_to_dict(result: SolveResult) -> Dict[str, Any]:
    """JSON-serializable result for both outcomes."""
    if isinstance(result, SolveSuccess):
        out: Dict[str, Any] = {
            "success": True,
            "portions": dict(result.portions),
            "totals": totals_to_dict(result.totals),
            "score": round(result.score, 3),
            "iterations": result.iterations,
        }
    else:
        out = {
            "success": False,
            "reason": result.reason.value,
            "blockers": [blocker_to_dict(b) for b in result.blockers],
            "closest_totals": totals_to_dict(result.closest_totals),
            "target_delta": totals_to_dict(result.target_delta),
            "best_effort_portions": dict(result.best_effort_portions),
            "iterations": result.iterations,
        }
    out["warnings"] = list(result.warnings)
    if result.debug_trace:
        out["debug_trace"] = [debug_entry_to_dict(e) for e in result.debug_trace]
    return out
