"""Phase 3: Feasibility envelope.

This module answers: "Can the target fall inside the [min, max] totals the items
can achieve at all?" A fast diagnostic run before the search; it never aborts
the solve by itself. No search, no scoring, no state mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from src.portioning.phase0_models import (
    MACROS,
    Blocker,
    MacroTarget,
    MacroTotals,
    PortionableItem,
    ToleranceWindow,
    item_macros,
    target_delta,
)

ENVELOPE_SCOPE = "All items"

# (attribute, label, unit) used in blocker names and details
_MACRO_DISPLAY = {
    "calories": ("calories", " kcal"),
    "protein_g": ("protein", "g"),
    "carbs_g": ("carbs", "g"),
    "fat_g": ("fat", "g"),
}


@dataclass(frozen=True)
class FeasibilityEnvelope:
    """Rounded totals achievable with every item at its low / high extreme."""

    min_totals: MacroTotals
    max_totals: MacroTotals


@dataclass
class FeasibilityVerdict:
    """Target proven unreachable: blockers plus the best the items can do."""

    blockers: List[Blocker] = field(default_factory=list)
    closest_totals: MacroTotals = MacroTotals()
    target_delta: MacroTotals = MacroTotals()


def achievable_gram_interval(item: PortionableItem) -> Tuple[int, int]:
    """LOCKED items are a single point; seasonings span [0, cap]; others their range."""
    if item.is_seasoning:
        return 0, item.effective_max_grams
    if not item.is_adjustable:
        return item.current_grams, item.current_grams
    low, high = item.gram_range()
    return max(0, low), high


def compute_feasibility_envelope(
    items: Iterable[PortionableItem],
    seasonings_count_macros: bool = False,
) -> FeasibilityEnvelope:
    min_totals = MacroTotals()
    max_totals = MacroTotals()
    for item in items:
        if not item.counts(seasonings_count_macros):
            continue
        low, high = achievable_gram_interval(item)
        min_totals = min_totals + item_macros(item, low)
        max_totals = max_totals + item_macros(item, high)
    return FeasibilityEnvelope(min_totals=min_totals.rounded(), max_totals=max_totals.rounded())


def _format_amount(macro: str, value: float) -> str:
    label, unit = _MACRO_DISPLAY[macro]
    if macro == "calories":
        return f"{value:g}{unit}"
    return f"{value:g}{unit} {label}"


def envelope_blockers(
    envelope: FeasibilityEnvelope,
    target: MacroTarget,
    tolerances: ToleranceWindow,
) -> List[Blocker]:
    """One blocker per macro whose target lies outside [min, max + tolerance]."""
    blockers: List[Blocker] = []
    for macro in MACROS:
        label, unit = _MACRO_DISPLAY[macro]
        goal = target.get(macro)
        highest = envelope.max_totals.get(macro)
        lowest = envelope.min_totals.get(macro)
        target_text = f"{goal:g}{unit}"
        if highest < goal:
            blockers.append(
                Blocker(
                    item_name=ENVELOPE_SCOPE,
                    constraint=f"max_achievable_{label}",
                    value=highest,
                    detail=f"Max achievable: {_format_amount(macro, highest)}, target: {target_text}",
                )
            )
        if lowest > goal + tolerances.get(macro).max:
            blockers.append(
                Blocker(
                    item_name=ENVELOPE_SCOPE,
                    constraint=f"min_achievable_{label}",
                    value=lowest,
                    detail=f"Min achievable: {_format_amount(macro, lowest)}, target: {target_text}",
                )
            )
    return blockers


def check_feasibility(
    items: Iterable[PortionableItem],
    target: MacroTarget,
    tolerances: ToleranceWindow,
    seasonings_count_macros: bool = False,
) -> Optional[FeasibilityVerdict]:
    """None when the target is inside the envelope; otherwise an impossible verdict."""
    envelope = compute_feasibility_envelope(items, seasonings_count_macros)
    blockers = envelope_blockers(envelope, target, tolerances)
    if not blockers:
        return None
    return FeasibilityVerdict(
        blockers=blockers,
        closest_totals=envelope.max_totals,
        target_delta=target_delta(envelope.max_totals, target),
    )
