"""Phase 7: Gradient coordinate-descent attempt with discrete fine tuning.

One attempt is a small state machine:

    SEARCHING -> CONVERGED | STAGNANT | BUDGET_EXHAUSTED

Each SEARCHING step evaluates the current gram map, records it if it is within
tolerance, then applies a Gauss-Seidel gradient sweep over the adjustable items.
A sweep that changes nothing hands over to fine tuning; if that also changes
nothing the attempt stops. gradient_sweep and fine_tune are pure functions over
(context, portions) and never mutate their inputs.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from src.portioning.phase0_models import (
    MACROS,
    DebugEntry,
    MacroTarget,
    MacroTotals,
    PortionableItem,
    Portions,
    SolverOptions,
    ToleranceWindow,
    clamp_to_constraints,
    is_within_tolerance,
    per_gram_density,
    sum_macros,
    target_delta,
)
from src.portioning.phase4_scoring import SEARCH_WEIGHTS, net_error, score_plan
from src.portioning.phase5_seasoning import scale_seasonings

logger = logging.getLogger(__name__)

# Keep iterating a little past the first valid candidate
SUCCESS_CANDIDATE_QUOTA = 5
CONVERGENCE_ERROR = 0.1
STAGNATION_PATIENCE = 50
FINE_TUNE_MAX_PASSES = 5
IMPROVEMENT_EPSILON = 1e-3

Adjustment = Tuple[str, int, int]  # (item_id, from, to)


class AttemptState(str, Enum):
    SEARCHING = "searching"
    CONVERGED = "converged"
    STAGNANT = "stagnant"
    BUDGET_EXHAUSTED = "budget_exhausted"


@dataclass(frozen=True)
class SolveContext:
    """Read-only inputs shared by every attempt of one solve call."""

    items: Tuple[PortionableItem, ...]
    target: MacroTarget
    tolerances: ToleranceWindow
    seasonings_count_macros: bool = False

    @classmethod
    def build(
        cls,
        items: Sequence[PortionableItem],
        target: MacroTarget,
        options: SolverOptions,
    ) -> SolveContext:
        return cls(
            items=tuple(items),
            target=target,
            tolerances=options.tolerances,
            seasonings_count_macros=options.seasonings_count_macros,
        )

    @property
    def adjustable(self) -> Tuple[PortionableItem, ...]:
        return tuple(item for item in self.items if item.is_adjustable)

    def totals(self, portions: Portions) -> MacroTotals:
        return sum_macros(self.items, portions, self.seasonings_count_macros)

    def rescale(self, portions: Portions) -> Portions:
        return scale_seasonings(self.items, portions)

    def delta(self, portions: Portions) -> MacroTotals:
        return target_delta(self.totals(portions), self.target)

    def error(self, portions: Portions) -> float:
        return net_error(self.delta(portions), self.tolerances)

    def score(self, portions: Portions) -> float:
        return score_plan(portions, self.totals(portions), self.target, self.items)

    def within_tolerance(self, portions: Portions) -> bool:
        return is_within_tolerance(self.totals(portions), self.target, self.tolerances)


@dataclass(frozen=True)
class Candidate:
    """A gram map whose rounded totals are within tolerance."""

    portions: Portions
    totals: MacroTotals  # rounded
    score: float


@dataclass
class AttemptProgress:
    """Mutable state of one attempt. Owned by that attempt only."""

    strategy: str
    portions: Portions
    state: AttemptState = AttemptState.SEARCHING
    iteration: int = 0
    best_error: float = math.inf
    best_portions: Optional[Portions] = None
    since_improvement: int = 0
    candidates: List[Candidate] = field(default_factory=list)
    trace: List[DebugEntry] = field(default_factory=list)


@dataclass
class AttemptOutcome:
    strategy: str
    state: AttemptState
    candidates: List[Candidate]  # lowest score first, ties in discovery order
    best_portions: Portions  # lowest-error map seen, for best-effort reporting
    iterations: int
    trace: List[DebugEntry] = field(default_factory=list)


def _optimal_step(item: PortionableItem, totals: MacroTotals, target: MacroTarget) -> Optional[float]:
    """Single-variable step minimizing weighted squared error; None if the item moves nothing."""
    density = per_gram_density(item)
    numerator = 0.0
    denominator = 0.0
    for macro in MACROS:
        weight = SEARCH_WEIGHTS[macro]
        need = target.get(macro) - totals.get(macro)
        numerator += weight * need * density[macro]
        denominator += weight * density[macro] * density[macro]
    if denominator <= 0:
        return None
    return numerator / denominator


def gradient_sweep(ctx: SolveContext, portions: Portions) -> Tuple[Portions, List[Adjustment]]:
    """One Gauss-Seidel pass: later items see earlier items' changes in the same sweep."""
    current = dict(portions)
    adjustments: List[Adjustment] = []
    totals = ctx.totals(current)
    for item in ctx.adjustable:
        if not item.counts(ctx.seasonings_count_macros):
            continue
        step = _optimal_step(item, totals, ctx.target)
        if step is None:
            continue
        old = current[item.id]
        new = clamp_to_constraints(old + step, item)
        if new == old:
            continue
        current[item.id] = new
        current = ctx.rescale(current)
        totals = ctx.totals(current)
        adjustments.append((item.id, old, new))
    return current, adjustments


def fine_tune_offsets(item: PortionableItem) -> List[int]:
    """±1, ±2, ±3 grams then ±1x/2x/3x the item's step, without duplicates."""
    offsets: List[int] = []
    for size in (1, 2, 3, item.step_grams, item.step_grams * 2, item.step_grams * 3):
        for offset in (size, -size):
            if offset not in offsets:
                offsets.append(offset)
    return offsets


def fine_tune(
    ctx: SolveContext,
    portions: Portions,
    max_passes: int = FINE_TUNE_MAX_PASSES,
) -> Tuple[Portions, List[Adjustment]]:
    """Discrete local search: per item, move to the best-scoring nearby amount.

    Repeats until a full pass changes nothing, at most max_passes times.
    """
    current = dict(portions)
    adjustments: List[Adjustment] = []
    for _ in range(max_passes):
        changed = False
        for item in ctx.adjustable:
            grams = current[item.id]
            best_grams = grams
            best_score = ctx.score(current)
            tried = {grams}
            for offset in fine_tune_offsets(item):
                trial_grams = clamp_to_constraints(grams + offset, item)
                if trial_grams in tried:
                    continue
                tried.add(trial_grams)
                trial = ctx.rescale({**current, item.id: trial_grams})
                trial_score = ctx.score(trial)
                if trial_score < best_score - IMPROVEMENT_EPSILON:
                    best_grams, best_score = trial_grams, trial_score
            if best_grams != grams:
                current = ctx.rescale({**current, item.id: best_grams})
                adjustments.append((item.id, grams, best_grams))
                changed = True
        if not changed:
            break
    return current, adjustments


def record_debug_entry(
    progress: AttemptProgress,
    phase: str,
    totals: MacroTotals,
    delta: MacroTotals,
    adjustments: List[Adjustment],
) -> None:
    entry = DebugEntry(
        strategy=progress.strategy,
        iteration=progress.iteration,
        phase=phase,
        totals=totals.rounded(),
        delta=delta,
        adjustments=tuple(adjustments),
    )
    progress.trace.append(entry)
    logger.debug(
        "[%s #%d %s] totals=%s delta=%s adjustments=%s",
        entry.strategy, entry.iteration, phase, entry.totals.to_dict(), delta.to_dict(), adjustments,
    )


def advance(
    ctx: SolveContext,
    progress: AttemptProgress,
    budget: int,
    debug: bool = False,
    patience: int = STAGNATION_PATIENCE,
) -> AttemptProgress:
    """One SEARCHING step. Updates and returns `progress`."""
    if progress.state != AttemptState.SEARCHING:
        return progress
    if progress.iteration >= budget:
        progress.state = AttemptState.BUDGET_EXHAUSTED
        return progress
    progress.iteration += 1

    portions = progress.portions
    totals = ctx.totals(portions)
    delta = target_delta(totals, ctx.target)
    error = net_error(delta, ctx.tolerances)

    if error < progress.best_error - IMPROVEMENT_EPSILON:
        progress.best_error = error
        progress.best_portions = dict(portions)
        progress.since_improvement = 0
    else:
        progress.since_improvement += 1

    if is_within_tolerance(totals, ctx.target, ctx.tolerances):
        progress.candidates.append(
            Candidate(
                portions=dict(portions),
                totals=totals.rounded(),
                score=score_plan(portions, totals, ctx.target, ctx.items),
            )
        )
        if len(progress.candidates) >= SUCCESS_CANDIDATE_QUOTA:
            progress.state = AttemptState.CONVERGED
            return progress
    if error < CONVERGENCE_ERROR:
        progress.state = AttemptState.CONVERGED
        return progress
    if progress.since_improvement >= patience:
        progress.state = AttemptState.STAGNANT
        return progress

    phase = "gradient"
    new_portions, adjustments = gradient_sweep(ctx, portions)
    if not adjustments:
        phase = "fine_tune"
        new_portions, adjustments = fine_tune(ctx, portions)
    if debug:
        record_debug_entry(progress, phase, totals, delta, adjustments)
    if not adjustments:
        # Fixed point: nothing will ever change again
        progress.state = AttemptState.CONVERGED if progress.candidates else AttemptState.STAGNANT
        return progress
    progress.portions = new_portions
    return progress


def finish_attempt(progress: AttemptProgress) -> AttemptOutcome:
    ranked = sorted(progress.candidates, key=lambda c: c.score)
    return AttemptOutcome(
        strategy=progress.strategy,
        state=progress.state,
        candidates=ranked,
        best_portions=progress.best_portions if progress.best_portions is not None else dict(progress.portions),
        iterations=progress.iteration,
        trace=progress.trace,
    )


def run_gradient_attempt(
    ctx: SolveContext,
    strategy: str,
    start: Portions,
    budget: int,
    debug: bool = False,
) -> AttemptOutcome:
    """Drive one attempt from `start` until it leaves SEARCHING."""
    progress = AttemptProgress(strategy=strategy, portions=ctx.rescale(dict(start)))
    while progress.state == AttemptState.SEARCHING:
        advance(ctx, progress, budget, debug=debug)
    outcome = finish_attempt(progress)
    logger.debug(
        "Attempt %s ended %s after %d iterations with %d valid candidate(s)",
        strategy, outcome.state.value, outcome.iterations, len(outcome.candidates),
    )
    return outcome
