"""Phase 8: Greedy hill-climb, the final fallback after every gradient attempt failed.

Each iteration tries 1x, 2x, 5x and 10x the item's step in both directions for
every adjustable item and applies the single change that most reduces net error.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from src.portioning.phase0_models import (
    PortionableItem,
    Portions,
    clamp_to_constraints,
    is_within_tolerance,
    target_delta,
)
from src.portioning.phase4_scoring import net_error, score_plan
from src.portioning.phase7_search import (
    CONVERGENCE_ERROR,
    IMPROVEMENT_EPSILON,
    SUCCESS_CANDIDATE_QUOTA,
    AttemptOutcome,
    AttemptProgress,
    AttemptState,
    Candidate,
    SolveContext,
    finish_attempt,
    record_debug_entry,
)

logger = logging.getLogger(__name__)

GREEDY_STRATEGY = "greedy"
GREEDY_STEP_MULTIPLES = (1, 2, 5, 10)


def greedy_moves(item: PortionableItem, grams: int) -> List[int]:
    """Distinct clamped amounts reachable from `grams` by one greedy move."""
    moves: List[int] = []
    for multiple in GREEDY_STEP_MULTIPLES:
        size = item.step_grams * multiple
        for candidate in (grams + size, grams - size):
            clamped = clamp_to_constraints(candidate, item)
            if clamped != grams and clamped not in moves:
                moves.append(clamped)
    return moves


def best_greedy_move(ctx: SolveContext, portions: Portions) -> Optional[Tuple[str, int, float]]:
    """(item_id, grams, error) of the lowest-error single move; first found wins ties."""
    best: Optional[Tuple[str, int, float]] = None
    for item in ctx.adjustable:
        grams = portions[item.id]
        for trial_grams in greedy_moves(item, grams):
            trial = ctx.rescale({**portions, item.id: trial_grams})
            error = ctx.error(trial)
            if best is None or error < best[2]:
                best = (item.id, trial_grams, error)
    return best


def run_greedy_attempt(
    ctx: SolveContext,
    start: Portions,
    budget: int,
    debug: bool = False,
) -> AttemptOutcome:
    progress = AttemptProgress(strategy=GREEDY_STRATEGY, portions=ctx.rescale(dict(start)))
    while progress.state == AttemptState.SEARCHING:
        if progress.iteration >= budget:
            progress.state = AttemptState.BUDGET_EXHAUSTED
            break
        progress.iteration += 1

        portions = progress.portions
        totals = ctx.totals(portions)
        delta = target_delta(totals, ctx.target)
        error = net_error(delta, ctx.tolerances)
        if error < progress.best_error - IMPROVEMENT_EPSILON:
            progress.best_error = error
            progress.best_portions = dict(portions)

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
                break
        if error < CONVERGENCE_ERROR:
            progress.state = AttemptState.CONVERGED
            break

        move = best_greedy_move(ctx, portions)
        if move is None or move[2] >= error - IMPROVEMENT_EPSILON:
            # No improving move exists from here
            progress.state = AttemptState.CONVERGED if progress.candidates else AttemptState.STAGNANT
            break
        item_id, grams, _ = move
        if debug:
            record_debug_entry(progress, GREEDY_STRATEGY, totals, delta, [(item_id, portions[item_id], grams)])
        progress.portions = ctx.rescale({**portions, item_id: grams})

    outcome = finish_attempt(progress)
    logger.debug(
        "Greedy fallback ended %s after %d iterations with %d valid candidate(s)",
        outcome.state.value, outcome.iterations, len(outcome.candidates),
    )
    return outcome
