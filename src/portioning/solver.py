"""Portion solver entry point.

Control flow: nutrition validation -> feasibility envelope -> multi-start
gradient attempts (macro-balance, midpoint, current) -> greedy fallback ->
result assembly. Pure and synchronous: no I/O, no clock, no randomness, and no
state shared between calls, so independent solves may run concurrently.

When the feasibility envelope already proves the target unreachable, every
attempt still runs and the least-wrong allocation is returned with reason
impossible_targets.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from src.portioning.phase0_models import (
    Blocker,
    DebugEntry,
    FailureReason,
    MacroTarget,
    PortionableItem,
    Portions,
    SolveResult,
    SolverOptions,
)
from src.portioning.phase2_validation import validate_items
from src.portioning.phase3_feasibility import FeasibilityVerdict, check_feasibility
from src.portioning.phase4_scoring import weighted_delta
from src.portioning.phase5_seasoning import capped_warning, normalize_seasoning_portions
from src.portioning.phase6_initialization import (
    STRATEGY_BUDGET_SHARES,
    InitStrategy,
    initial_portions,
)
from src.portioning.phase7_search import AttemptOutcome, AttemptState, Candidate, SolveContext, run_gradient_attempt
from src.portioning.phase8_greedy import run_greedy_attempt
from src.portioning.phase9_meal_minimums import MealShortfall, validate_meal_minimums
from src.portioning.phase10_reporting import build_failure, build_success, collect_blockers

logger = logging.getLogger(__name__)

_STATE_REASONS = {
    AttemptState.STAGNANT: FailureReason.STAGNATION,
    AttemptState.BUDGET_EXHAUSTED: FailureReason.MAX_ITERATIONS_EXCEEDED,
    AttemptState.CONVERGED: FailureReason.STAGNATION,
}


def _check_unique_ids(items: Sequence[PortionableItem]) -> None:
    seen = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"Duplicate item id '{item.id}' in one solve call")
        seen.add(item.id)


def _accept(ctx: SolveContext, outcome: AttemptOutcome) -> Tuple[Optional[Candidate], List[MealShortfall]]:
    """Lowest-scoring candidate that also passes the meal minimums.

    Returns (accepted, shortfalls of the best rejected candidate).
    """
    rejected: List[MealShortfall] = []
    for candidate in outcome.candidates:
        shortfalls = validate_meal_minimums(ctx.items, candidate.portions, ctx.seasonings_count_macros)
        if not shortfalls:
            return candidate, []
        if not rejected:
            rejected = shortfalls
    return None, rejected


class _FailedAttempt:
    """A finished attempt that produced no acceptable plan."""

    def __init__(self, ctx: SolveContext, outcome: AttemptOutcome, shortfalls: List[MealShortfall]):
        self.outcome = outcome
        self.shortfalls = shortfalls
        if outcome.candidates:
            portions = outcome.candidates[0].portions
        else:
            portions = outcome.best_portions
        self.portions, _ = normalize_seasoning_portions(ctx.items, portions)
        self.magnitude = weighted_delta(ctx.delta(self.portions))

    @property
    def reason(self) -> FailureReason:
        if self.shortfalls:
            return FailureReason.IMPOSSIBLE_TARGETS
        return _STATE_REASONS[self.outcome.state]


def _success_from(
    ctx: SolveContext,
    candidate: Candidate,
    iterations: int,
    trace: List[DebugEntry],
) -> SolveResult:
    portions, capped = normalize_seasoning_portions(ctx.items, candidate.portions)
    warnings = [capped_warning(capped)] if capped else []
    totals = ctx.totals(portions)
    logger.info(
        "Solved in %d iterations: %s (score %.2f)",
        iterations, totals.rounded().to_dict(), candidate.score,
    )
    return build_success(portions, totals, candidate.score, iterations, warnings, trace)


def _solve_fixed(
    ctx: SolveContext,
    verdict: Optional[FeasibilityVerdict],
    trace: List[DebugEntry],
) -> SolveResult:
    """Nothing is adjustable: evaluate the single possible allocation."""
    portions, capped = normalize_seasoning_portions(ctx.items, initial_portions(ctx.items, ctx.target, InitStrategy.CURRENT))
    shortfalls = validate_meal_minimums(ctx.items, portions, ctx.seasonings_count_macros)
    if ctx.within_tolerance(portions) and not shortfalls:
        warnings = [capped_warning(capped)] if capped else []
        return build_success(portions, ctx.totals(portions), ctx.score(portions), 1, warnings, trace)

    blockers: List[Blocker] = list(verdict.blockers) if verdict else []
    blockers += [s.to_blocker() for s in shortfalls]
    blockers += collect_blockers(ctx.items, portions, ctx.target)
    logger.info("No adjustable items and the fixed allocation misses the target")
    return build_failure(
        ctx.items, ctx.target, FailureReason.NO_ADJUSTABLE_ITEMS, blockers, portions, 1,
        ctx.seasonings_count_macros, debug_trace=trace,
    )


def solve(
    items: Iterable[PortionableItem],
    target: MacroTarget,
    options: Optional[SolverOptions] = None,
) -> SolveResult:
    """Compute integer gram portions whose totals hit `target` within tolerance.

    Args:
        items: Items for this call; ids must be unique. Never mutated.
        target: Calories and macros to hit.
        options: Iteration budget, tolerances, seasoning counting and debug mode.

    Returns:
        SolveSuccess, or SolveFailure with reason, blockers and best-effort portions.

    Raises:
        ValueError: If two items share an id.
    """
    options = options or SolverOptions()
    items = tuple(items)
    _check_unique_ids(items)
    ctx = SolveContext.build(items, target, options)
    trace: List[DebugEntry] = []
    logger.info(
        "Solving %d item(s) (%d adjustable) for %s",
        len(items), len(ctx.adjustable), target.to_dict(),
    )

    invalid = validate_items(items)
    if invalid:
        for blocker in invalid:
            logger.warning("Invalid nutrition for %s: %s", blocker.item_name, blocker.detail)
        seed = initial_portions(items, target, InitStrategy.CURRENT, options.seasonings_count_macros)
        seed, _ = normalize_seasoning_portions(items, seed)
        return build_failure(
            items, target, FailureReason.INVALID_PRODUCT_NUTRITION, invalid, seed, 0,
            options.seasonings_count_macros,
        )

    verdict = check_feasibility(items, target, options.tolerances, options.seasonings_count_macros)
    if verdict is not None:
        for blocker in verdict.blockers:
            logger.warning("Target outside feasibility envelope: %s", blocker.detail)

    if not ctx.adjustable:
        return _solve_fixed(ctx, verdict, trace)

    failures: List[_FailedAttempt] = []
    used = 0
    for strategy, share in STRATEGY_BUDGET_SHARES:
        budget = min(max(1, int(options.max_iterations * share)), options.max_iterations - used)
        if budget <= 0:
            break
        start = initial_portions(items, target, strategy, options.seasonings_count_macros)
        outcome = run_gradient_attempt(ctx, strategy.value, start, budget, debug=options.debug_mode)
        used += outcome.iterations
        trace.extend(outcome.trace)
        accepted, shortfalls = _accept(ctx, outcome)
        if accepted is not None:
            return _success_from(ctx, accepted, used, trace)
        if shortfalls:
            logger.debug("Attempt %s rejected by meal minimums: %s", strategy.value, shortfalls)
        failures.append(_FailedAttempt(ctx, outcome, shortfalls))

    remaining = options.max_iterations - used
    if remaining > 0:
        closest = min(failures, key=lambda f: f.magnitude)
        outcome = run_greedy_attempt(ctx, closest.portions, remaining, debug=options.debug_mode)
        used += outcome.iterations
        trace.extend(outcome.trace)
        accepted, shortfalls = _accept(ctx, outcome)
        if accepted is not None:
            return _success_from(ctx, accepted, used, trace)
        failures.append(_FailedAttempt(ctx, outcome, shortfalls))

    least_wrong = min(failures, key=lambda f: f.magnitude)
    reason = FailureReason.IMPOSSIBLE_TARGETS if verdict is not None else least_wrong.reason
    blockers: List[Blocker] = list(verdict.blockers) if verdict else []
    blockers += [s.to_blocker() for s in least_wrong.shortfalls]
    blockers += collect_blockers(items, least_wrong.portions, target)
    logger.info(
        "No plan within tolerance after %d iterations (%s); closest attempt: %s",
        used, reason.value, least_wrong.outcome.strategy,
    )
    return build_failure(
        items, target, reason, blockers, least_wrong.portions, used,
        options.seasonings_count_macros, debug_trace=trace,
    )
