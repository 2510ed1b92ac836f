#!/usr/bin/env python3
"""Benchmark solve(): run time and outcome summary over fixed scenarios.

Run from repo root:
  python scripts/benchmark_solve.py

Optional: repetitions via PORTION_BENCH_REPEATS (default 5).
"""
from __future__ import annotations

import os
import sys
import time

# Allow importing from src when run from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.portioning.phase0_models import (
    EditableMode,
    FoodCategory,
    MacroTarget,
    MealSlot,
    NutrientDensity,
    PortionableItem,
    RoundingRule,
    SolverOptions,
)
from src.portioning.solver import solve


def make_item(
    iid: str,
    meal: MealSlot,
    category: FoodCategory,
    density: tuple,
    min_grams: int = 0,
    max_grams: int = 300,
    step_grams: int = 5,
    mode: EditableMode = EditableMode.FREE,
    current_grams: int = 0,
) -> PortionableItem:
    return PortionableItem(
        id=iid,
        name=iid,
        category=category,
        meal_slot=meal,
        density=NutrientDensity(*density),
        editable_mode=mode,
        min_grams=min_grams,
        max_grams=max_grams,
        step_grams=step_grams,
        rounding_rule=RoundingRule.NEAREST_5G,
        current_grams=current_grams,
    )


def dinner_scenario():
    items = [
        make_item("chicken", MealSlot.DINNER, FoodCategory.PROTEIN, (165, 31, 0, 3.6), 100, 300, 10),
        make_item("rice", MealSlot.DINNER, FoodCategory.CARB, (130, 2.7, 28, 0.3), 80, 250, 10),
    ]
    return items, MacroTarget(430, 50, 38, 5)


def full_day_scenario():
    items = [
        make_item("oats", MealSlot.BREAKFAST, FoodCategory.CARB, (389, 16.9, 66.3, 6.9), 30, 120),
        make_item("milk", MealSlot.BREAKFAST, FoodCategory.DAIRY, (42, 3.4, 5, 1), 100, 400),
        make_item("chicken", MealSlot.LUNCH, FoodCategory.PROTEIN, (165, 31, 0, 3.6), 100, 300),
        make_item("rice", MealSlot.LUNCH, FoodCategory.CARB, (130, 2.7, 28, 0.3), 50, 300),
        make_item(
            "broccoli", MealSlot.LUNCH, FoodCategory.VEGETABLE, (34, 2.8, 7, 0.4),
            mode=EditableMode.LOCKED, current_grams=150,
        ),
        make_item("salmon", MealSlot.DINNER, FoodCategory.PROTEIN, (208, 20, 0, 13), 100, 250),
        make_item("potato", MealSlot.DINNER, FoodCategory.CARB, (77, 2, 17, 0.1), 100, 400),
        make_item("yogurt", MealSlot.SNACK, FoodCategory.DAIRY, (59, 10, 3.6, 0.4), 0, 300),
    ]
    return items, MacroTarget(2000, 150, 200, 67)


def impossible_scenario():
    items = [make_item("rice", MealSlot.LUNCH, FoodCategory.CARB, (130, 2.7, 28, 0.3), 50, 250)]
    return items, MacroTarget(2000, 150, 200, 67)


SCENARIOS = (
    ("dinner", dinner_scenario),
    ("full_day", full_day_scenario),
    ("impossible", impossible_scenario),
)


def main() -> None:
    repeats = int(os.environ.get("PORTION_BENCH_REPEATS", "5"))
    options = SolverOptions()

    print("--- Portion solve benchmark ---")
    for name, build in SCENARIOS:
        items, target = build()
        t0 = time.perf_counter()
        for _ in range(repeats):
            result = solve(items, target, options)
        t1 = time.perf_counter()

        print(f"[{name}] success={result.success} iterations={result.iterations}")
        print(f"  Wall time: {t1 - t0:.3f}s for {repeats} run(s), {(t1 - t0) / repeats:.4f}s per solve")
        if result.success:
            print(f"  Totals: {result.totals.to_dict()}")
            print(f"  Portions: {result.portions}")
        else:
            print(f"  Failure reason: {result.reason.value}")
            print(f"  Closest totals: {result.closest_totals.to_dict()}")
            for blocker in result.blockers:
                print(f"    - {blocker.item_name}: {blocker.detail}")
    print("-------------------------------")


if __name__ == "__main__":
    main()
