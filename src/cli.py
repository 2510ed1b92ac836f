#!/usr/bin/env python3
"""Command-line interface for the meal portion solver."""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from src.app_logging import configure_logging
from src.data_layer.exceptions import InvalidConfigurationError, ProductNotFoundError
from src.data_layer.meal_plan_db import MealPlanDB
from src.data_layer.product_db import ProductDB
from src.data_layer.settings_loader import NutritionSettingsLoader
from src.output.formatters import format_result_json_string, format_result_markdown
from src.portioning.phase0_models import MacroTarget, SolverOptions
from src.portioning.phase1_targets import build_target, resolve_daily_targets
from src.portioning.solver import solve

EXIT_INPUT_ERROR = 1
EXIT_NO_SOLUTION = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute gram portions for a day's meal plan that hit calorie and macro targets"
    )
    parser.add_argument(
        "--meal-plan",
        type=str,
        default="data/meal_plan.json",
        help="Path to meal plan JSON file (default: data/meal_plan.json)"
    )
    parser.add_argument(
        "--products",
        type=str,
        default="data/products.json",
        help="Path to products JSON file (default: data/products.json)"
    )
    parser.add_argument(
        "--settings",
        type=str,
        help="Path to nutrition settings YAML file; targets are resolved for --date"
    )
    parser.add_argument(
        "--date",
        type=str,
        help="Plan date YYYY-MM-DD (default: the meal plan's date, else today)"
    )
    parser.add_argument("--calories", type=float, help="Explicit calorie target (overrides --settings)")
    parser.add_argument("--protein", type=float, help="Explicit protein target in grams")
    parser.add_argument("--carbs", type=float, help="Explicit carbohydrate target in grams")
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=SolverOptions.max_iterations,
        help=f"Total iteration budget (default: {SolverOptions.max_iterations})"
    )
    parser.add_argument(
        "--count-seasonings",
        action="store_true",
        help="Count seasoning macros toward totals"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Collect a per-iteration debug trace"
    )
    parser.add_argument(
        "--output",
        type=str,
        choices=["markdown", "json", "both"],
        default="markdown",
        help="Output format: markdown (default), json, or both"
    )
    parser.add_argument(
        "--output-file",
        type=str,
        help="Optional file path to save output (default: print to stdout)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)"
    )
    return parser


def resolve_target(args: argparse.Namespace, plan_date: date) -> MacroTarget:
    """Explicit --calories/--protein/--carbs win; otherwise resolve from --settings.

    Raises:
        ValueError: If an explicit target is incomplete
    """
    explicit = [args.calories, args.protein, args.carbs]
    if any(v is not None for v in explicit):
        if any(v is None for v in explicit):
            raise ValueError("--calories, --protein and --carbs must be given together")
        return build_target(args.calories, args.protein, args.carbs)
    if args.settings:
        settings, overrides = NutritionSettingsLoader(args.settings).load()
        return resolve_daily_targets(plan_date, settings, overrides)
    return resolve_daily_targets(plan_date, None)


def _write(text: str, output_file: Optional[str], suffix: Optional[str]) -> None:
    if output_file:
        output_path = Path(output_file)
        if suffix:
            output_path = output_path.with_suffix(suffix)
        output_path.write_text(text)
        print(f"Output saved to {output_path}", file=sys.stderr)
    else:
        print(text)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(getattr(logging, args.log_level))

    for label, path in (("Meal plan", args.meal_plan), ("Products", args.products), ("Settings", args.settings)):
        if path and not Path(path).exists():
            print(f"Error: {label} file not found: {path}", file=sys.stderr)
            return EXIT_INPUT_ERROR

    try:
        product_db = ProductDB(args.products)
        meal_plan = MealPlanDB(args.meal_plan)
        items = meal_plan.to_items(product_db)
        plan_date = date.fromisoformat(args.date) if args.date else (meal_plan.day.plan_date or date.today())
        target = resolve_target(args, plan_date)
        options = SolverOptions(
            max_iterations=args.max_iterations,
            seasonings_count_macros=args.count_seasonings,
            debug_mode=args.debug,
        )
    except (InvalidConfigurationError, ProductNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    for warning in meal_plan.eligibility_warnings(product_db):
        print(f"Warning: {warning}", file=sys.stderr)
    print(f"Solving {len(items)} items for {plan_date.isoformat()}...", file=sys.stderr)
    result = solve(items, target, options)

    if args.output in ["markdown", "both"]:
        markdown_output = format_result_markdown(result, items, target, args.count_seasonings)
        _write(markdown_output, args.output_file, ".md" if args.output == "both" else None)

    if args.output in ["json", "both"]:
        json_output = format_result_json_string(result, items, target, indent=2)
        if args.output == "both" and not args.output_file:
            print("\n" + "=" * 80 + "\n")
        _write(json_output, args.output_file, ".json" if args.output == "both" else None)

    if result.success:
        print("\n✅ Portions found within tolerance", file=sys.stderr)
        return 0
    print(f"\n⚠️  No plan within tolerance: {result.reason.value}", file=sys.stderr)
    for blocker in result.blockers:
        print(f"   - {blocker.item_name}: {blocker.detail}", file=sys.stderr)
    return EXIT_NO_SOLUTION


if __name__ == "__main__":
    sys.exit(main())
