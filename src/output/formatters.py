"""Formatters for solve results (JSON and Markdown)."""

import json
from typing import Any, Dict, List, Sequence

from src.portioning.phase0_models import (
    MacroTarget,
    MacroTotals,
    MealSlot,
    PortionableItem,
    Portions,
    SolveResult,
    SolveSuccess,
    item_macros,
)
from src.portioning.phase10_reporting import result_to_dict, totals_to_dict


MEAL_ORDER = (MealSlot.BREAKFAST, MealSlot.LUNCH, MealSlot.DINNER, MealSlot.SNACK)


def result_portions(result: SolveResult) -> Portions:
    """Chosen grams for a success, best-effort grams for a failure."""
    if isinstance(result, SolveSuccess):
        return result.portions
    return result.best_effort_portions


def format_portion_string(item: PortionableItem, grams: int) -> str:
    """Format an item portion as a string (e.g., "150g Chicken breast").

    Args:
        item: The portioned item
        grams: Solved grams

    Returns:
        Formatted string like "150g Chicken breast" or "2 x 60g Egg"
    """
    if item.unit_size_grams and grams % item.unit_size_grams == 0 and grams > 0:
        units = grams // item.unit_size_grams
        return f"{units} x {item.unit_size_grams}g {item.name}"
    return f"{grams}g {item.name}"


def format_nutrition_breakdown(totals: MacroTotals, indent: str = "") -> str:
    """Format totals as a readable breakdown.

    Args:
        totals: Calories and macros
        indent: Optional indentation prefix

    Returns:
        Formatted string with calories and macros
    """
    lines = [
        f"{indent}**Calories:** {totals.calories:.0f} kcal",
        f"{indent}**Protein:** {totals.protein_g:.1f}g",
        f"{indent}**Carbs:** {totals.carbs_g:.1f}g",
        f"{indent}**Fat:** {totals.fat_g:.1f}g",
    ]
    return "\n".join(lines)


def _items_by_meal(items: Sequence[PortionableItem]) -> Dict[MealSlot, List[PortionableItem]]:
    grouped: Dict[MealSlot, List[PortionableItem]] = {}
    for item in items:
        grouped.setdefault(item.meal_slot, []).append(item)
    return grouped


def _meal_totals(items: Sequence[PortionableItem], portions: Portions, seasonings_count_macros: bool) -> MacroTotals:
    total = MacroTotals()
    for item in items:
        if item.counts(seasonings_count_macros):
            total = total + item_macros(item, portions.get(item.id, 0))
    return total


def format_result_markdown(
    result: SolveResult,
    items: Sequence[PortionableItem],
    target: MacroTarget,
    seasonings_count_macros: bool = False,
) -> str:
    """Format a SolveResult as Markdown.

    Args:
        result: Outcome of solve()
        items: The items that were solved
        target: The target they were solved for
        seasonings_count_macros: Whether seasonings were counted in totals

    Returns:
        Formatted Markdown string
    """
    portions = result_portions(result)
    lines = ["# Portion Plan\n"]

    if result.success:
        lines.append("✅ **Portions meet the target within tolerance**\n")
    else:
        lines.append(f"⚠️ **No plan within tolerance ({result.reason.value}); showing best effort**\n")

    if result.warnings:
        lines.append("## Warnings\n")
        for warning in result.warnings:
            lines.append(f"- {warning}")
        lines.append("")

    grouped = _items_by_meal(items)
    for slot in MEAL_ORDER:
        meal_items = grouped.get(slot)
        if not meal_items:
            continue
        lines.append(f"## {slot.value.capitalize()}")
        for item in meal_items:
            marker = " (locked)" if not item.is_adjustable and not item.is_seasoning else ""
            lines.append(f"- {format_portion_string(item, portions.get(item.id, 0))}{marker}")
        lines.append("")
        lines.append(format_nutrition_breakdown(_meal_totals(meal_items, portions, seasonings_count_macros)))
        lines.append("")

    totals = result.totals if isinstance(result, SolveSuccess) else result.closest_totals
    lines.append("## Daily Totals")
    lines.append(format_nutrition_breakdown(totals))
    lines.append("")

    lines.append("## Target")
    lines.append(f"**Target Calories:** {target.calories:.0f} kcal")
    lines.append(f"**Target Protein:** {target.protein_g:.0f}g")
    lines.append(f"**Target Carbs:** {target.carbs_g:.0f}g")
    lines.append(f"**Target Fat:** {target.fat_g:.0f}g")
    lines.append("")

    if not result.success:
        delta = result.target_delta
        lines.append("## Difference From Target")
        lines.append(f"- Calories: {delta.calories:+.0f} kcal")
        lines.append(f"- Protein: {delta.protein_g:+.0f}g")
        lines.append(f"- Carbs: {delta.carbs_g:+.0f}g")
        lines.append(f"- Fat: {delta.fat_g:+.0f}g")
        lines.append("")
        if result.blockers:
            lines.append("## Blockers")
            for blocker in result.blockers:
                lines.append(f"- **{blocker.item_name}** ({blocker.constraint}): {blocker.detail}")
            lines.append("")
    else:
        lines.append(f"**Score:** {result.score:.2f} after {result.iterations} iterations")
        lines.append("")

    return "\n".join(lines)


def format_result_json(
    result: SolveResult,
    items: Sequence[PortionableItem],
    target: MacroTarget,
) -> Dict[str, Any]:
    """Format a SolveResult as JSON (for API usage).

    Args:
        result: Outcome of solve()
        items: The items that were solved
        target: The target they were solved for

    Returns:
        Dictionary ready for JSON serialization
    """
    portions = result_portions(result)
    out = result_to_dict(result)
    out["target"] = totals_to_dict(MacroTotals(target.calories, target.protein_g, target.carbs_g, target.fat_g))
    out["items"] = [
        {
            "id": item.id,
            "name": item.name,
            "meal": item.meal_slot.value,
            "category": item.category.value,
            "grams": portions.get(item.id, 0),
            "display": format_portion_string(item, portions.get(item.id, 0)),
        }
        for item in items
    ]
    return out


def format_result_json_string(
    result: SolveResult,
    items: Sequence[PortionableItem],
    target: MacroTarget,
    indent: int = 2,
) -> str:
    """Format a SolveResult as a JSON string.

    Args:
        result: Outcome of solve()
        items: The items that were solved
        target: The target they were solved for
        indent: JSON indentation (default: 2)

    Returns:
        JSON string
    """
    return json.dumps(format_result_json(result, items, target), indent=indent)
