"""Meal plan loader: one day's product + meal context + stored quantity rows from JSON."""
import json
from datetime import date
from pathlib import Path
from typing import List

from src.data_layer.exceptions import InvalidConfigurationError
from src.data_layer.models import MealPlanDay, MealPlanEntry
from src.data_layer.product_db import ProductDB
from src.portioning.phase0_models import PortionableItem
from src.portioning.product_conversion import eligibility_warning, entry_to_item

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")


def parse_entry(entry_data: dict) -> MealPlanEntry:
    """Parse a single meal plan row.

    Raises:
        KeyError: If id, product_id or meal_type is missing
        ValueError: If meal_type is not a known meal
    """
    meal_type = str(entry_data["meal_type"]).lower()
    if meal_type not in MEAL_TYPES:
        raise ValueError(f"Unknown meal_type '{meal_type}'")
    return MealPlanEntry(
        id=str(entry_data["id"]),
        product_id=str(entry_data["product_id"]),
        meal_type=meal_type,
        quantity_grams=int(entry_data.get("quantity_grams", 0) or 0),
        is_locked=bool(entry_data.get("is_locked", False)),
        paired_item_id=entry_data.get("paired_item_id"),
    )


class MealPlanDB:
    """A single day's meal plan loaded from JSON."""

    def __init__(self, json_path: str):
        """Initialize meal plan from JSON file.

        Args:
            json_path: Path to JSON file with {"date": ..., "items": [...]}
        """
        self.json_path = Path(json_path)
        self.day = self._load_day()

    def _load_day(self) -> MealPlanDay:
        with open(self.json_path, "r") as f:
            data = json.load(f)

        try:
            raw_date = data.get("date")
            plan_date = date.fromisoformat(raw_date) if raw_date else None
            entries = [parse_entry(e) for e in data.get("items", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidConfigurationError(str(self.json_path), str(e)) from e
        return MealPlanDay(plan_date=plan_date, entries=entries)

    def to_items(self, product_db: ProductDB) -> List[PortionableItem]:
        """Solver items for every row.

        Raises:
            ProductNotFoundError: If a row references an unknown product
        """
        return [entry_to_item(entry, product_db.require(entry.product_id)) for entry in self.day.entries]

    def eligibility_warnings(self, product_db: ProductDB) -> List[str]:
        """Messages for rows placed at a meal their product is not eligible for."""
        warnings = []
        for entry in self.day.entries:
            message = eligibility_warning(entry, product_db.require(entry.product_id))
            if message:
                warnings.append(message)
        return warnings
