"""Nutrition settings loader for targets and weekly overrides from YAML."""
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from src.data_layer.exceptions import InvalidConfigurationError
from src.data_layer.models import NutritionSettings, WeeklyTargetsOverride
from src.portioning.week_schedule import WeeklyCalorieSchedule

logger = logging.getLogger(__name__)


def _optional_number(data: Dict[str, Any], key: str, cast=float) -> Optional[float]:
    value = data.get(key)
    return None if value is None else cast(value)


class NutritionSettingsLoader:
    """Loader for nutrition settings configuration from YAML."""

    def __init__(self, yaml_path: str):
        """Initialize settings loader from YAML file.

        Args:
            yaml_path: Path to YAML file containing nutrition settings
        """
        self.yaml_path = Path(yaml_path)

    def load(self) -> Tuple[NutritionSettings, List[WeeklyTargetsOverride]]:
        """Load global settings and weekly overrides from YAML file.

        Returns:
            (NutritionSettings, list of WeeklyTargetsOverride)

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            InvalidConfigurationError: If the file is not a mapping or a value is malformed
        """
        with open(self.yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise InvalidConfigurationError(str(self.yaml_path), "top level must be a mapping")

        try:
            settings = self._parse_settings(data.get("nutrition_settings") or {})
            overrides = [parse_weekly_override(o) for o in data.get("weekly_overrides") or []]
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidConfigurationError(str(self.yaml_path), str(e)) from e

        logger.debug("Loaded settings with %d weekly override(s) from %s", len(overrides), self.yaml_path)
        return settings, overrides

    def _parse_settings(self, data: Dict[str, Any]) -> NutritionSettings:
        return NutritionSettings(
            daily_calorie_target=_optional_number(data, "daily_calorie_target", int),
            protein_target_grams=_optional_number(data, "protein_target_grams"),
            carbs_target_grams=_optional_number(data, "carbs_target_grams"),
            weekend_targets_enabled=bool(data.get("weekend_targets_enabled", False)),
            weekend_calorie_target=_optional_number(data, "weekend_calorie_target", int),
            weekend_protein_target_grams=_optional_number(data, "weekend_protein_target_grams"),
            weekend_carbs_target_grams=_optional_number(data, "weekend_carbs_target_grams"),
        )


def parse_weekly_override(data: Dict[str, Any]) -> WeeklyTargetsOverride:
    """Build a WeeklyTargetsOverride from a plain mapping.

    Raises:
        KeyError: If week_start_date or schedule is missing
        ValueError: If week_start_date is not an ISO date falling on a Monday
    """
    raw_start = data["week_start_date"]
    week_start = raw_start if isinstance(raw_start, date) else date.fromisoformat(str(raw_start))
    if week_start.weekday() != 0:
        raise ValueError(f"week_start_date {week_start.isoformat()} is not a Monday")
    return WeeklyTargetsOverride(
        week_start_date=week_start,
        schedule=WeeklyCalorieSchedule.from_dict(data["schedule"]),
        protein_target_grams=_optional_number(data, "protein_target_grams"),
        carbs_target_grams=_optional_number(data, "carbs_target_grams"),
        fat_target_grams=_optional_number(data, "fat_target_grams"),
    )
