"""Phase 5 unit tests: seasoning scaling and the 15g hard cap."""

from __future__ import annotations

from typing import Optional

from src.portioning.phase0_models import (
    EditableMode,
    FoodCategory,
    MealSlot,
    NutrientDensity,
    PortionableItem,
)
from src.portioning.phase5_seasoning import (
    DEFAULT_SEASONING_FALLBACK_GRAMS,
    capped_warning,
    derive_seasoning_grams,
    normalize_seasoning_portions,
    protein_basis_grams,
    scale_seasonings,
)


def _make_protein(iid: str = "chicken", grams: int = 200) -> PortionableItem:
    return PortionableItem(
        id=iid,
        name=iid,
        category=FoodCategory.PROTEIN,
        meal_slot=MealSlot.DINNER,
        density=NutrientDensity(165, 31, 0, 3.6),
        min_grams=100,
        max_grams=400,
        current_grams=grams,
    )


def _make_seasoning(
    iid: str = "paprika",
    rate: Optional[float] = None,
    paired: Optional[str] = None,
    current: int = 0,
) -> PortionableItem:
    return PortionableItem(
        id=iid,
        name=iid,
        category=FoodCategory.SEASONING,
        meal_slot=MealSlot.DINNER,
        density=NutrientDensity(280, 14, 54, 13),
        editable_mode=EditableMode.LOCKED,
        max_grams=15,
        seasoning_rate=rate,
        paired_item_id=paired,
        current_grams=current,
        counts_toward_totals=False,
    )


class TestDeriveSeasoningGrams:
    def test_paired_rate(self):
        item = _make_seasoning(rate=2.5, paired="chicken")
        assert derive_seasoning_grams(item, {"chicken": 200}, 0) == 5

    def test_protein_basis_when_unpaired(self):
        item = _make_seasoning(rate=2)
        assert derive_seasoning_grams(item, {}, 350) == 7

    def test_dangling_pair_falls_back_to_protein_basis(self):
        item = _make_seasoning(rate=2, paired="missing")
        assert derive_seasoning_grams(item, {"chicken": 100}, 300) == 6

    def test_seeded_amount_without_rate(self):
        assert derive_seasoning_grams(_make_seasoning(current=3), {}, 0) == 3

    def test_fallback_without_rate_or_seed(self):
        assert derive_seasoning_grams(_make_seasoning(), {}, 0) == DEFAULT_SEASONING_FALLBACK_GRAMS


class TestScaleSeasonings:
    def test_follows_paired_item(self):
        items = [_make_protein(), _make_seasoning(rate=3, paired="chicken")]
        scaled = scale_seasonings(items, {"chicken": 300, "paprika": 0})
        assert scaled["paprika"] == 9

    def test_does_not_mutate_input(self):
        items = [_make_protein(), _make_seasoning(rate=3, paired="chicken")]
        portions = {"chicken": 300, "paprika": 0}
        scale_seasonings(items, portions)
        assert portions["paprika"] == 0

    def test_never_exceeds_cap(self):
        items = [_make_protein(), _make_seasoning(rate=10, paired="chicken")]
        assert scale_seasonings(items, {"chicken": 400})["paprika"] == 15

    def test_protein_basis_sums_protein_items(self):
        items = [_make_protein("a", 100), _make_protein("b", 150), _make_seasoning()]
        assert protein_basis_grams(items, {"a": 120}) == 270


class TestNormalize:
    def test_reports_capped_ids(self):
        items = [_make_protein(), _make_seasoning(rate=10, paired="chicken")]
        portions, capped = normalize_seasoning_portions(items, {"chicken": 300})
        assert portions["paprika"] == 15
        assert capped == ["paprika"]
        assert capped_warning(capped) == "Capped 1 seasoning(s) to max 15g"

    def test_within_cap_reports_nothing(self):
        items = [_make_protein(), _make_seasoning(rate=2, paired="chicken")]
        _, capped = normalize_seasoning_portions(items, {"chicken": 300})
        assert capped == []
