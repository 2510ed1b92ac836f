"""Product database for loading products from JSON."""
import json
from pathlib import Path
from typing import Dict, List, Optional

from src.data_layer.exceptions import InvalidConfigurationError, ProductNotFoundError
from src.data_layer.models import ProductRecord


def _int_or_none(value) -> Optional[int]:
    return None if value is None else int(value)


def _float_or_none(value) -> Optional[float]:
    return None if value is None else float(value)


def parse_product(product_data: dict) -> ProductRecord:
    """Parse a single product from dictionary data.

    Args:
        product_data: Dictionary containing product data

    Returns:
        ProductRecord object
    """
    return ProductRecord(
        id=str(product_data["id"]),
        name=product_data["name"],
        calories_per_100g=float(product_data["calories_per_100g"]),
        protein_per_100g=float(product_data["protein_per_100g"]),
        carbs_per_100g=float(product_data["carbs_per_100g"]),
        fat_per_100g=float(product_data["fat_per_100g"]),
        food_type=product_data.get("food_type"),
        editable_mode=product_data.get("editable_mode"),
        min_portion_grams=_int_or_none(product_data.get("min_portion_grams")),
        max_portion_grams=_int_or_none(product_data.get("max_portion_grams")),
        portion_step_grams=_int_or_none(product_data.get("portion_step_grams")),
        rounding_rule=product_data.get("rounding_rule"),
        eaten_factor=_float_or_none(product_data.get("eaten_factor")),
        seasoning_rate_per_100g=_float_or_none(product_data.get("seasoning_rate_per_100g")),
        unit_size_g=_int_or_none(product_data.get("unit_size_g")),
        fixed_portion_grams=_int_or_none(product_data.get("fixed_portion_grams")),
        ignore_macros=bool(product_data.get("ignore_macros", False)),
        meal_eligibility=[str(m).lower() for m in product_data.get("meal_eligibility") or []],
    )


class ProductDB:
    """Database for managing products loaded from JSON."""

    def __init__(self, json_path: str):
        """Initialize product database from JSON file.

        Args:
            json_path: Path to JSON file containing products
        """
        self.json_path = Path(json_path)
        self._products: Dict[str, ProductRecord] = {}
        self._load_products()

    def _load_products(self):
        """Load products from JSON file."""
        with open(self.json_path, "r") as f:
            data = json.load(f)

        try:
            for product_data in data.get("products", []):
                product = parse_product(product_data)
                self._products[product.id] = product
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidConfigurationError(str(self.json_path), f"bad product entry: {e}") from e

    def get_all_products(self) -> List[ProductRecord]:
        """Get all products in the database.

        Returns:
            List of all ProductRecord objects
        """
        return list(self._products.values())

    def get_product_by_id(self, product_id: str) -> Optional[ProductRecord]:
        """Get a product by its ID.

        Args:
            product_id: Unique product identifier

        Returns:
            ProductRecord if found, None otherwise
        """
        return self._products.get(product_id)

    def require(self, product_id: str) -> ProductRecord:
        """Get a product by its ID or raise ProductNotFoundError."""
        product = self.get_product_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product
