"""Custom exceptions for the portioning data layer."""


class ProductNotFoundError(Exception):
    """Raised when a meal plan references a product that is not in the product database."""

    def __init__(self, product_id: str):
        """Initialize exception with product id.

        Args:
            product_id: Id of the product that was not found
        """
        self.product_id = product_id
        super().__init__(f"Product '{product_id}' not found in product database")


class InvalidConfigurationError(Exception):
    """Raised when a settings, product or meal plan file is malformed."""

    def __init__(self, path: str, reason: str):
        """Initialize exception with the offending file and what is wrong with it.

        Args:
            path: Path of the file being loaded
            reason: Human-readable description of the problem
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid configuration in {path}: {reason}")
