"""Output formatting for solve results."""

from src.output.formatters import (
    format_result_json,
    format_result_json_string,
    format_result_markdown,
    format_portion_string,
    format_nutrition_breakdown,
)

__all__ = [
    "format_result_json",
    "format_result_json_string",
    "format_result_markdown",
    "format_portion_string",
    "format_nutrition_breakdown",
]
