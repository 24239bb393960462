"""Totals shown beneath the suggestion list."""

from collections.abc import Iterable

from muscle_math.domain.suggestions import (
    DailyTotals,
    GrocerySuggestion,
    PartialGrocerySuggestion,
)


def compute_totals(
    suggestions: Iterable[PartialGrocerySuggestion | GrocerySuggestion],
) -> DailyTotals:
    """Sum protein, calories and cost, counting missing values as zero."""
    protein = 0
    calories = 0
    cost = 0.0
    for suggestion in suggestions:
        protein += suggestion.protein_grams or 0
        calories += suggestion.calories or 0
        cost += suggestion.estimated_cost or 0.0
    return DailyTotals(protein_grams=protein, calories=calories, estimated_cost=cost)


def format_cost(cost: float | None) -> str:
    """Format a USD amount for display."""
    if cost is None:
        return "$0.00"
    return f"${cost:.2f}"
