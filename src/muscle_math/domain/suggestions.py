"""Meal suggestion models in their streamed and finalized forms.

Streamed values arrive as pydantic models whose every field may still be
missing. Finalized values are frozen dataclasses with every field resolved;
``services.favorites.promote_suggestion`` is the only conversion between them.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class _PartialModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PartialGroceryItem(_PartialModel):
    """Grocery item as generated so far."""

    id: UUID | None = None
    name: str | None = None
    url: str | None = None


class PartialGrocerySuggestion(_PartialModel):
    """Meal suggestion as generated so far."""

    id: UUID | None = None
    meal: str | None = None
    items: list[PartialGroceryItem] | None = None
    protein_grams: int | None = Field(default=None, alias="proteinGrams", ge=0)
    calories: int | None = Field(default=None, ge=0)
    estimated_cost: float | None = Field(default=None, alias="estimatedCost", ge=0)
    is_favorited: bool | None = Field(default=None, alias="isFavorited")

    def to_wire(self) -> dict[str, object]:
        """Return the generated fields under their schema names."""
        return self.model_dump(
            by_alias=True,
            exclude_none=True,
            exclude={"id": True, "items": {"__all__": {"id"}}},
        )


class PartialSuggestionSet(_PartialModel):
    """Root object of a streamed snapshot."""

    suggestions: list[PartialGrocerySuggestion] = Field(default_factory=list)


@dataclass(frozen=True)
class GroceryItem:
    """Finalized grocery item."""

    id: UUID
    name: str
    url: str


@dataclass(frozen=True)
class GrocerySuggestion:
    """Finalized meal suggestion stored as a favorite."""

    id: UUID
    meal: str
    items: tuple[GroceryItem, ...]
    protein_grams: int
    calories: int
    estimated_cost: float
    is_favorited: bool
    source_id: UUID | None = None
    favorited_at: datetime | None = None


@dataclass(frozen=True)
class DailyTotals:
    """Summed macros and cost for a set of suggestions."""

    protein_grams: int
    calories: int
    estimated_cost: float
