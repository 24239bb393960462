"""Supabase repository for favorited suggestions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from muscle_math.domain.suggestions import GroceryItem, GrocerySuggestion
from muscle_math.services.favorites import FavoritesRepository


@dataclass
class SupabaseFavoritesRepository(FavoritesRepository):
    """Supabase-backed favorites repository."""

    client: Client
    table: str = "favorite_suggestions"

    def append(self, suggestion: GrocerySuggestion) -> None:
        """Insert a favorite row."""
        response = (
            self.client.table(self.table).insert(_to_row(suggestion)).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to store favorite suggestion")

    def replace(self, suggestion: GrocerySuggestion) -> None:
        """Update the favorite row with the same id."""
        response = (
            self.client.table(self.table)
            .update(_to_row(suggestion))
            .eq("id", str(suggestion.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update favorite suggestion")

    def list_all(self) -> list[GrocerySuggestion]:
        """Return favorites oldest first."""
        response = (
            self.client.table(self.table)
            .select("*")
            .order("favorited_at", desc=False)
            .execute()
        )
        return [_parse_favorite(row) for row in response.data or []]


def _to_row(suggestion: GrocerySuggestion) -> dict[str, object]:
    return {
        "id": str(suggestion.id),
        "source_id": str(suggestion.source_id) if suggestion.source_id else None,
        "meal": suggestion.meal,
        "items": [
            {"id": str(item.id), "name": item.name, "url": item.url}
            for item in suggestion.items
        ],
        "protein_grams": suggestion.protein_grams,
        "calories": suggestion.calories,
        "estimated_cost": suggestion.estimated_cost,
        "is_favorited": suggestion.is_favorited,
        "favorited_at": (
            suggestion.favorited_at.isoformat() if suggestion.favorited_at else None
        ),
    }


def _parse_favorite(row: dict[str, object]) -> GrocerySuggestion:
    source_id = row.get("source_id")
    favorited_at = row.get("favorited_at")
    return GrocerySuggestion(
        id=UUID(str(row["id"])),
        meal=str(row.get("meal") or ""),
        items=tuple(
            GroceryItem(
                id=UUID(str(item["id"])),
                name=str(item.get("name") or ""),
                url=str(item.get("url") or ""),
            )
            for item in row.get("items") or []
        ),
        protein_grams=int(row.get("protein_grams") or 0),
        calories=int(row.get("calories") or 0),
        estimated_cost=float(row.get("estimated_cost") or 0.0),
        is_favorited=bool(row.get("is_favorited", True)),
        source_id=UUID(str(source_id)) if source_id else None,
        favorited_at=datetime.fromisoformat(str(favorited_at))
        if favorited_at
        else None,
    )
