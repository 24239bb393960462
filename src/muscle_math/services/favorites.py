"""Favorites: promotion of streamed suggestions and durable storage."""

import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from muscle_math.domain.suggestions import (
    GroceryItem,
    GrocerySuggestion,
    PartialGroceryItem,
    PartialGrocerySuggestion,
)

DEFAULT_MEAL_NAME = "Meal"
DEFAULT_ITEM_NAME = "No Value"

logger = logging.getLogger(__name__)


class FavoritesRepository(Protocol):
    """Persistence interface for favorited suggestions."""

    def append(self, suggestion: GrocerySuggestion) -> None:
        """Store a favorited suggestion after existing ones."""

    def list_all(self) -> list[GrocerySuggestion]:
        """Return all favorites in the order they were added."""

    def replace(self, suggestion: GrocerySuggestion) -> None:
        """Overwrite the stored favorite with the same id."""


def promote_suggestion(
    partial: PartialGrocerySuggestion, now: datetime | None = None
) -> GrocerySuggestion:
    """Resolve every missing field of a streamed suggestion to its default."""
    meal = (partial.meal or "").strip()
    return GrocerySuggestion(
        id=uuid4(),
        meal=meal or DEFAULT_MEAL_NAME,
        items=tuple(_promote_item(item) for item in partial.items or []),
        protein_grams=partial.protein_grams or 0,
        calories=partial.calories or 0,
        estimated_cost=partial.estimated_cost or 0.0,
        is_favorited=True,
        source_id=partial.id,
        favorited_at=now or datetime.now(tz=UTC),
    )


def _promote_item(item: PartialGroceryItem) -> GroceryItem:
    name = (item.name or "").strip()
    return GroceryItem(
        id=uuid4(),
        name=name or DEFAULT_ITEM_NAME,
        url=(item.url or "").strip(),
    )


@dataclass
class FavoritesService:
    """Promotes suggestions into the favorites repository.

    Promotion is keyed on the source suggestion: favoriting the same streamed
    suggestion again returns the stored favorite, refreshed in place when the
    suggestion has filled in since. Partials without an id are always appended.
    """

    repository: FavoritesRepository
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def promote(self, partial: PartialGrocerySuggestion) -> GrocerySuggestion:
        """Promote a streamed suggestion and append it to favorites."""
        with self._lock:
            existing = None
            if partial.id is not None:
                existing = self._find_by_source(partial.id)
            if existing is None:
                favorite = promote_suggestion(partial)
                self.repository.append(favorite)
                logger.info("Favorited suggestion %s as %s", partial.id, favorite.id)
                return favorite
            refreshed = promote_suggestion(partial, now=existing.favorited_at)
            if _same_content(existing, refreshed):
                logger.info("Suggestion %s already favorited", partial.id)
                return existing
            favorite = dataclasses.replace(refreshed, id=existing.id)
            self.repository.replace(favorite)
            logger.info("Refreshed favorite %s from %s", favorite.id, partial.id)
            return favorite

    def list_all(self) -> list[GrocerySuggestion]:
        """Return all favorites."""
        return self.repository.list_all()

    def _find_by_source(self, source_id: UUID) -> GrocerySuggestion | None:
        for favorite in self.repository.list_all():
            if favorite.source_id == source_id:
                return favorite
        return None


def _same_content(left: GrocerySuggestion, right: GrocerySuggestion) -> bool:
    # Item ids are minted on every promotion, so compare what the user sees.
    return (
        left.meal == right.meal
        and [(i.name, i.url) for i in left.items]
        == [(i.name, i.url) for i in right.items]
        and left.protein_grams == right.protein_grams
        and left.calories == right.calories
        and left.estimated_cost == right.estimated_cost
    )
