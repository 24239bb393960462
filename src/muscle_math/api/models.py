"""Request and response models for the HTTP API."""

from dataclasses import asdict

from pydantic import BaseModel, Field

from muscle_math.domain.profile import UserProfile
from muscle_math.domain.suggestions import GrocerySuggestion
from muscle_math.services.generation import SuggestionState
from muscle_math.services.totals import compute_totals, format_cost


class PlanRequest(BaseModel):
    """User inputs for a plan; validity is checked by the request builder."""

    age: int | None = None
    current_weight: float | None = None
    goal_weight: float | None = None
    store: str = ""
    target_protein: float | None = None
    target_carbs: float | None = None
    target_fat: float | None = None
    meal_count: int | None = Field(default=None, ge=1)

    def to_profile(self) -> UserProfile:
        return UserProfile(
            age=self.age,
            current_weight=self.current_weight,
            goal_weight=self.goal_weight,
            store=self.store,
            target_protein=self.target_protein,
            target_carbs=self.target_carbs,
            target_fat=self.target_fat,
        )


def state_payload(state: SuggestionState) -> dict[str, object]:
    """Serialize an aggregator state for clients."""
    totals = compute_totals(state.suggestions)
    return {
        "phase": state.phase.value,
        "request_seq": state.request_seq,
        "is_loading": state.is_loading,
        "error_message": state.error_message,
        "suggestions": [
            suggestion.model_dump(mode="json") for suggestion in state.suggestions
        ],
        "totals": {
            **asdict(totals),
            "estimated_cost_display": format_cost(totals.estimated_cost),
        },
    }


def favorite_payload(favorite: GrocerySuggestion) -> dict[str, object]:
    """Serialize a stored favorite."""
    payload = asdict(favorite)
    payload["id"] = str(favorite.id)
    payload["source_id"] = str(favorite.source_id) if favorite.source_id else None
    payload["items"] = [
        {"id": str(item.id), "name": item.name, "url": item.url}
        for item in favorite.items
    ]
    payload["favorited_at"] = (
        favorite.favorited_at.isoformat() if favorite.favorited_at else None
    )
    payload["estimated_cost_display"] = format_cost(favorite.estimated_cost)
    return payload
