"""Shared test fixtures."""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import pytest

from muscle_math.config import Settings
from muscle_math.containers import AppContainer
from muscle_math.domain.profile import UserProfile
from muscle_math.domain.suggestions import GrocerySuggestion
from muscle_math.services.favorites import FavoritesRepository, FavoritesService
from muscle_math.services.generation import StreamAggregator, StructuredStreamClient


@dataclass
class InMemoryFavoritesRepository(FavoritesRepository):
    """In-memory favorites repository for tests."""

    favorites: list[GrocerySuggestion] = field(default_factory=list)

    def append(self, suggestion: GrocerySuggestion) -> None:
        self.favorites.append(suggestion)

    def list_all(self) -> list[GrocerySuggestion]:
        return list(self.favorites)

    def replace(self, suggestion: GrocerySuggestion) -> None:
        self.favorites = [
            suggestion if favorite.id == suggestion.id else favorite
            for favorite in self.favorites
        ]


@dataclass
class FakeStreamClient(StructuredStreamClient):
    """Fake model client replaying scripted snapshots."""

    snapshots: list[dict[str, object]] = field(default_factory=list)
    error: Exception | None = None
    delay: float = 0.0
    calls: list[dict[str, object]] = field(default_factory=list)

    async def stream_structured(
        self,
        *,
        instructions: str,
        prompt: str,
        schema: dict[str, object],
    ) -> AsyncIterator[dict[str, object]]:
        self.calls.append(
            {"instructions": instructions, "prompt": prompt, "schema": schema}
        )
        for snapshot in self.snapshots:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield snapshot
        if self.error is not None:
            raise self.error


def snapshot(*suggestions: dict[str, object]) -> dict[str, object]:
    return {"suggestions": list(suggestions)}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="openai-key",
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
    )


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(
        age=30,
        current_weight=230,
        goal_weight=200,
        store="Target",
        target_protein=170,
    )


@pytest.fixture
def favorites_repository() -> InMemoryFavoritesRepository:
    return InMemoryFavoritesRepository()


@pytest.fixture
def stream_client() -> FakeStreamClient:
    return FakeStreamClient(
        snapshots=[
            snapshot({"meal": "🍗 Chicken"}),
            snapshot(
                {
                    "meal": "🍗 Chicken Bowl",
                    "items": [{"name": "🍗 Chicken breast"}],
                    "proteinGrams": 45,
                }
            ),
            snapshot(
                {
                    "meal": "🍗 Chicken Bowl",
                    "items": [
                        {
                            "name": "🍗 Chicken breast",
                            "url": "https://www.target.com/s?searchTerm=chicken",
                        },
                        {"name": "🍚 Rice"},
                    ],
                    "proteinGrams": 45,
                    "calories": 600,
                    "estimatedCost": 7.5,
                    "isFavorited": False,
                }
            ),
        ]
    )


@pytest.fixture
def container(
    settings: Settings,
    favorites_repository: InMemoryFavoritesRepository,
    stream_client: FakeStreamClient,
) -> AppContainer:
    favorites_service = FavoritesService(favorites_repository)
    aggregator = StreamAggregator(
        client=stream_client,
        favorites=favorites_service,
        timeout_seconds=settings.generation_timeout_seconds,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        favorites_service=favorites_service,
        aggregator=aggregator,
        close_resources=close_resources,
    )
