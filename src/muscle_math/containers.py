"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from muscle_math.adapters.openai_stream_client import OpenAIStreamClient
from muscle_math.adapters.supabase_favorites_repository import (
    SupabaseFavoritesRepository,
)
from muscle_math.config import Settings
from muscle_math.services.favorites import FavoritesService
from muscle_math.services.generation import StreamAggregator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    favorites_service: FavoritesService
    aggregator: StreamAggregator
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    favorites_repository = SupabaseFavoritesRepository(
        supabase_client, table=resolved_settings.favorites_table
    )
    favorites_service = FavoritesService(favorites_repository)
    stream_client = OpenAIStreamClient.create(
        api_key=resolved_settings.openai_api_key,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    aggregator = StreamAggregator(
        client=stream_client,
        favorites=favorites_service,
        timeout_seconds=resolved_settings.generation_timeout_seconds,
        preserve_partial_on_failure=resolved_settings.preserve_partial_on_failure,
    )

    async def close_resources() -> None:
        await stream_client.client.close()

    return AppContainer(
        settings=resolved_settings,
        favorites_service=favorites_service,
        aggregator=aggregator,
        close_resources=close_resources,
    )
