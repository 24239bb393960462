"""FastAPI application factory."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from muscle_math.api.models import PlanRequest, favorite_payload, state_payload
from muscle_math.app_logging import configure_logging
from muscle_math.containers import AppContainer
from muscle_math.domain.profile import SupportedStore
from muscle_math.domain.suggestions import PartialGroceryItem
from muscle_math.errors import InvalidProfileError
from muscle_math.services.links import item_link


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/stores")
    async def stores(request: Request) -> dict[str, object]:
        """Return the store picker options."""
        state_container: AppContainer = request.app.state.container
        return {
            "stores": [store.value for store in SupportedStore],
            "default": state_container.settings.default_store,
        }

    @app.post("/plans")
    async def create_plan(payload: PlanRequest, request: Request) -> dict[str, object]:
        """Generate a plan and return its final state."""
        state_container: AppContainer = request.app.state.container
        meal_count = payload.meal_count or state_container.settings.default_meal_count
        try:
            state = await state_container.aggregator.plan(
                payload.to_profile(), meal_count
            )
        except InvalidProfileError as exc:
            logger.info("Rejected plan request: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=exc.user_message,
            ) from exc
        return state_payload(state)

    @app.post("/plans/stream")
    async def stream_plan(payload: PlanRequest, request: Request) -> StreamingResponse:
        """Generate a plan, streaming each state as a JSON line."""
        state_container: AppContainer = request.app.state.container
        meal_count = payload.meal_count or state_container.settings.default_meal_count
        try:
            generation = state_container.aggregator.prepare(
                payload.to_profile(), meal_count
            )
        except InvalidProfileError as exc:
            logger.info("Rejected plan stream request: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=exc.user_message,
            ) from exc

        async def lines() -> AsyncIterator[str]:
            async for state in state_container.aggregator.generate(
                generation.instructions, generation.prompt, generation.schema
            ):
                yield json.dumps(state_payload(state)) + "\n"

        return StreamingResponse(lines(), media_type="application/x-ndjson")

    @app.get("/plans/current")
    async def current_plan(request: Request) -> dict[str, object]:
        """Return the latest published state."""
        state_container: AppContainer = request.app.state.container
        return state_payload(state_container.aggregator.state)

    @app.post("/plans/current/{suggestion_id}/toggle")
    async def toggle_favorite(
        suggestion_id: UUID, request: Request
    ) -> dict[str, object]:
        """Flip the favorite flag of a suggestion in the current plan."""
        state_container: AppContainer = request.app.state.container
        updated = state_container.aggregator.toggle_favorite(suggestion_id)
        if updated is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"suggestion": updated.model_dump(mode="json")}

    @app.post("/plans/current/{suggestion_id}/favorite")
    async def favorite_suggestion(
        suggestion_id: UUID, request: Request
    ) -> dict[str, object]:
        """Save a suggestion from the current plan to favorites."""
        state_container: AppContainer = request.app.state.container
        partial = state_container.aggregator.find(suggestion_id)
        if partial is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        favorite = state_container.aggregator.favorite_promote(partial)
        return {"favorite": favorite_payload(favorite)}

    @app.get("/favorites")
    async def list_favorites(request: Request) -> dict[str, object]:
        """Return all saved favorites."""
        state_container: AppContainer = request.app.state.container
        favorites = state_container.favorites_service.list_all()
        return {"favorites": [favorite_payload(item) for item in favorites]}

    @app.get("/links")
    async def link_for_item(
        store: str, name: str | None = None, url: str | None = None
    ) -> dict[str, str | None]:
        """Resolve the browser link for a grocery item."""
        return {"link": item_link(PartialGroceryItem(name=name, url=url), store)}

    return app
