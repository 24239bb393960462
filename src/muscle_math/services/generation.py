"""Consume streamed structured output and expose the latest snapshot.

The model capability emits cumulative snapshots of the whole suggestion set.
``StreamAggregator`` replaces its exposed state with each snapshot, tracks the
request lifecycle, and drops output from any call superseded by a newer one.
"""

import asyncio
import dataclasses
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol
from uuid import UUID, uuid4

from muscle_math.domain.profile import UserProfile
from muscle_math.domain.suggestions import (
    DailyTotals,
    GrocerySuggestion,
    PartialGroceryItem,
    PartialGrocerySuggestion,
    PartialSuggestionSet,
)
from muscle_math.errors import (
    GENERATION_FAILED_MESSAGE,
    GenerationFailedError,
    InvalidProfileError,
)
from muscle_math.services.favorites import FavoritesService
from muscle_math.services.requests import GenerationRequest, build_request
from muscle_math.services.totals import compute_totals

logger = logging.getLogger(__name__)


class GenerationPhase(str, Enum):
    """Lifecycle of a generation request."""

    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


_LOADING_PHASES = {GenerationPhase.REQUESTING, GenerationPhase.STREAMING}


@dataclass(frozen=True)
class SuggestionState:
    """Snapshot of everything the presentation layer renders."""

    phase: GenerationPhase = GenerationPhase.IDLE
    request_seq: int = 0
    suggestions: tuple[PartialGrocerySuggestion, ...] = ()
    error_message: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.phase in _LOADING_PHASES


Subscriber = Callable[[SuggestionState], None]


class StructuredStreamClient(Protocol):
    """Interface for a model that streams progressively-filled JSON values."""

    def stream_structured(
        self,
        *,
        instructions: str,
        prompt: str,
        schema: dict[str, object],
    ) -> AsyncIterator[dict[str, object]]:
        """Yield cumulative snapshots of the value being generated."""


@dataclass
class StreamAggregator:
    """Drives generation calls and holds the latest suggestion snapshot."""

    client: StructuredStreamClient
    favorites: FavoritesService
    timeout_seconds: float | None = 60.0
    preserve_partial_on_failure: bool = False
    _state: SuggestionState = field(default_factory=SuggestionState, init=False)
    _sequence: int = field(default=0, init=False)
    _subscribers: list[Subscriber] = field(default_factory=list, init=False)
    _suggestion_ids: list[UUID] = field(default_factory=list, init=False)
    _item_ids: dict[tuple[int, int], UUID] = field(default_factory=dict, init=False)
    _favorite_flags: dict[UUID, bool] = field(default_factory=dict, init=False)

    @property
    def state(self) -> SuggestionState:
        """Return the most recently published state."""
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for state updates; returns an unsubscribe hook."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def prepare(self, profile: UserProfile, meal_count: int) -> GenerationRequest:
        """Build a request, publishing the validation message when inputs are bad."""
        try:
            return build_request(profile, meal_count)
        except InvalidProfileError as exc:
            self._sequence += 1
            self._publish(
                SuggestionState(
                    phase=GenerationPhase.IDLE,
                    request_seq=self._sequence,
                    error_message=exc.user_message,
                )
            )
            raise

    async def plan(self, profile: UserProfile, meal_count: int) -> SuggestionState:
        """Validate inputs, run a generation call and return its final state."""
        request = self.prepare(profile, meal_count)
        final = self._state
        async for state in self.generate(
            request.instructions, request.prompt, request.schema
        ):
            final = state
        return final

    async def generate(
        self, instructions: str, prompt: str, schema: dict[str, object]
    ) -> AsyncIterator[SuggestionState]:
        """Run one generation call, yielding every state it publishes.

        The sequence ends with a COMPLETED or FAILED state, or early and
        silently once a newer call has started. A call abandoned by its
        consumer while still loading is published as FAILED.
        """
        self._sequence += 1
        seq = self._sequence
        self._suggestion_ids = []
        self._item_ids = {}
        self._favorite_flags = {}
        consumer = self._consume(seq, instructions, prompt, schema)
        try:
            yield self._publish(
                SuggestionState(phase=GenerationPhase.REQUESTING, request_seq=seq)
            )
            async for state in consumer:
                yield state
        finally:
            await consumer.aclose()
            if seq == self._sequence and self._state.is_loading:
                logger.warning("Generation call %s abandoned by its consumer", seq)
                self._publish(self._failed_state(seq))

    async def _consume(
        self, seq: int, instructions: str, prompt: str, schema: dict[str, object]
    ) -> AsyncGenerator[SuggestionState, None]:
        stream = aiter(
            self.client.stream_structured(
                instructions=instructions, prompt=prompt, schema=schema
            )
        )
        deadline = None
        if self.timeout_seconds is not None:
            deadline = asyncio.get_running_loop().time() + self.timeout_seconds
        received = 0
        failure: Exception | None = None
        try:
            while seq == self._sequence:
                try:
                    async with asyncio.timeout_at(deadline):
                        raw = await anext(stream)
                    if seq != self._sequence:
                        break
                    snapshot = PartialSuggestionSet.model_validate(raw)
                except StopAsyncIteration:
                    break
                except Exception as exc:  # noqa: BLE001
                    failure = exc
                    break
                received += 1
                yield self._publish(
                    SuggestionState(
                        phase=GenerationPhase.STREAMING,
                        request_seq=seq,
                        suggestions=self._adopt(snapshot),
                    )
                )
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        if seq != self._sequence:
            logger.info("Dropped output of superseded generation call %s", seq)
            return
        if failure is None and received == 0:
            failure = GenerationFailedError("model stream ended without a snapshot")
        if failure is not None:
            logger.error(
                "Generation call %s failed after %s snapshots",
                seq,
                received,
                exc_info=failure,
            )
            yield self._publish(self._failed_state(seq))
            return
        logger.info("Generation call %s completed after %s snapshots", seq, received)
        yield self._publish(
            dataclasses.replace(self._state, phase=GenerationPhase.COMPLETED)
        )

    def _failed_state(self, seq: int) -> SuggestionState:
        kept = self._state.suggestions if self.preserve_partial_on_failure else ()
        return SuggestionState(
            phase=GenerationPhase.FAILED,
            request_seq=seq,
            suggestions=kept,
            error_message=GENERATION_FAILED_MESSAGE,
        )

    def find(self, suggestion_id: UUID) -> PartialGrocerySuggestion | None:
        """Return the suggestion with ``suggestion_id`` in the current snapshot."""
        for suggestion in self._state.suggestions:
            if suggestion.id == suggestion_id:
                return suggestion
        return None

    def toggle_favorite(self, suggestion_id: UUID) -> PartialGrocerySuggestion | None:
        """Flip the favorite flag on the current snapshot only."""
        updated: PartialGrocerySuggestion | None = None
        suggestions = []
        for suggestion in self._state.suggestions:
            if suggestion.id == suggestion_id:
                flag = not suggestion.is_favorited
                self._favorite_flags[suggestion_id] = flag
                updated = suggestion.model_copy(update={"is_favorited": flag})
                suggestions.append(updated)
            else:
                suggestions.append(suggestion)
        if updated is not None:
            self._publish(
                dataclasses.replace(self._state, suggestions=tuple(suggestions))
            )
        return updated

    def favorite_promote(self, partial: PartialGrocerySuggestion) -> GrocerySuggestion:
        """Finalize a streamed suggestion and add it to favorites."""
        return self.favorites.promote(partial)

    def totals(self) -> DailyTotals:
        """Return totals over the current snapshot."""
        return compute_totals(self._state.suggestions)

    def _publish(self, state: SuggestionState) -> SuggestionState:
        self._state = state
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception:
                logger.exception("State subscriber failed")
        return state

    def _adopt(
        self, snapshot: PartialSuggestionSet
    ) -> tuple[PartialGrocerySuggestion, ...]:
        """Stamp stable ids and user favorite flags onto a fresh snapshot."""
        adopted = []
        for index, suggestion in enumerate(snapshot.suggestions):
            if index == len(self._suggestion_ids):
                self._suggestion_ids.append(uuid4())
            suggestion_id = self._suggestion_ids[index]
            update: dict[str, object] = {"id": suggestion_id}
            if suggestion.items is not None:
                update["items"] = [
                    self._adopt_item(index, position, item)
                    for position, item in enumerate(suggestion.items)
                ]
            if suggestion_id in self._favorite_flags:
                update["is_favorited"] = self._favorite_flags[suggestion_id]
            elif suggestion.is_favorited:
                # Only user action may set the flag.
                update["is_favorited"] = False
            adopted.append(suggestion.model_copy(update=update))
        return tuple(adopted)

    def _adopt_item(
        self, index: int, position: int, item: PartialGroceryItem
    ) -> PartialGroceryItem:
        item_id = self._item_ids.setdefault((index, position), uuid4())
        return item.model_copy(update={"id": item_id})
