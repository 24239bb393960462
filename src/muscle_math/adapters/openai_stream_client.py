"""OpenAI Responses API client that streams structured output."""

from collections.abc import AsyncIterator
from dataclasses import dataclass

from openai import AsyncOpenAI
from pydantic_core import from_json

from muscle_math.errors import GenerationFailedError
from muscle_math.services.generation import StructuredStreamClient

_TEXT_DELTA = "response.output_text.delta"
_FAILURE_EVENTS = {"response.failed", "response.incomplete", "error"}
# A prefix ending in one of these has no scalar still being written.
_VALUE_BOUNDARIES = frozenset("\"{}[],:")


@dataclass
class OpenAIStreamClient(StructuredStreamClient):
    """Structured stream client backed by OpenAI Responses API."""

    client: AsyncOpenAI
    model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(
        cls,
        api_key: str,
        model: str,
        reasoning_effort: str | None = None,
        store: bool = False,
    ) -> "OpenAIStreamClient":
        """Create an OpenAI stream client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def stream_structured(
        self,
        *,
        instructions: str,
        prompt: str,
        schema: dict[str, object],
    ) -> AsyncIterator[dict[str, object]]:
        """Stream JSON text and yield each newly parseable snapshot."""
        request_payload: dict[str, object] = {
            "model": self.model,
            "instructions": instructions,
            "input": prompt,
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "grocery_suggestions",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": self.store,
            "stream": True,
        }
        if self.reasoning_effort:
            request_payload["reasoning"] = {"effort": self.reasoning_effort}

        stream = await self.client.responses.create(**request_payload)
        buffer = ""
        last: object = None
        try:
            async for event in stream:
                if event.type in _FAILURE_EVENTS:
                    raise GenerationFailedError(
                        f"OpenAI stream reported {event.type}"
                    )
                if event.type != _TEXT_DELTA:
                    continue
                buffer += event.delta
                snapshot = parse_partial_json(buffer)
                if isinstance(snapshot, dict) and snapshot != last:
                    last = snapshot
                    yield snapshot
        finally:
            await stream.close()


def parse_partial_json(text: str) -> object | None:
    """Parse the complete values in a JSON prefix, if any.

    A number or literal at the very end of ``text`` may still be growing
    (``6`` before ``600``), so it is dropped until a delimiter follows it.
    """
    if not text.strip():
        return None
    if text[-1] not in _VALUE_BOUNDARIES and not text[-1].isspace():
        cut = max(text.rfind(delimiter) for delimiter in ",{[")
        if cut < 0:
            return None
        text = text[: cut + 1]
    try:
        return from_json(text, allow_partial=True)
    except ValueError:
        return None
