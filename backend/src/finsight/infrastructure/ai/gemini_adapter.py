"""Google Gemini adapter (google-genai).

Gemini is called single-shot: the full answer is emitted as one text delta
and tools are not bound.
"""

from collections.abc import AsyncIterator
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel

from finsight.infrastructure.ai.base import (
    DEFAULT_OBJECT_GENERATION_MODE,
    ModelMessage,
    ObjectDelta,
    ObjectOutput,
    StreamPart,
    TextDelta,
    ToolSet,
    object_instructions,
    parse_json_response,
    unwrap_output,
)
from finsight.infrastructure.ai.cost_tracker import CostTracker, get_cost_tracker
from finsight.shared.exceptions import ProviderError
from finsight.shared.logging import get_logger

logger = get_logger(__name__)

PROVIDER = "gemini"


def _convert_messages(messages: list[ModelMessage]) -> list[types.Content]:
    return [
        types.Content(
            role="user" if message.role == "user" else "model",
            parts=[types.Part(text=message.content)],
        )
        for message in messages
    ]


class GeminiAdapter:
    """Adapter for Gemini ``generate_content``."""

    provider = PROVIDER
    default_object_generation_mode = DEFAULT_OBJECT_GENERATION_MODE

    def __init__(
        self,
        client: genai.Client,
        model_id: str,
        max_tokens: int = 4096,
        cost_tracker: CostTracker | None = None,
    ) -> None:
        self.client = client
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.cost_tracker = cost_tracker or get_cost_tracker()

    async def _generate(
        self,
        contents: list[types.Content],
        action: str,
        system: str | None = None,
        json_mode: bool = False,
    ) -> str:
        config = types.GenerateContentConfig(
            system_instruction=system,
            max_output_tokens=self.max_tokens,
            response_mime_type="application/json" if json_mode else None,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_id,
                contents=contents,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise ProviderError(PROVIDER, str(exc) or type(exc).__name__) from exc

        usage = getattr(response, "usage_metadata", None)
        if usage:
            self.cost_tracker.record(
                provider=PROVIDER,
                model=self.model_id,
                input_tokens=usage.prompt_token_count,
                output_tokens=usage.candidates_token_count,
                action=action,
            )
        return response.text or ""

    async def generate_text(
        self,
        messages: list[ModelMessage],
        *,
        system: str | None = None,
    ) -> str:
        return await self._generate(_convert_messages(messages), "generate_text", system)

    async def stream_text(
        self,
        messages: list[ModelMessage],
        *,
        system: str | None = None,
        tools: ToolSet | None = None,
        max_steps: int = 1,
    ) -> AsyncIterator[StreamPart]:
        if tools is not None:
            logger.debug("gemini_tools_not_bound", model=self.model_id)
        text = await self._generate(_convert_messages(messages), "stream_text", system)
        yield TextDelta(text)

    async def stream_object(
        self,
        prompt: str,
        schema: type[BaseModel],
        *,
        system: str | None = None,
        output: ObjectOutput = "object",
        fallback: Any = None,
    ) -> AsyncIterator[ObjectDelta]:
        instructions = object_instructions(schema, output)
        full_system = f"{system}\n\n{instructions}" if system else instructions
        text = await self._generate(
            _convert_messages([ModelMessage(role="user", content=prompt)]),
            "stream_object",
            full_system,
            json_mode=True,
        )
        try:
            value = unwrap_output(parse_json_response(text), output)
        except ValueError:
            value = None
        if value is None:
            logger.warning("gemini_object_parse_failed", model=self.model_id)
            value = fallback
        yield ObjectDelta(value)
