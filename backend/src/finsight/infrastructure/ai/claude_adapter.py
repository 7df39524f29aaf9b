"""Anthropic/Claude adapter.

Claude is called single-shot per step: each completion's text is emitted as
one delta, and ``tool_use`` stops run through the same bounded tool loop the
OpenAI adapter uses.
"""

import json
from collections.abc import AsyncIterator
from typing import Any, cast

import anthropic
from anthropic.types import MessageParam, ToolParam, ToolResultBlockParam
from pydantic import BaseModel
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finsight.infrastructure.ai.base import (
    DEFAULT_OBJECT_GENERATION_MODE,
    ModelMessage,
    ObjectDelta,
    ObjectOutput,
    StreamPart,
    TextDelta,
    ToolCallPart,
    ToolDefinition,
    ToolResultPart,
    ToolSet,
    object_instructions,
    parse_json_response,
    unwrap_output,
)
from finsight.infrastructure.ai.cost_tracker import CostTracker, get_cost_tracker
from finsight.shared.exceptions import ProviderError
from finsight.shared.logging import get_logger

logger = get_logger(__name__)

PROVIDER = "claude"


def _convert_messages(messages: list[ModelMessage]) -> list[MessageParam]:
    """Convert to Anthropic messages, merging consecutive same-role turns."""
    converted: list[MessageParam] = []
    for message in messages:
        if converted and converted[-1]["role"] == message.role:
            previous = cast(str, converted[-1]["content"])
            converted[-1] = MessageParam(
                role=message.role, content=f"{previous}\n\n{message.content}"
            )
            continue
        converted.append(MessageParam(role=message.role, content=message.content))
    # The API requires the first turn to come from the user
    while converted and converted[0]["role"] != "user":
        converted.pop(0)
    return converted


def _convert_tools(definitions: list[ToolDefinition]) -> list[ToolParam]:
    return [
        ToolParam(
            name=tool.name,
            description=tool.description,
            input_schema=cast(Any, tool.input_schema),
        )
        for tool in definitions
    ]


def _text_of(response: Any) -> str:
    return "".join(
        block.text for block in response.content if getattr(block, "type", None) == "text"
    )


class ClaudeAdapter:
    """Adapter for the Anthropic Messages API."""

    provider = PROVIDER
    default_object_generation_mode = DEFAULT_OBJECT_GENERATION_MODE

    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model_id: str,
        max_tokens: int = 2048,
        cost_tracker: CostTracker | None = None,
    ) -> None:
        self.client = client
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.cost_tracker = cost_tracker or get_cost_tracker()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((anthropic.APITimeoutError, anthropic.APIConnectionError)),
        reraise=True,
    )
    async def call_api(
        self,
        messages: list[MessageParam],
        system: str | None = None,
        tools: list[ToolParam] | None = None,
    ) -> anthropic.types.Message:
        """Call Anthropic API with retry logic for transient errors."""
        kwargs: dict[str, Any] = {}
        if system:
            kwargs["system"] = system
        if tools:
            kwargs["tools"] = tools
        return await self.client.messages.create(
            model=self.model_id,
            max_tokens=self.max_tokens,
            messages=messages,
            **kwargs,
        )

    async def _create(
        self,
        messages: list[MessageParam],
        action: str,
        system: str | None = None,
        tools: list[ToolParam] | None = None,
    ) -> anthropic.types.Message:
        try:
            response = await self.call_api(messages, system=system, tools=tools)
        except anthropic.AnthropicError as exc:
            raise ProviderError(PROVIDER, str(exc)) from exc

        usage = getattr(response, "usage", None)
        if usage:
            self.cost_tracker.record(
                provider=PROVIDER,
                model=self.model_id,
                input_tokens=usage.input_tokens,
                output_tokens=usage.output_tokens,
                action=action,
            )
        return response

    async def generate_text(
        self,
        messages: list[ModelMessage],
        *,
        system: str | None = None,
    ) -> str:
        response = await self._create(_convert_messages(messages), "generate_text", system=system)
        return _text_of(response)

    async def stream_text(
        self,
        messages: list[ModelMessage],
        *,
        system: str | None = None,
        tools: ToolSet | None = None,
        max_steps: int = 1,
    ) -> AsyncIterator[StreamPart]:
        conversation = _convert_messages(messages)
        tool_params = _convert_tools(tools.definitions()) if tools is not None else None

        response = await self._create(conversation, "stream_text", system, tool_params)
        step = 1
        while True:
            text = _text_of(response)
            if text:
                yield TextDelta(text)

            tool_uses = [
                block for block in response.content if getattr(block, "type", None) == "tool_use"
            ]
            if response.stop_reason != "tool_use" or not tool_uses or tools is None:
                return
            if step >= max_steps:
                logger.info("claude_max_steps_reached", max_steps=max_steps)
                return

            tool_results: list[ToolResultBlockParam] = []
            for block in tool_uses:
                args = dict(block.input) if isinstance(block.input, dict) else {}
                yield ToolCallPart(tool_call_id=block.id, tool_name=block.name, args=args)
                outcome = await tools.execute(block.name, args)
                yield ToolResultPart(
                    tool_call_id=block.id,
                    tool_name=block.name,
                    args=args,
                    result=outcome.payload,
                )
                tool_results.append(
                    ToolResultBlockParam(
                        type="tool_result",
                        tool_use_id=block.id,
                        content=json.dumps(outcome.payload, default=str),
                    )
                )

            conversation.append(MessageParam(role="assistant", content=cast(Any, response.content)))
            conversation.append(MessageParam(role="user", content=tool_results))

            response = await self._create(conversation, "stream_text_tool_followup", system, tool_params)
            step += 1

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
        response = await self._create(
            [MessageParam(role="user", content=prompt)], "stream_object", system=full_system
        )
        try:
            value = unwrap_output(parse_json_response(_text_of(response)), output)
        except ValueError:
            value = None
        if value is None:
            logger.warning("claude_object_parse_failed", model=self.model_id)
            value = fallback
        yield ObjectDelta(value)
