"""OpenAI adapter with native token streaming and a bounded tool loop."""

import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, cast

import openai
from openai import AsyncOpenAI
from openai.types.chat import (
    ChatCompletionAssistantMessageParam,
    ChatCompletionMessageParam,
    ChatCompletionSystemMessageParam,
    ChatCompletionToolMessageParam,
    ChatCompletionToolParam,
    ChatCompletionUserMessageParam,
)
from openai.types.shared_params.function_definition import FunctionDefinition
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
    parse_partial_json,
    unwrap_output,
)
from finsight.infrastructure.ai.cost_tracker import CostTracker, get_cost_tracker
from finsight.shared.exceptions import ProviderError
from finsight.shared.logging import get_logger

logger = get_logger(__name__)

PROVIDER = "openai"


@dataclass(slots=True)
class _PendingToolCall:
    id: str = ""
    name: str = ""
    arguments: list[str] = field(default_factory=list)

    def parsed_arguments(self) -> dict[str, Any]:
        try:
            value = json.loads("".join(self.arguments) or "{}")
        except json.JSONDecodeError:
            return {}
        return value if isinstance(value, dict) else {}


def _convert_messages(
    messages: list[ModelMessage], system: str | None
) -> list[ChatCompletionMessageParam]:
    converted: list[ChatCompletionMessageParam] = []
    if system:
        converted.append(ChatCompletionSystemMessageParam(role="system", content=system))
    for message in messages:
        if message.role == "user":
            converted.append(ChatCompletionUserMessageParam(role="user", content=message.content))
        else:
            converted.append(
                ChatCompletionAssistantMessageParam(role="assistant", content=message.content)
            )
    return converted


def _convert_tools(definitions: list[ToolDefinition]) -> list[ChatCompletionToolParam]:
    return [
        ChatCompletionToolParam(
            type="function",
            function=FunctionDefinition(
                name=tool.name,
                description=tool.description,
                parameters=cast(Any, tool.input_schema),
            ),
        )
        for tool in definitions
    ]


class OpenAIAdapter:
    """Adapter for OpenAI chat completions."""

    provider = PROVIDER
    default_object_generation_mode = DEFAULT_OBJECT_GENERATION_MODE

    def __init__(
        self,
        client: AsyncOpenAI,
        model_id: str,
        max_tokens: int = 4096,
        cost_tracker: CostTracker | None = None,
    ) -> None:
        self.client = client
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.cost_tracker = cost_tracker or get_cost_tracker()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((openai.APITimeoutError, openai.APIConnectionError)),
        reraise=True,
    )
    async def call_api(self, **kwargs: Any) -> Any:
        """Create a completion (or open a stream) with retry on transient errors."""
        return await self.client.chat.completions.create(
            model=self.model_id,
            max_tokens=self.max_tokens,
            **kwargs,
        )

    def _track_usage(self, usage: Any, action: str) -> None:
        if not usage:
            return
        self.cost_tracker.record(
            provider=PROVIDER,
            model=self.model_id,
            input_tokens=getattr(usage, "prompt_tokens", 0),
            output_tokens=getattr(usage, "completion_tokens", 0),
            action=action,
        )

    async def generate_text(
        self,
        messages: list[ModelMessage],
        *,
        system: str | None = None,
    ) -> str:
        try:
            response = await self.call_api(messages=_convert_messages(messages, system))
        except openai.OpenAIError as exc:
            raise ProviderError(PROVIDER, str(exc)) from exc

        self._track_usage(getattr(response, "usage", None), "generate_text")
        return response.choices[0].message.content or ""

    async def stream_text(
        self,
        messages: list[ModelMessage],
        *,
        system: str | None = None,
        tools: ToolSet | None = None,
        max_steps: int = 1,
    ) -> AsyncIterator[StreamPart]:
        conversation = _convert_messages(messages, system)
        tool_params = _convert_tools(tools.definitions()) if tools is not None else []

        for step in range(max(1, max_steps)):
            kwargs: dict[str, Any] = {
                "messages": conversation,
                "stream": True,
                "stream_options": {"include_usage": True},
            }
            if tool_params:
                kwargs["tools"] = tool_params

            text_parts: list[str] = []
            pending: dict[int, _PendingToolCall] = {}
            finish_reason: str | None = None

            try:
                stream = await self.call_api(**kwargs)
                async for chunk in stream:
                    self._track_usage(getattr(chunk, "usage", None), "stream_text")
                    if not chunk.choices:
                        continue
                    choice = chunk.choices[0]
                    delta = choice.delta
                    if delta.content:
                        text_parts.append(delta.content)
                        yield TextDelta(delta.content)
                    for tool_delta in delta.tool_calls or []:
                        call = pending.setdefault(tool_delta.index, _PendingToolCall())
                        if tool_delta.id:
                            call.id = tool_delta.id
                        function = tool_delta.function
                        if function is not None:
                            if function.name:
                                call.name += function.name
                            if function.arguments:
                                call.arguments.append(function.arguments)
                    if choice.finish_reason:
                        finish_reason = choice.finish_reason
            except openai.OpenAIError as exc:
                raise ProviderError(PROVIDER, str(exc)) from exc

            if finish_reason != "tool_calls" or not pending or tools is None:
                return

            calls = [pending[index] for index in sorted(pending)]
            conversation.append(
                ChatCompletionAssistantMessageParam(
                    role="assistant",
                    content="".join(text_parts) or None,
                    tool_calls=[
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {"name": call.name, "arguments": "".join(call.arguments)},
                        }
                        for call in calls
                    ],
                )
            )

            # Tool calls run one at a time in the order the model issued them
            for call in calls:
                args = call.parsed_arguments()
                yield ToolCallPart(tool_call_id=call.id, tool_name=call.name, args=args)
                outcome = await tools.execute(call.name, args)
                yield ToolResultPart(
                    tool_call_id=call.id,
                    tool_name=call.name,
                    args=args,
                    result=outcome.payload,
                )
                conversation.append(
                    ChatCompletionToolMessageParam(
                        role="tool",
                        tool_call_id=call.id,
                        content=json.dumps(outcome.payload, default=str),
                    )
                )

            logger.debug("openai_tool_step_finished", step=step + 1, tool_calls=len(calls))

        logger.info("openai_max_steps_reached", max_steps=max_steps)

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
        messages = _convert_messages([ModelMessage(role="user", content=prompt)], full_system)

        buffer: list[str] = []
        last: Any = None
        try:
            stream = await self.call_api(
                messages=messages,
                stream=True,
                stream_options={"include_usage": True},
                response_format={"type": "json_object"},
            )
            async for chunk in stream:
                self._track_usage(getattr(chunk, "usage", None), "stream_object")
                if not chunk.choices or not chunk.choices[0].delta.content:
                    continue
                buffer.append(chunk.choices[0].delta.content)
                partial = unwrap_output(parse_partial_json("".join(buffer)), output)
                if partial is not None and partial != last:
                    last = partial
                    yield ObjectDelta(partial)
        except openai.OpenAIError as exc:
            raise ProviderError(PROVIDER, str(exc)) from exc

        final = unwrap_output(parse_partial_json("".join(buffer)), output)
        if final is None:
            logger.warning("openai_object_parse_failed", model=self.model_id)
            yield ObjectDelta(fallback)
