"""Provider-agnostic language model contract.

Every vendor adapter exposes the same three operations:

- ``generate_text``: one-shot completion returning the full text.
- ``stream_text``: ordered stream of parts (text deltas, tool calls, tool
  results). Adapters that cannot stream emit the whole answer as one delta.
- ``stream_object``: JSON-mode generation yielding successive partial objects.
  A response that is not valid JSON yields the caller's fallback instead of
  raising.
"""

import json
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from pydantic import BaseModel

DEFAULT_OBJECT_GENERATION_MODE = "json"

ObjectOutput = Literal["object", "array"]


# ----- Messages -----


@dataclass(frozen=True)
class ModelMessage:
    """Normalized conversation turn handed to an adapter."""

    role: Literal["user", "assistant"]
    content: str


# ----- Stream parts -----


@dataclass(frozen=True)
class TextDelta:
    text_delta: str


@dataclass(frozen=True)
class ToolCallPart:
    tool_call_id: str
    tool_name: str
    args: dict[str, Any]


@dataclass(frozen=True)
class ToolResultPart:
    tool_call_id: str
    tool_name: str
    args: dict[str, Any]
    result: Any


StreamPart = TextDelta | ToolCallPart | ToolResultPart


@dataclass(frozen=True)
class ObjectDelta:
    """Snapshot of the object generated so far."""

    object: Any


# ----- Tools -----


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=dict)


class ToolOutcome(Protocol):
    @property
    def payload(self) -> Any: ...


class ToolSet(Protocol):
    """Tools an adapter may bind into a multi-step generation."""

    def definitions(self) -> list[ToolDefinition]: ...

    async def execute(self, tool_name: str, tool_input: dict[str, Any]) -> ToolOutcome: ...


# ----- Adapter protocol -----


class LanguageModel(Protocol):
    provider: str
    model_id: str
    default_object_generation_mode: str

    async def generate_text(
        self,
        messages: list[ModelMessage],
        *,
        system: str | None = None,
    ) -> str: ...

    def stream_text(
        self,
        messages: list[ModelMessage],
        *,
        system: str | None = None,
        tools: ToolSet | None = None,
        max_steps: int = 1,
    ) -> AsyncIterator[StreamPart]: ...

    def stream_object(
        self,
        prompt: str,
        schema: type[BaseModel],
        *,
        system: str | None = None,
        output: ObjectOutput = "object",
        fallback: Any = None,
    ) -> AsyncIterator[ObjectDelta]: ...


async def generate_object(
    model: LanguageModel,
    prompt: str,
    schema: type[BaseModel],
    *,
    system: str | None = None,
    output: ObjectOutput = "object",
    fallback: Any = None,
) -> Any:
    """Run ``stream_object`` to completion and return the final object."""
    final: Any = fallback
    async for delta in model.stream_object(
        prompt, schema, system=system, output=output, fallback=fallback
    ):
        final = delta.object
    return final


# ----- JSON mode helpers -----

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def object_instructions(schema: type[BaseModel], output: ObjectOutput) -> str:
    """System-prompt suffix describing the JSON shape to produce."""
    item_schema = json.dumps(schema.model_json_schema(by_alias=True))
    if output == "array":
        return (
            "Respond only with a JSON object of the form "
            '{"elements": [...]} where every element matches this JSON schema: '
            f"{item_schema}"
        )
    return f"Respond only with a JSON object matching this JSON schema: {item_schema}"


def unwrap_output(value: Any, output: ObjectOutput) -> Any:
    """Strip the ``elements`` envelope used for array output."""
    if output != "array":
        return value
    if isinstance(value, dict):
        value = value.get("elements")
    return value if isinstance(value, list) else None


def parse_json_response(text: str) -> Any:
    """Parse a complete JSON response, tolerating a markdown code fence.

    Raises:
        ValueError: if the text is not valid JSON.
    """
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        stripped = match.group(1)
    try:
        return json.loads(stripped)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Model did not return valid JSON: {exc}") from exc


def parse_partial_json(text: str) -> Any | None:
    """Best-effort parse of a JSON document that is still being streamed.

    Open strings, objects and arrays are closed; a dangling key or separator
    makes the text unparseable and ``None`` is returned.
    """
    text = text.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    stack: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "{[":
            stack.append(char)
        elif char in "}]" and stack:
            stack.pop()

    candidate = text
    if in_string:
        if escaped:
            candidate = candidate[:-1]
        candidate += '"'
    candidate = candidate.rstrip()
    while candidate and candidate[-1] == ",":
        candidate = candidate[:-1].rstrip()
    closing = "".join("}" if opener == "{" else "]" for opener in reversed(stack))
    try:
        return json.loads(candidate + closing)
    except json.JSONDecodeError:
        return None
