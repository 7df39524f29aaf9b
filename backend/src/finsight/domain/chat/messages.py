"""Conversion between client messages, model messages and stored messages."""

import json
import logging
from collections.abc import Sequence
from typing import Any

from finsight.domain.chat.types import IncomingMessage, MessageContent, ResponseMessage
from finsight.infrastructure.ai.base import (
    ModelMessage,
    StreamPart,
    TextDelta,
    ToolCallPart,
    ToolResultPart,
)

logger = logging.getLogger(__name__)

TOOL_RESULT_PREVIEW_CHARS = 2_000


def get_most_recent_user_message(messages: Sequence[IncomingMessage]) -> IncomingMessage | None:
    for message in reversed(messages):
        if message.role == "user":
            return message
    return None


def text_of(content: MessageContent) -> str:
    """Plain text of a message body (text parts joined)."""
    if isinstance(content, str):
        return content
    return "\n".join(
        str(part.get("text", ""))
        for part in content
        if isinstance(part, dict) and part.get("type") == "text" and part.get("text")
    )


def _describe_tool_parts(content: MessageContent) -> list[str]:
    if isinstance(content, str):
        return []
    lines: list[str] = []
    for part in content:
        if not isinstance(part, dict):
            continue
        if part.get("type") == "tool-result":
            result = json.dumps(part.get("result"), default=str)
            if len(result) > TOOL_RESULT_PREVIEW_CHARS:
                result = result[:TOOL_RESULT_PREVIEW_CHARS] + "..."
            lines.append(f"[{part.get('toolName', 'tool')} returned] {result}")
    return lines


def to_model_messages(messages: Sequence[IncomingMessage]) -> list[ModelMessage]:
    """Normalize client history into alternating user/assistant text turns.

    Consecutive assistant and tool messages are folded into one assistant
    turn; tool results are rendered as text so every provider can read them.
    System messages are dropped, the server owns the system prompt.
    """
    converted: list[ModelMessage] = []
    pending: list[str] = []

    def flush() -> None:
        if pending:
            converted.append(ModelMessage(role="assistant", content="\n\n".join(pending)))
            pending.clear()

    for message in messages:
        if message.role == "user":
            flush()
            converted.append(ModelMessage(role="user", content=text_of(message.content)))
        elif message.role in ("assistant", "tool"):
            text = text_of(message.content)
            if text:
                pending.append(text)
            pending.extend(_describe_tool_parts(message.content))
    flush()
    return converted


class ResponseBuilder:
    """Collects stream parts into assistant/tool response messages.

    A text delta or tool call arriving after a tool result starts a new
    assistant message, mirroring the step structure of the generation.
    """

    def __init__(self) -> None:
        self._messages: list[ResponseMessage] = []
        self._text: list[str] = []

    def _current_assistant(self) -> ResponseMessage:
        if not self._messages or self._messages[-1].role != "assistant":
            self._messages.append(ResponseMessage(role="assistant"))
        return self._messages[-1]

    def _flush_text(self) -> None:
        if self._text:
            self._current_assistant().content.append({"type": "text", "text": "".join(self._text)})
            self._text = []

    def add(self, part: StreamPart) -> None:
        match part:
            case TextDelta(text_delta=text):
                self._current_assistant()
                self._text.append(text)
            case ToolCallPart():
                self._flush_text()
                self._current_assistant().content.append(
                    {
                        "type": "tool-call",
                        "toolCallId": part.tool_call_id,
                        "toolName": part.tool_name,
                        "args": part.args,
                    }
                )
            case ToolResultPart():
                self._flush_text()
                if not self._messages or self._messages[-1].role != "tool":
                    self._messages.append(ResponseMessage(role="tool"))
                self._messages[-1].content.append(
                    {
                        "type": "tool-result",
                        "toolCallId": part.tool_call_id,
                        "toolName": part.tool_name,
                        "result": part.result,
                    }
                )

    @property
    def text(self) -> str:
        """All assistant text produced so far."""
        parts = [
            item["text"]
            for message in self._messages
            if message.role == "assistant"
            for item in message.content
            if item.get("type") == "text"
        ]
        return "".join(parts) + "".join(self._text)

    def messages(self) -> list[ResponseMessage]:
        self._flush_text()
        return list(self._messages)


def sanitize_response_messages(messages: Sequence[ResponseMessage]) -> list[ResponseMessage]:
    """Drop tool calls without results, and messages left empty by that."""
    result_ids = {
        part.get("toolCallId")
        for message in messages
        if message.role == "tool"
        for part in message.content
        if part.get("type") == "tool-result"
    }

    sanitized: list[ResponseMessage] = []
    for message in messages:
        if message.role == "assistant":
            content = [
                part
                for part in message.content
                if (part.get("type") == "text" and part.get("text"))
                or (part.get("type") == "tool-call" and part.get("toolCallId") in result_ids)
            ]
        else:
            content = list(message.content)
        if content:
            sanitized.append(ResponseMessage(role=message.role, content=content))

    dropped = len(messages) - len(sanitized)
    if dropped:
        logger.debug("Dropped %d empty response messages", dropped)
    return sanitized


def serialize_content(content: Any) -> str:
    return json.dumps(content, default=str)
