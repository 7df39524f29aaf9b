"""Ordered event channel between a chat turn and its HTTP response.

The producer (the turn) writes synchronously in program order; the consumer
(the response generator) drains an ``asyncio.Queue`` until the channel is
closed. When the consumer goes away the channel is detached and further
writes are dropped, so the producer can finish its work unobstructed.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class EventType(StrEnum):
    # Data events
    USER_MESSAGE_ID = "user-message-id"
    QUERY_LOADING = "query-loading"
    TOOL_LOADING = "tool-loading"
    ID = "id"
    TITLE = "title"
    KIND = "kind"
    CLEAR = "clear"
    TEXT_DELTA = "text-delta"
    CODE_DELTA = "code-delta"
    SUGGESTION = "suggestion"
    FINISH = "finish"
    # Model stream events
    ASSISTANT_DELTA = "assistant-delta"
    TOOL_CALL = "tool-call"
    TOOL_RESULT = "tool-result"
    MESSAGE_ANNOTATION = "message-annotation"
    ERROR = "error"


@dataclass(frozen=True)
class StreamEvent:
    type: EventType
    content: Any

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "content": self.content}


_CLOSED = object()


class DataStream:
    """Single-consumer queue of ``StreamEvent`` objects."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self._detached = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def detached(self) -> bool:
        return self._detached

    def write(self, event_type: EventType, content: Any) -> None:
        if self._closed:
            raise RuntimeError("write to a closed data stream")
        if self._detached:
            self.dropped += 1
            return
        self._queue.put_nowait(StreamEvent(event_type, content))

    def write_annotation(self, annotation: dict[str, Any]) -> None:
        self.write(EventType.MESSAGE_ANNOTATION, annotation)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def detach(self) -> None:
        """Mark the consumer as gone; later writes are discarded."""
        if not self._detached:
            self._detached = True
            logger.info("Client detached from data stream")

    async def __aiter__(self) -> AsyncIterator[StreamEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
