"""Server-Sent-Events framing for chat stream events."""

import json
from collections.abc import AsyncIterator

from finsight.domain.chat.stream import StreamEvent


def format_sse_event(event: StreamEvent) -> dict[str, str]:
    """Format an event for sse-starlette's EventSourceResponse.

    The frame's ``event:`` line names the type; ``data:`` carries the JSON
    object ``{"type", "content"}``.
    """
    return {"event": event.type.value, "data": json.dumps(event.to_dict(), default=str)}


async def sse_frames(events: AsyncIterator[StreamEvent]) -> AsyncIterator[dict[str, str]]:
    async for event in events:
        yield format_sse_event(event)
