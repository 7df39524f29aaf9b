"""Chat domain: turn orchestration, task planning, tools and the event channel."""

from finsight.domain.chat.orchestrator import ChatOrchestrator
from finsight.domain.chat.stream import DataStream, EventType, StreamEvent
from finsight.domain.chat.types import ChatState, IncomingMessage, Task

__all__ = [
    "ChatOrchestrator",
    "ChatState",
    "DataStream",
    "EventType",
    "IncomingMessage",
    "StreamEvent",
    "Task",
]
