"""Shared chat domain types.

Kept provider-agnostic so adapters, tools and the orchestrator can share them
without circular imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal

MessageContent = str | list[dict[str, Any]]


class ChatState(StrEnum):
    """Lifecycle of one chat turn."""

    RECEIVED = "received"
    PLANNING = "planning"
    GENERATING = "generating"
    TOOL_EXECUTING = "tool_executing"
    FINALIZING = "finalizing"
    CLOSED = "closed"
    CLOSED_WITH_ERROR = "closed_with_error"


@dataclass(frozen=True)
class IncomingMessage:
    """A message as sent by the client."""

    role: Literal["user", "assistant", "system", "tool"]
    content: MessageContent
    id: str | None = None


@dataclass(frozen=True)
class Task:
    """One planned sub-task shown to the user while the answer is produced."""

    task_name: str
    task_class: str

    def to_dict(self) -> dict[str, str]:
        return {"task_name": self.task_name, "class": self.task_class}


FALLBACK_TASK = Task(task_name="Analyzing your query...", task_class="default")


@dataclass
class ResponseMessage:
    """Assistant or tool message produced during generation."""

    role: Literal["assistant", "tool"]
    content: list[dict[str, Any]] = field(default_factory=list)
