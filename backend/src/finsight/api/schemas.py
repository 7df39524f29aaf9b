"""Request and response bodies.

Field names on the wire are camelCase to match the web client.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from finsight.infrastructure.ai.models import Provider


class APIModel(BaseModel):
    """Base model for camelCase API bodies."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageInput(APIModel):
    """A single message in the conversation.

    The client attaches UI-only fields (createdAt, annotations, ...) that are
    ignored here.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str | None = None
    role: Literal["user", "assistant", "system", "tool"]
    content: str | list[dict[str, Any]] = ""


class ChatRequest(APIModel):
    """Request to run one chat turn."""

    id: UUID
    messages: list[MessageInput] = Field(default_factory=list)
    model_id: str | None = None
    openai_api_key: str | None = None
    google_api_key: str | None = None
    anthropic_api_key: str | None = None
    financial_datasets_api_key: str | None = None


class ChatResponse(APIModel):
    id: UUID
    title: str
    visibility: str
    user_id: str
    created_at: datetime


class StatusResponse(APIModel):
    status: str


class ModelResponse(APIModel):
    id: str
    label: str
    api_identifier: str
    description: str
    provider: Provider


class ValidateKeyRequest(APIModel):
    provider: Provider
    api_key: str = Field(..., min_length=1)


class ValidateKeyResponse(APIModel):
    is_valid: bool
    error: str | None = None
