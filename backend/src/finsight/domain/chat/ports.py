"""Ports for chat orchestration dependencies."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from finsight.infrastructure.database.models.chat import Chat, Document, Message, Suggestion


class ChatGatewayPort(Protocol):
    """Persistence interface used by the chat orchestrator and document tools."""

    async def save_chat(self, chat_id: UUID, user_id: str, title: str) -> Chat:
        """Create a chat record."""

    async def get_chat_by_id(self, chat_id: UUID) -> Chat | None:
        """Get a chat by id."""

    async def delete_chat_by_id(self, chat_id: UUID) -> None:
        """Delete a chat and its messages."""

    async def get_chats_by_user_id(self, user_id: str) -> Sequence[Chat]:
        """List a user's chats, newest first."""

    async def save_messages(self, messages: Sequence[Message]) -> None:
        """Persist messages in the given order."""

    async def get_messages_by_chat_id(self, chat_id: UUID) -> Sequence[Message]:
        """List a chat's messages in stored order."""

    async def count_user_messages(self, user_id: str) -> int:
        """Count messages with role ``user`` across all of a user's chats."""

    async def save_document(self, document: Document) -> Document:
        """Persist a document revision."""

    async def get_document_by_id(self, document_id: UUID) -> Document | None:
        """Get the latest revision of a document."""

    async def save_suggestions(self, suggestions: Sequence[Suggestion]) -> None:
        """Persist document suggestions."""
