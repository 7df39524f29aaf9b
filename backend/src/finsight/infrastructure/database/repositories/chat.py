"""Chat repository.

Each public method runs in its own short transaction so a long streaming turn
never holds a pooled connection between writes.
"""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from finsight.infrastructure.database.models.chat import (
    Chat,
    ChatVisibility,
    Document,
    Message,
    Suggestion,
)
from finsight.shared.exceptions import PersistenceError
from finsight.shared.logging import get_logger

logger = get_logger(__name__)


class ChatRepository:
    """SQLAlchemy implementation of the chat persistence gateway."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as exc:
            logger.error("chat_repository_failed", operation=operation, error=str(exc))
            raise PersistenceError(f"{operation} failed", {"operation": operation}) from exc

    # ----- Chats -----

    async def save_chat(self, chat_id: UUID, user_id: str, title: str) -> Chat:
        chat = Chat(
            id=chat_id,
            user_id=user_id,
            title=title,
            visibility=ChatVisibility.PRIVATE.value,
            created_at=datetime.now(UTC),
        )
        async with self._transaction("save_chat") as session:
            session.add(chat)
        return chat

    async def get_chat_by_id(self, chat_id: UUID) -> Chat | None:
        async with self._transaction("get_chat_by_id") as session:
            return await session.get(Chat, chat_id)

    async def delete_chat_by_id(self, chat_id: UUID) -> None:
        async with self._transaction("delete_chat_by_id") as session:
            await session.execute(delete(Message).where(Message.chat_id == chat_id))
            await session.execute(delete(Chat).where(Chat.id == chat_id))

    async def get_chats_by_user_id(self, user_id: str) -> Sequence[Chat]:
        async with self._transaction("get_chats_by_user_id") as session:
            result = await session.execute(
                select(Chat).where(Chat.user_id == user_id).order_by(Chat.created_at.desc())
            )
            return result.scalars().all()

    # ----- Messages -----

    async def save_messages(self, messages: Sequence[Message]) -> None:
        if not messages:
            return
        created_at = datetime.now(UTC)
        for sequence, message in enumerate(messages):
            message.created_at = created_at
            message.sequence = sequence
        async with self._transaction("save_messages") as session:
            session.add_all(list(messages))

    async def get_messages_by_chat_id(self, chat_id: UUID) -> Sequence[Message]:
        async with self._transaction("get_messages_by_chat_id") as session:
            result = await session.execute(
                select(Message)
                .where(Message.chat_id == chat_id)
                .order_by(Message.created_at, Message.sequence)
            )
            return result.scalars().all()

    async def count_user_messages(self, user_id: str) -> int:
        async with self._transaction("count_user_messages") as session:
            result = await session.execute(
                select(func.count(Message.id))
                .join(Chat, Chat.id == Message.chat_id)
                .where(Chat.user_id == user_id, Message.role == "user")
            )
            return int(result.scalar_one())

    # ----- Documents -----

    async def save_document(self, document: Document) -> Document:
        document.created_at = datetime.now(UTC)
        async with self._transaction("save_document") as session:
            session.add(document)
        return document

    async def get_document_by_id(self, document_id: UUID) -> Document | None:
        async with self._transaction("get_document_by_id") as session:
            result = await session.execute(
                select(Document)
                .where(Document.id == document_id)
                .order_by(Document.created_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def save_suggestions(self, suggestions: Sequence[Suggestion]) -> None:
        if not suggestions:
            return
        async with self._transaction("save_suggestions") as session:
            session.add_all(list(suggestions))
