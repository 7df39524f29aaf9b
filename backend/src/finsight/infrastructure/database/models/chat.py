"""Chat, message, document and suggestion models."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from finsight.infrastructure.database.models.base import (
    Base,
    CreatedAtMixin,
    UUIDPrimaryKeyMixin,
    utcnow,
)


class ChatVisibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class DocumentKind(str, Enum):
    TEXT = "text"
    CODE = "code"


class Chat(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """A conversation owned by one user.

    The id is chosen by the client; the title is derived from the first
    user message and never changes afterwards.
    """

    __tablename__ = "chats"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    visibility: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ChatVisibility.PRIVATE.value
    )

    def __repr__(self) -> str:
        return f"<Chat {self.title}>"


class Message(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """A single stored message; ``content`` holds the JSON-serialized body."""

    __tablename__ = "messages"

    chat_id: Mapped[UUID] = mapped_column(
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Insertion order within one save batch
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Document(Base):
    """A generated document. Every save with the same id is a new revision."""

    __tablename__ = "documents"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), primary_key=True, default=utcnow
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[str] = mapped_column(
        String(16), nullable=False, default=DocumentKind.TEXT.value
    )
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)


class Suggestion(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """An edit proposed for a specific document revision."""

    __tablename__ = "suggestions"

    document_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    document_created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    suggested_text: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
