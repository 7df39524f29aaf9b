"""SQLAlchemy ORM models."""

from finsight.infrastructure.database.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin
from finsight.infrastructure.database.models.chat import (
    Chat,
    ChatVisibility,
    Document,
    DocumentKind,
    Message,
    Suggestion,
)

__all__ = [
    "Base",
    "Chat",
    "ChatVisibility",
    "CreatedAtMixin",
    "Document",
    "DocumentKind",
    "Message",
    "Suggestion",
    "UUIDPrimaryKeyMixin",
]
