"""Repository implementations."""

from finsight.infrastructure.database.repositories.chat import ChatRepository

__all__ = ["ChatRepository"]
