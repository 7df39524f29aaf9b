"""FastAPI dependencies for API routes.

Factories are resolved through ``Depends`` so tests can swap vendor clients
with ``app.dependency_overrides``.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request

from finsight.api.middleware.auth import CurrentUser, OptionalUser, get_current_user
from finsight.config import Settings, get_settings
from finsight.infrastructure.ai.base import LanguageModel
from finsight.infrastructure.ai.cost_tracker import get_cost_tracker
from finsight.infrastructure.ai.credentials import Credentials
from finsight.infrastructure.ai.factory import create_language_model
from finsight.infrastructure.ai.models import AIModel
from finsight.infrastructure.database.connection import get_session_factory
from finsight.infrastructure.database.repositories import ChatRepository
from finsight.infrastructure.external.financial_datasets import FinancialDatasetsClient

LanguageModelFactory = Callable[[AIModel, Credentials], LanguageModel]
MarketDataFactory = Callable[[str | None], FinancialDatasetsClient]


def get_chat_repository(request: Request) -> ChatRepository:
    """Repository shared through app state; built lazily outside the lifespan."""
    repository = getattr(request.app.state, "chat_repository", None)
    if repository is None:
        repository = ChatRepository(get_session_factory())
        request.app.state.chat_repository = repository
    return repository


def get_language_model_factory() -> LanguageModelFactory:
    settings = get_settings()
    tracker = get_cost_tracker()

    def build(model: AIModel, credentials: Credentials) -> LanguageModel:
        return create_language_model(model, credentials, settings=settings, cost_tracker=tracker)

    return build


def get_market_data_factory() -> MarketDataFactory:
    settings = get_settings()

    def build(api_key: str | None) -> FinancialDatasetsClient:
        return FinancialDatasetsClient(api_key, base_url=settings.financial_datasets_base_url)

    return build


SettingsDep = Annotated[Settings, Depends(get_settings)]
ChatRepositoryDep = Annotated[ChatRepository, Depends(get_chat_repository)]
LanguageModelFactoryDep = Annotated[LanguageModelFactory, Depends(get_language_model_factory)]
MarketDataFactoryDep = Annotated[MarketDataFactory, Depends(get_market_data_factory)]

__all__ = [
    "ChatRepositoryDep",
    "CurrentUser",
    "LanguageModelFactoryDep",
    "MarketDataFactoryDep",
    "OptionalUser",
    "SettingsDep",
    "get_chat_repository",
    "get_current_user",
    "get_language_model_factory",
    "get_market_data_factory",
]
