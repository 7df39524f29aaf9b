"""
Pytest configuration and fixtures for Finsight backend tests.
"""
import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

os.environ.setdefault("APP_SECRET_KEY", "test-secret-key-for-encryption-32chars")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from finsight.config import Settings
from finsight.domain.chat.stream import DataStream
from finsight.infrastructure.database.connection import build_session_factory
from finsight.infrastructure.database.models import Base
from finsight.infrastructure.database.repositories import ChatRepository
from finsight.infrastructure.external.financial_datasets import FinancialDatasetsClient
from tests.fakes import OTHER_USER_ID, TEST_SECRET, FakeLanguageModel, make_token


# ----- Settings -----


@pytest.fixture
def test_settings() -> Settings:
    """Settings with server keys for every provider."""
    return Settings(
        app_env="development",
        app_secret_key=TEST_SECRET,
        auth_provider="jwt",
        jwt_audience=None,
        database_url="sqlite+aiosqlite://",
        openai_api_key="sk-server",
        google_api_key="google-server",
        anthropic_api_key="anthropic-server",
        financial_datasets_api_key="fd-server",
        chat_free_message_limit=3,
    )


# ----- Database -----


@pytest.fixture
async def session_factory():
    """In-memory sqlite shared across the sessions of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield build_session_factory(engine)

    await engine.dispose()


@pytest.fixture
async def repository(session_factory) -> ChatRepository:
    return ChatRepository(session_factory)


# ----- Collaborators -----


@pytest.fixture
def data_stream() -> DataStream:
    return DataStream()


@pytest.fixture
def market_data() -> MagicMock:
    """FinancialDatasetsClient double with canned responses."""
    client = MagicMock(spec=FinancialDatasetsClient)
    client.get_price_snapshot = AsyncMock(
        return_value={"snapshot": {"ticker": "AAPL", "price": 190.5}}
    )
    client.get_prices = AsyncMock(return_value={"prices": []})
    client.get_statements = AsyncMock(return_value={"income_statements": []})
    client.search_by_filters = AsyncMock(return_value={"search_results": []})
    client.close = AsyncMock()
    return client


# ----- API -----


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def other_auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(OTHER_USER_ID)}"}


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    from finsight.api.ratelimit import limiter

    limiter.reset()
    yield


@pytest.fixture(autouse=True)
def reset_sse_app_status():
    """sse-starlette keeps a process-wide exit event bound to the first loop."""
    from sse_starlette.sse import AppStatus

    if hasattr(AppStatus, "should_exit_event"):
        AppStatus.should_exit_event = None
    yield


@pytest.fixture
def app(test_settings: Settings, repository: ChatRepository, market_data: MagicMock):
    """Application wired to the test database, settings and a scripted model.

    Tests replace ``app.state.language_model`` before sending a chat request;
    every factory call is recorded in ``app.state.model_requests``.
    """
    from finsight.api.deps import get_language_model_factory, get_market_data_factory
    from finsight.config import get_settings
    from finsight.infrastructure.auth.jwt import JWTAuthProvider
    from finsight.main import create_app

    application = create_app()
    application.state.auth_provider = JWTAuthProvider(secret=TEST_SECRET)
    application.state.chat_repository = repository
    application.state.language_model = FakeLanguageModel()
    application.state.model_requests = []

    def build_model(model, credentials):
        application.state.model_requests.append((model, credentials))
        return application.state.language_model

    application.dependency_overrides[get_settings] = lambda: test_settings
    application.dependency_overrides[get_language_model_factory] = lambda: build_model
    application.dependency_overrides[get_market_data_factory] = lambda: lambda api_key: market_data
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
