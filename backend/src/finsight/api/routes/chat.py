"""Chat endpoints: the streaming turn plus chat history management."""

from uuid import UUID

from fastapi import APIRouter, Request
from sse_starlette.sse import EventSourceResponse

from finsight.api.deps import (
    ChatRepositoryDep,
    CurrentUser,
    LanguageModelFactoryDep,
    MarketDataFactoryDep,
    OptionalUser,
    SettingsDep,
)
from finsight.api.ratelimit import RATE_LIMIT_AI, RATE_LIMIT_DEFAULT, limiter
from finsight.api.schemas import ChatRequest, ChatResponse, StatusResponse
from finsight.api.sse import sse_frames
from finsight.domain.chat import ChatOrchestrator, IncomingMessage
from finsight.infrastructure.ai.credentials import resolve_credentials
from finsight.infrastructure.ai.models import find_model
from finsight.infrastructure.database.models.chat import ChatVisibility
from finsight.shared.exceptions import (
    MissingApiKeyError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from finsight.shared.logging import bind_request_context, get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Chat"])


def _parse_chat_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise ValidationError("Invalid chat id", details={"id": value})


@router.post("/chat")
@limiter.limit(RATE_LIMIT_AI)
async def chat(
    request: Request,
    body: ChatRequest,
    user: CurrentUser,
    settings: SettingsDep,
    repository: ChatRepositoryDep,
    build_model: LanguageModelFactoryDep,
    build_market_data: MarketDataFactoryDep,
) -> EventSourceResponse:
    """Run one chat turn and stream its events as Server-Sent Events."""
    model = find_model(body.model_id or settings.default_model_id)
    if model is None:
        raise NotFoundError("Model", body.model_id or settings.default_model_id)

    credentials = resolve_credentials(
        settings,
        openai_api_key=body.openai_api_key,
        google_api_key=body.google_api_key,
        anthropic_api_key=body.anthropic_api_key,
        financial_datasets_api_key=body.financial_datasets_api_key,
    )
    if not credentials.for_provider(model.provider):
        raise MissingApiKeyError(model.provider)

    if credentials.uses_server_key(model.provider):
        sent = await repository.count_user_messages(user.id)
        if sent >= settings.chat_free_message_limit:
            logger.info("free_tier_exhausted", user_id=user.id, provider=model.provider, sent=sent)
            raise MissingApiKeyError(
                model.provider,
                f"the free limit of {settings.chat_free_message_limit} messages has been reached",
            )

    bind_request_context(chat_id=str(body.id), model_id=model.id)
    orchestrator = ChatOrchestrator(
        chat_id=body.id,
        user_id=user.id,
        language_model=build_model(model, credentials),
        gateway=repository,
        market_data=build_market_data(credentials.market_data),
        max_steps=settings.chat_max_steps,
        timeout_seconds=settings.chat_request_timeout_seconds,
        close_delay_seconds=settings.chat_stream_close_delay_seconds,
    )
    await orchestrator.prepare(
        [
            IncomingMessage(role=message.role, content=message.content, id=message.id)
            for message in body.messages
        ]
    )
    logger.info("chat_turn_started", provider=model.provider, messages=len(body.messages))

    return EventSourceResponse(sse_frames(orchestrator.stream()), ping=settings.sse_ping_seconds)


@router.delete("/chat", response_model=StatusResponse)
@limiter.limit(RATE_LIMIT_DEFAULT)
async def delete_chat(
    request: Request,
    user: CurrentUser,
    repository: ChatRepositoryDep,
    id: str | None = None,
) -> StatusResponse:
    if not id:
        raise NotFoundError("Chat", "")
    chat_id = _parse_chat_id(id)

    chat = await repository.get_chat_by_id(chat_id)
    if chat is None:
        raise NotFoundError("Chat", str(chat_id))
    if chat.user_id != user.id:
        raise UnauthorizedError("Unauthorized")

    await repository.delete_chat_by_id(chat_id)
    logger.info("chat_deleted", chat_id=str(chat_id), user_id=user.id)
    return StatusResponse(status="Chat deleted")


@router.get("/chat/history", response_model=list[ChatResponse])
async def chat_history(user: CurrentUser, repository: ChatRepositoryDep) -> list[ChatResponse]:
    """The caller's chats, newest first."""
    chats = await repository.get_chats_by_user_id(user.id)
    return [ChatResponse.model_validate(chat, from_attributes=True) for chat in chats]


@router.get("/chat/{chat_id}", response_model=ChatResponse)
async def get_chat(
    chat_id: str, user: OptionalUser, repository: ChatRepositoryDep
) -> ChatResponse:
    parsed = _parse_chat_id(chat_id)
    chat = await repository.get_chat_by_id(parsed)
    if chat is None:
        raise NotFoundError("Chat", chat_id)
    if chat.visibility == ChatVisibility.PRIVATE and (user is None or user.id != chat.user_id):
        raise NotFoundError("Chat", chat_id)
    return ChatResponse.model_validate(chat, from_attributes=True)
