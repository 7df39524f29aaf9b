"""Chat turn orchestration.

One ``ChatOrchestrator`` serves one POST /chat request:

1. ``prepare`` validates the history, creates the chat on its first message
   and stores the user message.
2. ``stream`` starts the turn in a background task and relays its events.
   The turn plans sub-tasks, runs the model with the tool registry bound,
   and finally stores the sanitized response messages.

The background task is not cancelled when the client disconnects: the
channel is detached, in-flight vendor calls complete and the response is
still persisted.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from uuid import UUID, uuid4

from finsight.domain.chat.messages import (
    ResponseBuilder,
    get_most_recent_user_message,
    sanitize_response_messages,
    serialize_content,
    text_of,
    to_model_messages,
)
from finsight.domain.chat.ports import ChatGatewayPort
from finsight.domain.chat.stream import DataStream, EventType, StreamEvent
from finsight.domain.chat.task_planner import fold_tasks_into_messages, plan_tasks
from finsight.domain.chat.title import generate_title
from finsight.domain.chat.tool_registry import ToolRegistry
from finsight.domain.chat.tools.documents import DocumentTools
from finsight.domain.chat.tools.market_data import MarketDataTools
from finsight.domain.chat.types import (
    FALLBACK_TASK,
    ChatState,
    IncomingMessage,
    ResponseMessage,
)
from finsight.infrastructure.ai.base import (
    LanguageModel,
    ModelMessage,
    StreamPart,
    TextDelta,
    ToolCallPart,
    ToolResultPart,
)
from finsight.infrastructure.ai.prompts import SYSTEM_PROMPT
from finsight.infrastructure.database.models.chat import Message
from finsight.infrastructure.external.financial_datasets import FinancialDatasetsClient
from finsight.observability.metrics import CHAT_TURNS, PERSISTENCE_FAILURES, PROVIDER_ERRORS
from finsight.shared.exceptions import (
    PersistenceError,
    ProviderError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Strong references to running turns; the event loop only keeps weak ones
_running_turns: set[asyncio.Task[None]] = set()


class ChatOrchestrator:
    def __init__(
        self,
        *,
        chat_id: UUID,
        user_id: str,
        language_model: LanguageModel,
        gateway: ChatGatewayPort,
        market_data: FinancialDatasetsClient,
        max_steps: int = 10,
        timeout_seconds: float = 60.0,
        close_delay_seconds: float = 0.0,
    ) -> None:
        self.chat_id = chat_id
        self.user_id = user_id
        self.language_model = language_model
        self.gateway = gateway
        self.market_data = market_data
        self.max_steps = max_steps
        self.timeout_seconds = timeout_seconds
        self.close_delay_seconds = close_delay_seconds

        self.state = ChatState.RECEIVED
        self.user_message_id: UUID | None = None
        self._user_text = ""
        self._model_messages: list[ModelMessage] = []
        self._progress_open = False

    @property
    def provider(self) -> str:
        return self.language_model.provider

    def _transition(self, state: ChatState) -> None:
        if state is not self.state:
            logger.debug("Chat %s: %s -> %s", self.chat_id, self.state, state)
            self.state = state

    # ----- Received -----

    async def prepare(self, messages: Sequence[IncomingMessage]) -> UUID:
        """Validate the history and persist the inbound user message.

        Raises:
            ValidationError: if the history has no user message.
            UnauthorizedError: if the chat exists and belongs to someone else.
        """
        user_message = get_most_recent_user_message(messages)
        if user_message is None:
            raise ValidationError("No user message found")

        self._user_text = text_of(user_message.content)
        self._model_messages = to_model_messages(messages)

        chat = await self.gateway.get_chat_by_id(self.chat_id)
        if chat is None:
            title = await generate_title(
                self.language_model, self._user_text, timeout_seconds=self.timeout_seconds
            )
            await self.gateway.save_chat(self.chat_id, self.user_id, title)
            logger.info("Created chat %s for user %s", self.chat_id, self.user_id)
        elif chat.user_id != self.user_id:
            raise UnauthorizedError("Unauthorized")

        self.user_message_id = uuid4()
        await self.gateway.save_messages(
            [
                Message(
                    id=self.user_message_id,
                    chat_id=self.chat_id,
                    role="user",
                    content=serialize_content(user_message.content),
                )
            ]
        )
        return self.user_message_id

    # ----- Streaming -----

    async def stream(self) -> AsyncIterator[StreamEvent]:
        """Run the turn in the background and yield its events in order."""
        if self.user_message_id is None:
            raise RuntimeError("prepare() must complete before stream()")

        channel = DataStream()
        task = asyncio.create_task(self._produce(channel))
        _running_turns.add(task)
        task.add_done_callback(_running_turns.discard)

        try:
            async for event in channel:
                yield event
        finally:
            channel.detach()

    async def _produce(self, channel: DataStream) -> None:
        try:
            await self._run(channel)
        except Exception:
            logger.exception("Chat turn %s failed", self.chat_id)
            self._fail(channel, "An unexpected error occurred")
        finally:
            CHAT_TURNS.labels(provider=self.provider, state=self.state.value).inc()
            channel.close()
            await self.market_data.close()

    async def _run(self, channel: DataStream) -> None:
        channel.write(EventType.USER_MESSAGE_ID, str(self.user_message_id))
        channel.write(
            EventType.QUERY_LOADING,
            {"isLoading": True, "taskNames": [FALLBACK_TASK.task_name]},
        )
        self._progress_open = True

        builder = ResponseBuilder()
        try:
            async with asyncio.timeout(self.timeout_seconds):
                self._transition(ChatState.PLANNING)
                tasks = await plan_tasks(self.language_model, self._user_text)
                channel.write(
                    EventType.QUERY_LOADING,
                    {"isLoading": True, "taskNames": [task.task_name for task in tasks]},
                )

                self._transition(ChatState.GENERATING)
                registry = ToolRegistry(
                    market=MarketDataTools(self.market_data, channel),
                    documents=DocumentTools(self.language_model, self.gateway, channel, self.user_id),
                )
                async for part in self.language_model.stream_text(
                    fold_tasks_into_messages(self._model_messages, tasks),
                    system=SYSTEM_PROMPT,
                    tools=registry,
                    max_steps=self.max_steps,
                ):
                    if not isinstance(part, ToolCallPart):
                        self._resolve_progress(channel)
                    builder.add(part)
                    self._relay(part, channel)
        except ProviderError as e:
            PROVIDER_ERRORS.labels(provider=e.provider).inc()
            logger.warning("Provider %s failed in chat %s: %s", e.provider, self.chat_id, e.message)
            self._fail(channel, e.message, provider=e.provider)
            return
        except TimeoutError:
            logger.warning("Chat %s exceeded %.0fs", self.chat_id, self.timeout_seconds)
            self._fail(channel, "The request timed out")
            return

        self._resolve_progress(channel)
        self._transition(ChatState.FINALIZING)
        await self._persist_response(builder.messages(), channel)

        if self.close_delay_seconds:
            await asyncio.sleep(self.close_delay_seconds)
        self._transition(ChatState.CLOSED)

    def _relay(self, part: StreamPart, channel: DataStream) -> None:
        match part:
            case TextDelta(text_delta=text):
                channel.write(EventType.ASSISTANT_DELTA, text)
            case ToolCallPart():
                self._transition(ChatState.TOOL_EXECUTING)
                channel.write(
                    EventType.TOOL_CALL,
                    {"toolCallId": part.tool_call_id, "toolName": part.tool_name, "args": part.args},
                )
            case ToolResultPart():
                self._transition(ChatState.GENERATING)
                channel.write(
                    EventType.TOOL_RESULT,
                    {
                        "toolCallId": part.tool_call_id,
                        "toolName": part.tool_name,
                        "result": part.result,
                    },
                )

    def _resolve_progress(self, channel: DataStream) -> None:
        if self._progress_open:
            self._progress_open = False
            channel.write(EventType.QUERY_LOADING, {"isLoading": False, "taskNames": []})

    def _fail(self, channel: DataStream, message: str, provider: str | None = None) -> None:
        self._transition(ChatState.CLOSED_WITH_ERROR)
        self._resolve_progress(channel)
        content: dict[str, str] = {"message": message}
        if provider:
            content["provider"] = provider
        channel.write(EventType.ERROR, content)

    # ----- Finalizing -----

    async def _persist_response(
        self, response_messages: list[ResponseMessage], channel: DataStream
    ) -> None:
        sanitized = sanitize_response_messages(response_messages)
        if not sanitized:
            logger.info("No response messages to save for chat %s", self.chat_id)
            return

        records: list[Message] = []
        for message in sanitized:
            message_id = uuid4()
            if message.role == "assistant":
                channel.write_annotation({"messageIdFromServer": str(message_id)})
            records.append(
                Message(
                    id=message_id,
                    chat_id=self.chat_id,
                    role=message.role,
                    content=serialize_content(message.content),
                )
            )

        try:
            await self.gateway.save_messages(records)
        except PersistenceError as e:
            PERSISTENCE_FAILURES.inc()
            logger.error("Failed to save response for chat %s: %s", self.chat_id, e.message)
