"""Document tools.

Documents are generated with the same language model that is serving the
chat turn, and their content is streamed to the client as it is written.
"""

import logging
from typing import Any
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from finsight.domain.chat.ports import ChatGatewayPort
from finsight.domain.chat.stream import DataStream, EventType
from finsight.domain.chat.tools.models import (
    CodeOutput,
    CreateDocumentInput,
    DocumentKindInput,
    RequestSuggestionsInput,
    SuggestionOutput,
    UpdateDocumentInput,
)
from finsight.infrastructure.ai.base import LanguageModel, ModelMessage, TextDelta
from finsight.infrastructure.ai.prompts import (
    CODE_DOCUMENT_PROMPT,
    SUGGESTIONS_PROMPT,
    TEXT_DOCUMENT_PROMPT,
    update_document_prompt,
)
from finsight.infrastructure.database.models.chat import Document, Suggestion
from finsight.shared.exceptions import ToolError

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5
DOCUMENT_CREATED_MESSAGE = "A document was created and is now visible to the user."
DOCUMENT_UPDATED_MESSAGE = "The document has been updated successfully."
SUGGESTIONS_ADDED_MESSAGE = "Suggestions have been added to the document"
DOCUMENT_NOT_FOUND = "Document not found"


def _parse_document_id(value: str) -> UUID | None:
    try:
        return UUID(value)
    except ValueError:
        return None


class DocumentTools:
    def __init__(
        self,
        model: LanguageModel,
        gateway: ChatGatewayPort,
        stream: DataStream,
        user_id: str,
    ) -> None:
        self.model = model
        self.gateway = gateway
        self.stream = stream
        self.user_id = user_id

    async def _write_text(self, prompt: str, system: str) -> str:
        draft: list[str] = []
        async for part in self.model.stream_text(
            [ModelMessage(role="user", content=prompt)], system=system
        ):
            if isinstance(part, TextDelta) and part.text_delta:
                draft.append(part.text_delta)
                self.stream.write(EventType.TEXT_DELTA, part.text_delta)
        return "".join(draft)

    async def _write_code(self, prompt: str, system: str) -> str:
        code = ""
        async for delta in self.model.stream_object(
            prompt, CodeOutput, system=system, fallback={"code": ""}
        ):
            snapshot = delta.object
            if isinstance(snapshot, dict) and isinstance(snapshot.get("code"), str):
                if snapshot["code"] and snapshot["code"] != code:
                    code = snapshot["code"]
                    self.stream.write(EventType.CODE_DELTA, code)
        return code

    async def _generate(self, kind: DocumentKindInput | str, prompt: str, system: str) -> str:
        if DocumentKindInput(kind) is DocumentKindInput.CODE:
            return await self._write_code(prompt, system)
        return await self._write_text(prompt, system)

    async def create_document(self, params: CreateDocumentInput) -> dict[str, Any]:
        document_id = uuid4()
        kind = params.kind.value

        self.stream.write(EventType.ID, str(document_id))
        self.stream.write(EventType.TITLE, params.title)
        self.stream.write(EventType.KIND, kind)
        self.stream.write(EventType.CLEAR, "")

        system = CODE_DOCUMENT_PROMPT if params.kind is DocumentKindInput.CODE else TEXT_DOCUMENT_PROMPT
        try:
            content = await self._generate(params.kind, params.title, system)
        finally:
            self.stream.write(EventType.FINISH, "")

        await self.gateway.save_document(
            Document(
                id=document_id,
                title=params.title,
                kind=kind,
                content=content,
                user_id=self.user_id,
            )
        )
        logger.info("Created %s document %s (%d chars)", kind, document_id, len(content))

        return {
            "id": str(document_id),
            "title": params.title,
            "kind": kind,
            "content": DOCUMENT_CREATED_MESSAGE,
        }

    async def update_document(self, params: UpdateDocumentInput) -> dict[str, Any]:
        document_id = _parse_document_id(params.id)
        document = await self.gateway.get_document_by_id(document_id) if document_id else None
        if document is None:
            raise ToolError(DOCUMENT_NOT_FOUND)

        self.stream.write(EventType.CLEAR, document.title)

        kind = DocumentKindInput(document.kind)
        try:
            content = await self._generate(
                kind, params.description, update_document_prompt(document.content, kind.value)
            )
        finally:
            self.stream.write(EventType.FINISH, "")

        await self.gateway.save_document(
            Document(
                id=document.id,
                title=document.title,
                kind=document.kind,
                content=content,
                user_id=self.user_id,
            )
        )

        return {
            "id": str(document.id),
            "title": document.title,
            "kind": document.kind,
            "content": DOCUMENT_UPDATED_MESSAGE,
        }

    async def request_suggestions(self, params: RequestSuggestionsInput) -> dict[str, Any]:
        document_id = _parse_document_id(params.document_id)
        document = await self.gateway.get_document_by_id(document_id) if document_id else None
        if document is None or not document.content:
            raise ToolError(DOCUMENT_NOT_FOUND)

        suggestions: list[dict[str, Any]] = []

        def emit(raw: Any) -> None:
            if len(suggestions) >= MAX_SUGGESTIONS:
                return
            try:
                element = SuggestionOutput.model_validate(raw)
            except PydanticValidationError:
                logger.debug("Skipping malformed suggestion %r", raw)
                return
            suggestion = {
                "originalText": element.original_sentence,
                "suggestedText": element.suggested_sentence,
                "description": element.description,
                "id": str(uuid4()),
                "documentId": str(document.id),
                "isResolved": False,
            }
            suggestions.append(suggestion)
            self.stream.write(EventType.SUGGESTION, suggestion)

        # Elements before the last one in a partial snapshot are complete
        emitted = 0
        latest: list[Any] = []
        async for delta in self.model.stream_object(
            document.content,
            SuggestionOutput,
            system=SUGGESTIONS_PROMPT,
            output="array",
            fallback=[],
        ):
            if not isinstance(delta.object, list):
                continue
            latest = delta.object
            while emitted < len(latest) - 1:
                emit(latest[emitted])
                emitted += 1
        while emitted < len(latest):
            emit(latest[emitted])
            emitted += 1

        await self.gateway.save_suggestions(
            [
                Suggestion(
                    id=UUID(item["id"]),
                    document_id=document.id,
                    document_created_at=document.created_at,
                    original_text=item["originalText"],
                    suggested_text=item["suggestedText"],
                    description=item["description"],
                    is_resolved=False,
                    user_id=self.user_id,
                )
                for item in suggestions
            ]
        )

        return {
            "id": str(document.id),
            "title": document.title,
            "kind": document.kind,
            "message": SUGGESTIONS_ADDED_MESSAGE,
        }
