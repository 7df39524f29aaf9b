"""LLM vendor adapters, model catalogue and credential resolution."""

from finsight.infrastructure.ai.base import (
    LanguageModel,
    ModelMessage,
    ObjectDelta,
    StreamPart,
    TextDelta,
    ToolCallPart,
    ToolDefinition,
    ToolResultPart,
    ToolSet,
    generate_object,
)
from finsight.infrastructure.ai.credentials import Credentials, resolve_credentials
from finsight.infrastructure.ai.factory import create_language_model
from finsight.infrastructure.ai.models import MODELS, AIModel, find_model

__all__ = [
    "AIModel",
    "Credentials",
    "LanguageModel",
    "MODELS",
    "ModelMessage",
    "ObjectDelta",
    "StreamPart",
    "TextDelta",
    "ToolCallPart",
    "ToolDefinition",
    "ToolResultPart",
    "ToolSet",
    "create_language_model",
    "find_model",
    "generate_object",
    "resolve_credentials",
]
