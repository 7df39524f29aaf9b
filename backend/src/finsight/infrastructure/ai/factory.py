"""Build the language model adapter for a selected model."""

from anthropic import AsyncAnthropic
from google import genai
from openai import AsyncOpenAI

from finsight.config import Settings, get_settings
from finsight.infrastructure.ai.base import LanguageModel
from finsight.infrastructure.ai.claude_adapter import ClaudeAdapter
from finsight.infrastructure.ai.cost_tracker import CostTracker
from finsight.infrastructure.ai.credentials import Credentials
from finsight.infrastructure.ai.gemini_adapter import GeminiAdapter
from finsight.infrastructure.ai.models import AIModel
from finsight.infrastructure.ai.openai_adapter import OpenAIAdapter
from finsight.shared.exceptions import MissingApiKeyError


def create_language_model(
    model: AIModel,
    credentials: Credentials,
    settings: Settings | None = None,
    cost_tracker: CostTracker | None = None,
) -> LanguageModel:
    """Create the adapter for ``model`` using the resolved credentials.

    Raises:
        MissingApiKeyError: if no key is available for the model's provider.
    """
    settings = settings or get_settings()
    api_key = credentials.for_provider(model.provider)
    if not api_key:
        raise MissingApiKeyError(model.provider)

    match model.provider:
        case "openai":
            return OpenAIAdapter(
                AsyncOpenAI(api_key=api_key, base_url=settings.openai_base_url),
                model.api_identifier,
                max_tokens=settings.llm_max_tokens,
                cost_tracker=cost_tracker,
            )
        case "claude":
            return ClaudeAdapter(
                AsyncAnthropic(api_key=api_key),
                model.api_identifier,
                max_tokens=settings.llm_max_tokens,
                cost_tracker=cost_tracker,
            )
        case "gemini":
            return GeminiAdapter(
                genai.Client(api_key=api_key),
                model.api_identifier,
                max_tokens=settings.llm_max_tokens,
                cost_tracker=cost_tracker,
            )
