"""Check a user-supplied API key with the cheapest call each vendor offers."""

from dataclasses import dataclass

import anthropic
import openai
from anthropic import AsyncAnthropic
from google import genai
from google.genai import errors as genai_errors
from openai import AsyncOpenAI

from finsight.infrastructure.ai.models import Provider
from finsight.shared.logging import get_logger

logger = get_logger(__name__)

GEMINI_PROBE_MODEL = "gemini-1.5-flash"
CLAUDE_PROBE_MODEL = "claude-3-haiku-20240307"


@dataclass(frozen=True)
class KeyValidationResult:
    is_valid: bool
    error: str | None = None


async def validate_openai_key(api_key: str) -> KeyValidationResult:
    client = AsyncOpenAI(api_key=api_key)
    try:
        page = await client.models.list()
    except openai.OpenAIError as exc:
        logger.info("openai_key_rejected", error=str(exc))
        return KeyValidationResult(
            False, "Invalid OpenAI API key. Please check your key and try again."
        )
    if not page.data:
        return KeyValidationResult(False, "Invalid OpenAI API key")
    return KeyValidationResult(True)


async def validate_gemini_key(api_key: str) -> KeyValidationResult:
    client = genai.Client(api_key=api_key)
    try:
        response = await client.aio.models.generate_content(
            model=GEMINI_PROBE_MODEL, contents="Test"
        )
    except genai_errors.APIError as exc:
        logger.info("gemini_key_rejected", error=str(exc))
        return KeyValidationResult(
            False, exc.message or "Invalid Gemini API key. Please check your key and try again."
        )
    if not response.text:
        return KeyValidationResult(False, "Invalid Gemini API key")
    return KeyValidationResult(True)


async def validate_claude_key(api_key: str) -> KeyValidationResult:
    client = AsyncAnthropic(api_key=api_key)
    try:
        await client.messages.create(
            model=CLAUDE_PROBE_MODEL,
            max_tokens=1,
            messages=[{"role": "user", "content": "Test"}],
        )
    except anthropic.AnthropicError as exc:
        logger.info("claude_key_rejected", error=str(exc))
        return KeyValidationResult(
            False, "Invalid Claude API key. Please check your key and try again."
        )
    return KeyValidationResult(True)


async def validate_api_key(provider: Provider, api_key: str) -> KeyValidationResult:
    if not api_key.strip():
        return KeyValidationResult(False, "API key is empty")
    match provider:
        case "openai":
            return await validate_openai_key(api_key)
        case "gemini":
            return await validate_gemini_key(api_key)
        case "claude":
            return await validate_claude_key(api_key)
