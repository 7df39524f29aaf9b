"""Chat title generation."""

import asyncio
import logging

from finsight.infrastructure.ai.base import LanguageModel, ModelMessage
from finsight.infrastructure.ai.prompts import TITLE_PROMPT
from finsight.shared.exceptions import ProviderError

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 80
DEFAULT_TITLE = "New Chat"


def fallback_title(text: str) -> str:
    """First five words of the message followed by an ellipsis."""
    words = text.split()
    if not words:
        return DEFAULT_TITLE
    return " ".join(words[:5]) + "..."


def clean_title(title: str) -> str:
    cleaned = title.strip().strip("'").replace('"', "").replace(":", "")
    cleaned = " ".join(cleaned.split())
    if len(cleaned) > MAX_TITLE_LENGTH:
        cleaned = cleaned[: MAX_TITLE_LENGTH - 3].rstrip() + "..."
    return cleaned


async def generate_title(
    model: LanguageModel, text: str, timeout_seconds: float | None = None
) -> str:
    """Title for a new chat; falls back to the message's first words.

    ``timeout_seconds`` bounds the vendor call. ``None`` waits indefinitely.
    """
    if not text.strip():
        return DEFAULT_TITLE
    try:
        async with asyncio.timeout(timeout_seconds):
            title = clean_title(
                await model.generate_text(
                    [ModelMessage(role="user", content=text)], system=TITLE_PROMPT
                )
            )
    except ProviderError as e:
        logger.warning("Title generation failed with %s: %s", e.provider, e.message)
        title = ""
    except TimeoutError:
        logger.warning("Title generation exceeded %.1fs", timeout_seconds)
        title = ""
    return title or clean_title(fallback_title(text))
