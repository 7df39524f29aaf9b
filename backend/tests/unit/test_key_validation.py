"""Unit tests for API key validation."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import openai
import pytest
from google.genai import errors as genai_errors

from finsight.infrastructure.ai.key_validation import validate_api_key

MODULE = "finsight.infrastructure.ai.key_validation"


@pytest.mark.asyncio
async def test_empty_key_is_rejected_without_calling_vendor():
    with patch(f"{MODULE}.AsyncOpenAI") as openai_cls:
        result = await validate_api_key("openai", "   ")

    assert result.is_valid is False
    assert result.error == "API key is empty"
    openai_cls.assert_not_called()


class TestOpenAI:
    @pytest.mark.asyncio
    async def test_valid_key(self):
        client = MagicMock()
        client.models.list = AsyncMock(return_value=SimpleNamespace(data=[SimpleNamespace(id="gpt-4o")]))

        with patch(f"{MODULE}.AsyncOpenAI", return_value=client) as openai_cls:
            result = await validate_api_key("openai", "sk-user")

        assert result.is_valid is True
        openai_cls.assert_called_once_with(api_key="sk-user")

    @pytest.mark.asyncio
    async def test_rejected_key(self):
        client = MagicMock()
        client.models.list = AsyncMock(side_effect=openai.OpenAIError("Incorrect API key"))

        with patch(f"{MODULE}.AsyncOpenAI", return_value=client):
            result = await validate_api_key("openai", "sk-bad")

        assert result.is_valid is False
        assert "Invalid OpenAI API key" in result.error

    @pytest.mark.asyncio
    async def test_empty_model_list(self):
        client = MagicMock()
        client.models.list = AsyncMock(return_value=SimpleNamespace(data=[]))

        with patch(f"{MODULE}.AsyncOpenAI", return_value=client):
            result = await validate_api_key("openai", "sk-user")

        assert result.is_valid is False


class TestClaude:
    @pytest.mark.asyncio
    async def test_valid_key_uses_one_token_probe(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=SimpleNamespace(content=[]))

        with patch(f"{MODULE}.AsyncAnthropic", return_value=client):
            result = await validate_api_key("claude", "sk-ant")

        assert result.is_valid is True
        assert client.messages.create.await_args.kwargs["max_tokens"] == 1

    @pytest.mark.asyncio
    async def test_rejected_key(self):
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=anthropic.AnthropicError("invalid x-api-key"))

        with patch(f"{MODULE}.AsyncAnthropic", return_value=client):
            result = await validate_api_key("claude", "sk-bad")

        assert result.is_valid is False
        assert "Invalid Claude API key" in result.error


class TestGemini:
    @staticmethod
    def client_with(generate_content):
        return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))

    @pytest.mark.asyncio
    async def test_valid_key(self):
        generate = AsyncMock(return_value=SimpleNamespace(text="Hello"))

        with patch(f"{MODULE}.genai.Client", return_value=self.client_with(generate)):
            result = await validate_api_key("gemini", "g-key")

        assert result.is_valid is True

    @pytest.mark.asyncio
    async def test_rejected_key_surfaces_vendor_message(self):
        error = genai_errors.APIError(
            400, {"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}}
        )
        generate = AsyncMock(side_effect=error)

        with patch(f"{MODULE}.genai.Client", return_value=self.client_with(generate)):
            result = await validate_api_key("gemini", "g-bad")

        assert result.is_valid is False
        assert result.error == "API key not valid"
