"""Unit tests for the Claude adapter."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import pytest

from finsight.domain.chat.tools.models import CodeOutput
from finsight.infrastructure.ai.base import (
    ModelMessage,
    ObjectDelta,
    TextDelta,
    ToolCallPart,
    ToolDefinition,
    ToolResultPart,
)
from finsight.infrastructure.ai.claude_adapter import ClaudeAdapter, _convert_messages
from finsight.infrastructure.ai.cost_tracker import CostTracker
from finsight.shared.exceptions import ProviderError


def response(*blocks, stop_reason="end_turn"):
    return SimpleNamespace(
        content=list(blocks),
        stop_reason=stop_reason,
        usage=SimpleNamespace(input_tokens=20, output_tokens=8),
    )


def text_block(text):
    return SimpleNamespace(type="text", text=text)


def tool_use_block(block_id, name, tool_input):
    return SimpleNamespace(type="tool_use", id=block_id, name=name, input=tool_input)


@pytest.fixture
def client():
    client = MagicMock()
    client.messages.create = AsyncMock()
    return client


@pytest.fixture
def tracker():
    return CostTracker()


@pytest.fixture
def adapter(client, tracker):
    return ClaudeAdapter(client, "claude-3-opus-20240229", max_tokens=512, cost_tracker=tracker)


@pytest.fixture
def tools():
    toolset = MagicMock()
    toolset.definitions.return_value = [
        ToolDefinition(name="getCurrentStockPrice", description="Price", input_schema={})
    ]
    toolset.execute = AsyncMock(return_value=SimpleNamespace(payload={"price": 190.5}))
    return toolset


class TestConvertMessages:
    def test_merges_consecutive_roles_and_drops_leading_assistant(self):
        converted = _convert_messages(
            [
                ModelMessage("assistant", "Welcome"),
                ModelMessage("user", "a"),
                ModelMessage("user", "b"),
                ModelMessage("assistant", "c"),
            ]
        )

        assert converted == [
            {"role": "user", "content": "a\n\nb"},
            {"role": "assistant", "content": "c"},
        ]


class TestClaudeAdapter:
    @pytest.mark.asyncio
    async def test_generate_text_records_usage(self, adapter, client, tracker):
        client.messages.create.return_value = response(text_block("Hello"))

        text = await adapter.generate_text([ModelMessage("user", "hi")], system="sys")

        assert text == "Hello"
        assert client.messages.create.await_args.kwargs["system"] == "sys"
        assert tracker.records[0].provider == "claude"

    @pytest.mark.asyncio
    async def test_tool_use_loop(self, adapter, client, tools):
        client.messages.create.side_effect = [
            response(
                text_block("Checking the price."),
                tool_use_block("tu_1", "getCurrentStockPrice", {"ticker": "AAPL"}),
                stop_reason="tool_use",
            ),
            response(text_block("AAPL trades at 190.5.")),
        ]

        parts = [
            part
            async for part in adapter.stream_text(
                [ModelMessage("user", "AAPL?")], tools=tools, max_steps=3
            )
        ]

        assert parts == [
            TextDelta("Checking the price."),
            ToolCallPart("tu_1", "getCurrentStockPrice", {"ticker": "AAPL"}),
            ToolResultPart("tu_1", "getCurrentStockPrice", {"ticker": "AAPL"}, {"price": 190.5}),
            TextDelta("AAPL trades at 190.5."),
        ]
        followup = client.messages.create.await_args_list[1].kwargs["messages"]
        assert followup[-1]["role"] == "user"
        assert followup[-1]["content"][0]["tool_use_id"] == "tu_1"

    @pytest.mark.asyncio
    async def test_max_steps_stops_tool_loop(self, adapter, client, tools):
        client.messages.create.return_value = response(
            tool_use_block("tu_1", "getCurrentStockPrice", {"ticker": "AAPL"}),
            stop_reason="tool_use",
        )

        parts = [
            part
            async for part in adapter.stream_text(
                [ModelMessage("user", "AAPL?")], tools=tools, max_steps=1
            )
        ]

        assert parts == []
        tools.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_vendor_error(self, adapter, client):
        client.messages.create.side_effect = anthropic.AnthropicError("overloaded")

        with pytest.raises(ProviderError) as exc_info:
            [part async for part in adapter.stream_text([ModelMessage("user", "hi")])]

        assert exc_info.value.provider == "claude"

    @pytest.mark.asyncio
    async def test_stream_object_parses_fenced_json(self, adapter, client):
        client.messages.create.return_value = response(
            text_block('```json\n{"code": "print(1)"}\n```')
        )

        deltas = [delta async for delta in adapter.stream_object("print one", CodeOutput)]

        assert deltas == [ObjectDelta({"code": "print(1)"})]

    @pytest.mark.asyncio
    async def test_stream_object_fallback(self, adapter, client):
        client.messages.create.return_value = response(text_block("Sorry"))

        deltas = [
            delta
            async for delta in adapter.stream_object("x", CodeOutput, fallback={"code": ""})
        ]

        assert deltas == [ObjectDelta({"code": ""})]
