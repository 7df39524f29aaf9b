"""Unit tests for the provider-agnostic JSON helpers."""

import pytest

from finsight.domain.chat.tools.models import SuggestionOutput, TaskOutput
from finsight.infrastructure.ai.base import (
    generate_object,
    object_instructions,
    parse_json_response,
    parse_partial_json,
    unwrap_output,
)
from tests.fakes import FakeLanguageModel


class TestParsePartialJson:
    def test_complete_document(self):
        assert parse_partial_json('{"code": "print(1)"}') == {"code": "print(1)"}

    def test_open_string_is_closed(self):
        assert parse_partial_json('{"code": "print(') == {"code": "print("}

    def test_dangling_key_is_unparseable(self):
        text = '{"elements": [{"task_name": "Fetch prices", "class": "tool"}, {"task_na'

        assert parse_partial_json(text) is None

    def test_trailing_comma_dropped(self):
        text = '{"elements": [{"task_name": "Fetch prices", "class": "tool"},'

        assert parse_partial_json(text) == {
            "elements": [{"task_name": "Fetch prices", "class": "tool"}]
        }

    def test_escaped_quote_inside_string(self):
        assert parse_partial_json('{"text": "say \\"hi') == {"text": 'say "hi'}

    def test_empty_text(self):
        assert parse_partial_json("   ") is None


class TestParseJsonResponse:
    def test_plain_json(self):
        assert parse_json_response('{"a": 1}') == {"a": 1}

    def test_code_fence(self):
        assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            parse_json_response("not json")


class TestObjectOutput:
    def test_array_instructions_mention_envelope(self):
        instructions = object_instructions(TaskOutput, "array")

        assert '{"elements": [...]}' in instructions
        assert "task_name" in instructions

    def test_object_instructions_use_aliases(self):
        instructions = object_instructions(SuggestionOutput, "object")

        assert "originalSentence" in instructions

    def test_unwrap_array(self):
        assert unwrap_output({"elements": [1, 2]}, "array") == [1, 2]

    def test_unwrap_array_without_envelope(self):
        assert unwrap_output({"other": 1}, "array") is None

    def test_unwrap_object_passthrough(self):
        assert unwrap_output({"code": "x"}, "object") == {"code": "x"}


class TestGenerateObject:
    @pytest.mark.asyncio
    async def test_returns_last_snapshot(self):
        model = FakeLanguageModel(objects={"TaskOutput": [[], [{"task_name": "A", "class": "b"}]]})

        result = await generate_object(model, "query", TaskOutput, output="array", fallback=[])

        assert result == [{"task_name": "A", "class": "b"}]

    @pytest.mark.asyncio
    async def test_returns_fallback_when_model_yields_it(self):
        model = FakeLanguageModel()

        result = await generate_object(model, "query", TaskOutput, output="array", fallback=[])

        assert result == []
