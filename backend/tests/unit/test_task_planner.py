"""Unit tests for task planning."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from finsight.domain.chat.task_planner import (
    MAX_TASKS,
    fold_tasks_into_messages,
    plan_tasks,
    validate_tasks,
)
from finsight.domain.chat.types import FALLBACK_TASK, Task
from finsight.infrastructure.ai.base import ModelMessage
from finsight.infrastructure.ai.cost_tracker import CostTracker
from finsight.infrastructure.ai.gemini_adapter import GeminiAdapter
from finsight.shared.exceptions import ProviderError
from tests.fakes import FakeLanguageModel


class TestValidateTasks:
    def test_keeps_well_formed_elements(self):
        raw = [
            {"task_name": "Fetch AAPL price", "class": "tool"},
            {"task_name": 3, "class": "tool"},
            {"class": "tool"},
            "not an object",
            {"task_name": "Summarize", "class": "text"},
        ]

        assert validate_tasks(raw) == [
            Task("Fetch AAPL price", "tool"),
            Task("Summarize", "text"),
        ]

    def test_caps_number_of_tasks(self):
        raw = [{"task_name": f"Step {i}", "class": "tool"} for i in range(20)]

        assert len(validate_tasks(raw)) == MAX_TASKS == 6

    def test_non_list_is_empty(self):
        assert validate_tasks({"task_name": "x", "class": "y"}) == []


class TestPlanTasks:
    @pytest.mark.asyncio
    async def test_returns_planned_tasks(self):
        model = FakeLanguageModel(
            objects={
                "TaskOutput": [
                    [{"task_name": "Fetch AAPL price", "class": "tool"}],
                    [
                        {"task_name": "Fetch AAPL price", "class": "tool"},
                        {"task_name": "Compare with MSFT", "class": "tool"},
                    ],
                ]
            }
        )

        tasks = await plan_tasks(model, "Compare Apple and Microsoft")

        assert [task.task_name for task in tasks] == ["Fetch AAPL price", "Compare with MSFT"]
        assert model.object_calls[0]["output"] == "array"
        assert "Compare Apple and Microsoft" in model.object_calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_empty_plan_uses_fallback(self):
        model = FakeLanguageModel()

        assert await plan_tasks(model, "hi") == [FALLBACK_TASK]

    @pytest.mark.asyncio
    async def test_provider_error_uses_fallback(self):
        model = FakeLanguageModel(objects={"TaskOutput": [ProviderError("openai", "down")]})

        assert await plan_tasks(model, "hi") == [FALLBACK_TASK]

    @pytest.mark.asyncio
    async def test_gemini_transport_failure_uses_fallback(self):
        generate_content = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))
        model = GeminiAdapter(client, "gemini-1.5-pro", cost_tracker=CostTracker())

        assert await plan_tasks(model, "What is AAPL's price?") == [FALLBACK_TASK]


class TestFoldTasks:
    def test_replaces_last_user_message(self):
        messages = [
            ModelMessage("user", "first question"),
            ModelMessage("assistant", "first answer"),
            ModelMessage("user", "Compare Apple and Microsoft"),
        ]
        tasks = [Task("Fetch AAPL", "tool"), Task("Fetch MSFT", "tool")]

        folded = fold_tasks_into_messages(messages, tasks)

        assert folded[-1] == ModelMessage("user", "Fetch AAPL\nFetch MSFT")
        assert folded[0].content == "first question"

    def test_does_not_mutate_input(self):
        messages = [ModelMessage("user", "original")]

        fold_tasks_into_messages(messages, [Task("Replaced", "tool")])

        assert messages == [ModelMessage("user", "original")]
