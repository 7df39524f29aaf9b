"""Task planning.

Before answering, the user's query is broken down into a short list of named
sub-tasks. The names drive the progress indicator and replace the last user
message in the copy of the conversation sent to the model.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from finsight.domain.chat.tools.models import TaskOutput
from finsight.domain.chat.types import FALLBACK_TASK, Task
from finsight.infrastructure.ai.base import LanguageModel, ModelMessage, generate_object
from finsight.infrastructure.ai.prompts import task_planner_prompt
from finsight.shared.exceptions import ProviderError

logger = logging.getLogger(__name__)

MAX_TASKS = 6


def validate_tasks(raw: Any) -> list[Task]:
    """Keep only elements with string ``task_name`` and ``class``."""
    if not isinstance(raw, list):
        return []
    tasks: list[Task] = []
    for element in raw:
        if not isinstance(element, dict):
            continue
        if not isinstance(element.get("task_name"), str) or not isinstance(element.get("class"), str):
            continue
        try:
            parsed = TaskOutput.model_validate(element)
        except PydanticValidationError:
            continue
        tasks.append(Task(task_name=parsed.task_name, task_class=parsed.task_class))
    return tasks[:MAX_TASKS]


async def plan_tasks(model: LanguageModel, query: str) -> list[Task]:
    """Return at least one task for ``query``; never raises on model failure."""
    try:
        raw = await generate_object(
            model,
            task_planner_prompt(query),
            TaskOutput,
            output="array",
            fallback=[],
        )
    except ProviderError as e:
        logger.warning("Task planning failed with %s: %s", e.provider, e.message)
        return [FALLBACK_TASK]

    tasks = validate_tasks(raw)
    if not tasks:
        logger.info("Task planner returned no usable tasks, using fallback")
        return [FALLBACK_TASK]
    return tasks


def fold_tasks_into_messages(
    messages: Sequence[ModelMessage], tasks: Sequence[Task]
) -> list[ModelMessage]:
    """Copy of ``messages`` whose last user turn is the newline-joined task names.

    The input sequence is not modified.
    """
    folded = list(messages)
    for index in range(len(folded) - 1, -1, -1):
        if folded[index].role == "user":
            folded[index] = replace(
                folded[index], content="\n".join(task.task_name for task in tasks)
            )
            break
    return folded
