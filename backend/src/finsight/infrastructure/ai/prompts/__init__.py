"""Versioned prompts.

Prompts are versioned as code so a change in model behaviour can be traced
back to the prompt revision that caused it.
"""

from finsight.infrastructure.ai.prompts.financial_assistant_v1 import (
    CODE_DOCUMENT_PROMPT,
    SUGGESTIONS_PROMPT,
    SYSTEM_PROMPT,
    TEXT_DOCUMENT_PROMPT,
    TITLE_PROMPT,
    task_planner_prompt,
    update_document_prompt,
)

__all__ = [
    "CODE_DOCUMENT_PROMPT",
    "SUGGESTIONS_PROMPT",
    "SYSTEM_PROMPT",
    "TEXT_DOCUMENT_PROMPT",
    "TITLE_PROMPT",
    "task_planner_prompt",
    "update_document_prompt",
]
