"""Catalogue of selectable chat models."""

from dataclasses import dataclass
from typing import Literal

Provider = Literal["openai", "gemini", "claude"]


@dataclass(frozen=True)
class AIModel:
    """A model the client may select by id."""

    id: str
    label: str
    api_identifier: str
    description: str
    provider: Provider


MODELS: tuple[AIModel, ...] = (
    AIModel(
        id="gpt-4o-mini",
        label="GPT 4o mini",
        api_identifier="gpt-4o-mini",
        description="Small model for fast, lightweight tasks",
        provider="openai",
    ),
    AIModel(
        id="gpt-4o",
        label="GPT 4o",
        api_identifier="gpt-4o",
        description="For complex, multi-step tasks",
        provider="openai",
    ),
    AIModel(
        id="gemini-1.5-pro",
        label="Gemini 1.5 Pro",
        api_identifier="gemini-1.5-pro",
        description="Google's most capable model",
        provider="gemini",
    ),
    AIModel(
        id="claude-3-opus-20240229",
        label="Claude 3 Opus",
        api_identifier="claude-3-opus-20240229",
        description="Anthropic's most capable model",
        provider="claude",
    ),
)

DEFAULT_MODEL_ID = next(model.id for model in MODELS if model.provider == "openai")


def find_model(model_id: str | None) -> AIModel | None:
    """Look up a model by id; ``None`` selects the default."""
    wanted = model_id or DEFAULT_MODEL_ID
    for model in MODELS:
        if model.id == wanted:
            return model
    return None
