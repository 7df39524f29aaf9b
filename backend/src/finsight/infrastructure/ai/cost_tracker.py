"""LLM token usage and cost tracking."""

from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime

from finsight.shared.logging import get_logger

logger = get_logger(__name__)


# USD pricing per 1M tokens
MODEL_PRICING = {
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gemini-1.5-pro": {"input": 1.25, "output": 5.00},
    "claude-3-opus-20240229": {"input": 15.00, "output": 75.00},
}
DEFAULT_PRICING = {"input": 5.00, "output": 15.00}


@dataclass
class UsageRecord:
    """Token usage of one vendor call."""

    provider: str
    model: str
    input_tokens: int
    output_tokens: int
    total_tokens: int
    cost_cents: float
    action: str
    timestamp: datetime


class CostTracker:
    """Keeps a bounded in-memory history of vendor usage."""

    def __init__(self, max_records: int = 1_000) -> None:
        self._buffer: deque[UsageRecord] = deque(maxlen=max_records)

    @property
    def records(self) -> list[UsageRecord]:
        return list(self._buffer)

    def calculate_cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        """Calculate cost in cents for token usage."""
        pricing = MODEL_PRICING.get(model)
        if not pricing:
            logger.warning("unknown_model_pricing", model=model)
            pricing = DEFAULT_PRICING

        input_cost = (input_tokens / 1_000_000) * pricing["input"]
        output_cost = (output_tokens / 1_000_000) * pricing["output"]
        return (input_cost + output_cost) * 100

    def record(
        self,
        provider: str,
        model: str,
        input_tokens: int | None,
        output_tokens: int | None,
        action: str,
    ) -> UsageRecord:
        input_tokens = input_tokens or 0
        output_tokens = output_tokens or 0
        cost_cents = self.calculate_cost(model, input_tokens, output_tokens)

        record = UsageRecord(
            provider=provider,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
            cost_cents=cost_cents,
            action=action,
            timestamp=datetime.now(UTC),
        )

        logger.debug(
            "ai_usage_recorded",
            provider=provider,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_cents=round(cost_cents, 4),
            action=action,
        )

        self._buffer.append(record)
        return record


_cost_tracker = CostTracker()


def get_cost_tracker() -> CostTracker:
    return _cost_tracker
