"""Usage metrics accumulated across every attempt of an extraction."""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from structured_llm_client.transport import provider_from_model


class UsageMetrics(BaseModel):
    """Token consumption of one extraction call chain.

    Retries cost tokens too; these metrics sum the usage reported by every
    raw upstream response collected during the chain.

    Attributes:
        input_tokens: Number of input tokens consumed
        output_tokens: Number of output tokens generated
        cached_tokens: Number of cached input tokens (OpenAI feature)
        attempts: Number of upstream calls made
        provider: LLM provider (e.g., 'openai', 'anthropic')
        model: Specific model used (e.g., 'gpt-4o-mini')
        timestamp: When the metrics were computed

    Example:
        ```python
        result = await client.completions.create(...)
        usage = summarize_usage(result.raw_responses, model="gpt-4o-mini")
        print(f"{usage.total_tokens} tokens over {usage.attempts} attempt(s)")
        ```
    """

    input_tokens: int = Field(ge=0, description="Number of input tokens consumed")
    output_tokens: int = Field(ge=0, description="Number of output tokens generated")
    cached_tokens: int | None = Field(
        default=None, ge=0, description="Number of cached tokens (OpenAI feature)"
    )
    attempts: int = Field(ge=0, description="Number of upstream calls made")
    provider: str = Field(description="LLM provider (e.g., 'openai', 'anthropic')")
    model: str = Field(description="Specific model used (e.g., 'gpt-4o-mini')")
    timestamp: datetime = Field(description="When the metrics were computed")

    @property
    def total_tokens(self) -> int:
        """Input plus output tokens; cached tokens are part of the input."""
        return self.input_tokens + self.output_tokens


def _cached_tokens(usage: Any) -> int | None:
    details = getattr(usage, "prompt_tokens_details", None)
    cached = getattr(details, "cached_tokens", None) if details else None
    return cached if isinstance(cached, int) else None


def summarize_usage(raw_responses: Iterable[Any], model: str) -> UsageMetrics:
    """Accumulate usage metrics from every raw response of a call chain.

    Responses without a ``usage`` attribute still count as attempts but add
    no tokens.

    Args:
        raw_responses: Raw upstream responses, e.g. ``ExtractionResult.raw_responses``
        model: The model identifier used for the calls

    Returns:
        Accumulated UsageMetrics
    """
    total_input_tokens = 0
    total_output_tokens = 0
    total_cached_tokens = 0
    has_cached = False
    attempts = 0

    for response in raw_responses:
        attempts += 1
        usage = getattr(response, "usage", None)
        if usage is None:
            continue

        total_input_tokens += getattr(usage, "prompt_tokens", 0) or 0
        total_output_tokens += getattr(usage, "completion_tokens", 0) or 0

        cached = _cached_tokens(usage)
        if cached is not None:
            total_cached_tokens += cached
            has_cached = True

    return UsageMetrics(
        input_tokens=total_input_tokens,
        output_tokens=total_output_tokens,
        cached_tokens=total_cached_tokens if has_cached else None,
        attempts=attempts,
        provider=provider_from_model(model),
        model=model,
        timestamp=datetime.now(),
    )
