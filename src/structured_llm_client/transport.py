"""Upstream chat-completion transport backed by LiteLLM."""

import logging
from typing import Any, Protocol

from litellm import acompletion

from structured_llm_client.exceptions import ProviderException

logger = logging.getLogger(__name__)


class ChatTransport(Protocol):
    """Anything able to perform a chat completion with function tools."""

    async def chat_completion(self, **request: Any) -> Any:
        """Send ``model``, ``messages``, ``tools`` and ``tool_choice`` upstream."""
        ...


def provider_from_model(model: str) -> str:
    """Determine provider from model name.

    Args:
        model: The model name

    Returns:
        Provider name ('openai', 'anthropic', etc.)
    """
    model_lower = model.lower()

    if "/" in model_lower:
        # LiteLLM style "<provider>/<model>"
        return model_lower.split("/", 1)[0]
    if any(
        prefix in model_lower
        for prefix in ["gpt", "davinci", "curie", "babbage", "ada"]
    ):
        return "openai"
    elif "claude" in model_lower:
        return "anthropic"
    elif any(prefix in model_lower for prefix in ["gemini", "palm", "bison"]):
        return "google"
    elif "llama" in model_lower:
        return "meta"
    else:
        return "unknown"


class LiteLLMTransport:
    """Chat-completion transport using ``litellm.acompletion``.

    Owns the credentials for the lifetime of the bound client. Per-request
    options override the defaults given here.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        max_tokens: int = 1000,
        **default_options: Any,
    ):
        """Initialize the transport.

        Args:
            api_key: API key for authentication; LiteLLM falls back to its own
                environment lookup when None
            api_base: Optional custom endpoint
            max_tokens: Default maximum tokens for responses
            **default_options: Further defaults forwarded on every call
        """
        self.api_key = api_key
        self.api_base = api_base
        self.max_tokens = max_tokens
        self.default_options = default_options

    async def chat_completion(self, **request: Any) -> Any:
        """Perform one chat completion call.

        Raises:
            ProviderException: Wrapping any error raised by LiteLLM
        """
        model = request.get("model", "")
        call_kwargs: dict[str, Any] = {
            "max_tokens": self.max_tokens,
            **self.default_options,
            **request,
        }
        if self.api_key is not None:
            call_kwargs["api_key"] = self.api_key
        if self.api_base is not None:
            call_kwargs["api_base"] = self.api_base

        try:
            return await acompletion(**call_kwargs)
        except Exception as e:
            provider = provider_from_model(model)
            logger.warning("Upstream call to %s/%s failed: %s", provider, model, e)
            raise ProviderException(
                f"Upstream call failed for {provider}/{model}: {e}",
                provider=provider,
                model=model,
                original_error=e,
            ) from e

    def __repr__(self) -> str:
        return (
            f"LiteLLMTransport(api_base={self.api_base!r}, "
            f"max_tokens={self.max_tokens}, api_key_set={self.api_key is not None})"
        )
