"""Chat completions capability."""

import json
from typing import Any

from structured_llm_client.capabilities.base import (
    ApiResponse,
    Capability,
    CreateCall,
    SupportedCapabilities,
)
from structured_llm_client.exceptions import ProviderException
from structured_llm_client.request_types import DecoratedRequest
from structured_llm_client.transport import ChatTransport, provider_from_model


def extract_tool_arguments(response: Any) -> str | None:
    """Extract the first tool call's argument string from a chat completion.

    Args:
        response: Chat completion response with choices

    Returns:
        The JSON argument string, or None if no tool call is present
    """
    choices = getattr(response, "choices", None)
    if not choices:
        return None

    message = getattr(choices[0], "message", None)
    tool_calls = getattr(message, "tool_calls", None)
    if not tool_calls:
        return None

    function = getattr(tool_calls[0], "function", None)
    arguments = getattr(function, "arguments", None)
    if isinstance(arguments, dict):
        # Some providers hand back already-decoded arguments
        return json.dumps(arguments)
    return arguments or None


class ChatCompletionsCapability(Capability):
    """Forwards decorated requests to the chat completions endpoint.

    Any error a transport raises that is not already a ``ProviderException``
    is wrapped in one, so the pipeline classifies it as a transport failure.
    """

    name = SupportedCapabilities.COMPLETIONS

    def bind(self, transport: ChatTransport) -> CreateCall:
        async def create(request: DecoratedRequest) -> ApiResponse:
            try:
                response = await transport.chat_completion(**request.to_wire())
            except ProviderException:
                raise
            except Exception as e:
                raise ProviderException(
                    f"Upstream call failed for {request.model}: {e}",
                    provider=provider_from_model(request.model),
                    model=request.model,
                    original_error=e,
                ) from e
            return ApiResponse(extract_tool_arguments(response), response)

        return create
