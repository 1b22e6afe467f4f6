"""Capability abstraction: named upstream operations pluggable into the pipeline."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, NamedTuple

from structured_llm_client.request_types import DecoratedRequest
from structured_llm_client.transport import ChatTransport


class SupportedCapabilities(str, Enum):
    """Capability names known to the client.

    Only ``COMPLETIONS`` ships an implementation; the others reserve names
    for operations that can be plugged in later.
    """

    COMPLETIONS = "completions"
    FILES = "files"
    ASSISTANTS = "assistants"


class ApiResponse(NamedTuple):
    """Extracted tool-call arguments paired with the raw upstream response.

    ``arguments`` is None when the upstream did not call the tool.
    """

    arguments: str | None
    raw: Any


CreateCall = Callable[[DecoratedRequest], Awaitable[ApiResponse]]


class Capability(ABC):
    """Base class for capabilities."""

    name: SupportedCapabilities

    @abstractmethod
    def bind(self, transport: ChatTransport) -> CreateCall:
        """Bind this capability to a transport.

        Args:
            transport: Upstream transport performing the network call

        Returns:
            Coroutine function turning a decorated request into an ApiResponse
        """
        pass
