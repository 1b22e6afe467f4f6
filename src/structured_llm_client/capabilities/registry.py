"""Capability registry mapping capability names to bound create calls."""

from collections.abc import Iterable, Iterator

from structured_llm_client.capabilities.base import (
    Capability,
    CreateCall,
    SupportedCapabilities,
)
from structured_llm_client.transport import ChatTransport


class CapabilityRegistry:
    """Open mapping from capability name to a transport-bound create call."""

    def __init__(self) -> None:
        self._calls: dict[str, CreateCall] = {}

    @classmethod
    def build(
        cls, capabilities: Iterable[Capability], transport: ChatTransport
    ) -> "CapabilityRegistry":
        """Bind every capability to ``transport``.

        Raises:
            ValueError: If two capabilities share a name
        """
        registry = cls()
        for capability in capabilities:
            registry.register(capability, transport)
        return registry

    def register(self, capability: Capability, transport: ChatTransport) -> None:
        name = SupportedCapabilities(capability.name).value
        if name in self._calls:
            raise ValueError(f"Capability '{name}' is already registered")
        self._calls[name] = capability.bind(transport)

    def get(self, name: str | SupportedCapabilities) -> CreateCall:
        """Return the bound create call for ``name``.

        Raises:
            KeyError: If the capability is not registered
        """
        key = name.value if isinstance(name, SupportedCapabilities) else name
        try:
            return self._calls[key]
        except KeyError:
            raise KeyError(
                f"Capability '{key}' is not registered. "
                f"Available capabilities: {sorted(self._calls)}"
            ) from None

    def __contains__(self, name: object) -> bool:
        key = name.value if isinstance(name, SupportedCapabilities) else name
        return key in self._calls

    def __iter__(self) -> Iterator[str]:
        return iter(self._calls)

    def __len__(self) -> int:
        return len(self._calls)
