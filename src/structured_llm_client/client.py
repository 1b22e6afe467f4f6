"""Entry point binding a transport and capabilities into a ready client."""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, NamedTuple

from pydantic import BaseModel

from structured_llm_client.capabilities import (
    Capability,
    CapabilityRegistry,
    ChatCompletionsCapability,
    CreateCall,
)
from structured_llm_client.pipeline import Failure, PipelineExecutor, SharedContext
from structured_llm_client.request_types import ExtractionRequest
from structured_llm_client.schema import SchemaManager
from structured_llm_client.transport import ChatTransport, LiteLLMTransport

logger = logging.getLogger(__name__)


class ExtractionResult(NamedTuple):
    """Validated response model plus every raw upstream response.

    Unpacks as ``response, raw_responses = await client.completions.create(...)``.
    """

    response: BaseModel
    raw_responses: list[Any]


class CapabilityEndpoint:
    """Exposes ``create`` for one bound capability."""

    def __init__(
        self,
        name: str,
        api_call: CreateCall,
        schema_manager: SchemaManager,
    ):
        self.name = name
        self._api_call = api_call
        self._schema_manager = schema_manager

    async def create(
        self,
        response_model: type[BaseModel] | dict[str, Any] | str,
        model: str,
        messages: Iterable[Mapping[str, Any]],
        max_retries: int = 0,
        **options: Any,
    ) -> ExtractionResult:
        """Extract ``response_model`` from the conversation.

        Args:
            response_model: Pydantic model class, JSON schema dict, or name of
                a schema known to the schema manager
            model: Upstream model identifier
            messages: Conversation as role/content dicts
            max_retries: Validation retries allowed after the first attempt
            **options: Transport options (``temperature``, ``max_tokens``...)

        Returns:
            ExtractionResult with the validated instance and raw responses

        Raises:
            ExtractionFailedError: On unrecoverable failure; carries the
                error and the shared context at failure time. An unknown
                schema name or invalid schema description surfaces here as
                a ``SchemaResolutionError`` before anything is sent upstream.
        """
        request = ExtractionRequest(
            response_model=response_model,
            model=model,
            messages=tuple(messages),
            max_retries=max_retries,
            options=options,
        )
        context = SharedContext.initial(request)
        logger.debug(
            "Extracting %s with %s (max_retries=%d)",
            context.model_name,
            model,
            max_retries,
        )

        executor = PipelineExecutor(
            self._api_call, schema_manager=self._schema_manager
        )
        outcome = await executor.execute(context)
        if isinstance(outcome, Failure):
            outcome.raise_for_caller()

        instance, responses = outcome.value
        return ExtractionResult(instance, list(responses))

    def __repr__(self) -> str:
        return f"CapabilityEndpoint(name={self.name!r})"


class Instructor:
    """Client exposing one endpoint per registered capability.

    Example:
        ```python
        client = build(api_key="sk-...")
        profile, raw = await client.completions.create(
            response_model=UserProfile,
            model="gpt-4o-mini",
            messages=[user_message("My name is Ada, I am 36.")],
            max_retries=2,
        )
        ```
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        transport: ChatTransport,
        schema_manager: SchemaManager | None = None,
    ):
        self._registry = registry
        self._transport = transport
        self._schema_manager = schema_manager or SchemaManager()

    @property
    def capabilities(self) -> list[str]:
        """Names of the registered capabilities."""
        return list(self._registry)

    @property
    def transport(self) -> ChatTransport:
        return self._transport

    def endpoint(self, name: str) -> CapabilityEndpoint:
        """Return the endpoint for capability ``name``.

        Raises:
            KeyError: If the capability is not registered
        """
        return CapabilityEndpoint(name, self._registry.get(name), self._schema_manager)

    def __getattr__(self, name: str) -> CapabilityEndpoint:
        registry = self.__dict__.get("_registry")
        if registry is None or name.startswith("_") or name not in registry:
            raise AttributeError(
                f"{type(self).__name__!r} has no capability {name!r}"
            )
        return self.endpoint(name)


def build(
    api_key: str | None = None,
    *,
    capabilities: Sequence[Capability] | None = None,
    transport: ChatTransport | None = None,
    schema_manager: SchemaManager | None = None,
    **transport_options: Any,
) -> Instructor:
    """Bind a transport and capability set into a ready-to-use client.

    Args:
        api_key: API key for the default LiteLLM transport
        capabilities: Capabilities to expose; defaults to chat completions
        transport: Custom transport; overrides ``api_key``/``transport_options``
        schema_manager: Schema manager resolving schema dicts and names
        **transport_options: Options for the default transport
            (``api_base``, ``max_tokens``...)

    Returns:
        Instructor exposing ``<capability>.create(...)``
    """
    if transport is None:
        transport = LiteLLMTransport(api_key=api_key, **transport_options)
    if capabilities is None:
        capabilities = [ChatCompletionsCapability()]

    registry = CapabilityRegistry.build(capabilities, transport)
    return Instructor(registry, transport, schema_manager=schema_manager)
