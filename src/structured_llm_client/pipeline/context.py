"""Shared context threaded through one extraction call chain."""

from dataclasses import dataclass, replace
from typing import Any

from pydantic import BaseModel

from structured_llm_client.request_types import ExtractionRequest


@dataclass(frozen=True)
class SharedContext:
    """Per-call-chain state.

    Created once per top-level ``create`` call and updated by functional
    replacement at each stage, so concurrent call chains never share it.

    Attributes:
        max_retries: Validation retries allowed after the first attempt
        retries: Retries consumed so far
        response_model: Model the reply is extracted into; None until a
            schema dict or schema name has been resolved
        original_request: The request as submitted by the caller
        api_responses: Raw upstream responses, one per upstream call, in order
    """

    max_retries: int
    retries: int
    response_model: type[BaseModel] | None
    original_request: ExtractionRequest
    api_responses: tuple[Any, ...] = ()

    @classmethod
    def initial(cls, request: ExtractionRequest) -> "SharedContext":
        """Build the context for the first attempt of ``request``."""
        model = request.response_model
        resolved = (
            model if isinstance(model, type) and issubclass(model, BaseModel) else None
        )
        return cls(
            max_retries=request.max_retries,
            retries=0,
            response_model=resolved,
            original_request=request,
        )

    def with_model(self, model: type[BaseModel]) -> "SharedContext":
        """Return a copy bound to the resolved response model."""
        return replace(self, response_model=model)

    def with_response(self, raw_response: Any) -> "SharedContext":
        """Return a copy with ``raw_response`` appended to the responses."""
        return replace(self, api_responses=self.api_responses + (raw_response,))

    def next_retry(self) -> "SharedContext":
        """Return a copy with the retry counter incremented."""
        return replace(self, retries=self.retries + 1)

    @property
    def can_retry(self) -> bool:
        return self.retries < self.max_retries

    @property
    def model_name(self) -> str:
        """Name of the response model, for logging."""
        if self.response_model is not None:
            return self.response_model.__name__
        requested = self.original_request.response_model
        return requested if isinstance(requested, str) else repr(requested)
