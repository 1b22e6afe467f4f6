"""Pipeline executor: resolve, decorate, call, parse and validate, with retries."""

import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, cast

from pydantic import BaseModel

from structured_llm_client.capabilities.base import CreateCall
from structured_llm_client.pipeline.context import SharedContext
from structured_llm_client.pipeline.decorator import decorate_request
from structured_llm_client.pipeline.result import (
    CLASSIFIED_ERRORS,
    Failure,
    StageResult,
    Success,
)
from structured_llm_client.pipeline.retry import RetryController
from structured_llm_client.request_types import DecoratedRequest
from structured_llm_client.schema.manager import SchemaManager
from structured_llm_client.schema.validators import ResponseValidator

logger = logging.getLogger(__name__)

# Stages may be plain functions or coroutine functions
Stage = Callable[[SharedContext, Any], Any]


class PipelineExecutor:
    """Runs extraction attempts until success or a terminal failure.

    Before the first attempt, a response model given as a schema dict or
    schema name is resolved into a model class; a resolution error is a
    terminal failure and nothing is sent upstream.

    Each attempt is then a strict sequence of stages, each taking
    ``(context, value)`` and producing ``(new_context, new_value)``:

    1. decorate the original request
    2. append extra (corrective) messages
    3. call the bound capability and record the raw response
    4. parse the tool-call arguments
    5. validate them against the response model

    A failing stage stops the attempt and yields a ``Failure`` carrying the
    context as of that stage. The retry controller decides whether another
    attempt follows; corrective messages accumulate across attempts. Errors
    outside ``CLASSIFIED_ERRORS`` are not stage failures and propagate.
    """

    def __init__(
        self,
        api_call: CreateCall,
        validator: ResponseValidator | None = None,
        retry_controller: RetryController | None = None,
        schema_manager: SchemaManager | None = None,
    ):
        self._api_call = api_call
        self._validator = validator or ResponseValidator()
        self._retry_controller = retry_controller or RetryController()
        self._schema_manager = schema_manager or SchemaManager()

    async def execute(
        self,
        context: SharedContext,
        extra_messages: Iterable[Mapping[str, Any]] = (),
    ) -> StageResult:
        """Run attempts until success or terminal failure.

        Returns:
            ``Success`` whose value is ``(validated_instance, api_responses)``,
            or the terminal ``Failure``
        """
        resolved = self.resolve(context)
        if isinstance(resolved, Failure):
            logger.warning(
                "Could not resolve response model %s: %s",
                context.model_name,
                resolved.error,
            )
            return resolved
        context = resolved.context

        corrections = tuple(dict(message) for message in extra_messages)

        while True:
            outcome = await self.attempt(context, corrections)
            if isinstance(outcome, Success):
                logger.debug(
                    "Extracted %s after %d upstream call(s)",
                    context.model_name,
                    len(outcome.context.api_responses),
                )
                return Success(
                    outcome.context, (outcome.value, outcome.context.api_responses)
                )

            plan = self._retry_controller.plan(outcome)
            if plan is None:
                return outcome
            context = plan.context
            corrections = corrections + plan.messages

    def resolve(self, context: SharedContext) -> StageResult:
        """Bind the context to a response model class."""
        if context.response_model is not None:
            return Success(context, context.response_model)
        try:
            model = self._schema_manager.get_response_model(
                context.original_request.response_model
            )
        except CLASSIFIED_ERRORS as e:
            return Failure.from_error(e, context)
        return Success(context.with_model(model), model)

    async def attempt(
        self,
        context: SharedContext,
        extra_messages: tuple[dict[str, Any], ...] = (),
    ) -> StageResult:
        """Run a single attempt through all stages."""
        stages: list[tuple[str, Stage]] = [
            ("decorate", self._decorate),
            ("append_messages", self._appender(extra_messages)),
            ("call", self._call),
            ("parse", self._parse),
            ("validate", self._validate),
        ]

        value: Any = None
        for stage_name, stage in stages:
            logger.debug("Stage %s (attempt %d)", stage_name, context.retries + 1)
            try:
                result = stage(context, value)
                if inspect.isawaitable(result):
                    result = await result
            except CLASSIFIED_ERRORS as e:
                return Failure.from_error(e, context)
            context, value = result

        return Success(context, value)

    def _decorate(
        self, context: SharedContext, _: Any
    ) -> tuple[SharedContext, DecoratedRequest]:
        return context, decorate_request(
            context.original_request, context.response_model
        )

    def _appender(self, extra_messages: tuple[dict[str, Any], ...]) -> Stage:
        def append(
            context: SharedContext, request: DecoratedRequest
        ) -> tuple[SharedContext, DecoratedRequest]:
            return context, request.with_messages(extra_messages)

        return append

    async def _call(
        self, context: SharedContext, request: DecoratedRequest
    ) -> tuple[SharedContext, str | None]:
        response = await self._api_call(request)
        return context.with_response(response.raw), response.arguments

    def _parse(
        self, context: SharedContext, arguments: str | None
    ) -> tuple[SharedContext, dict[str, Any]]:
        return context, self._validator.parse(arguments)

    def _validate(
        self, context: SharedContext, data: dict[str, Any]
    ) -> tuple[SharedContext, BaseModel]:
        instance = self._validator.validate(
            data,
            cast(type[BaseModel], context.response_model),
            retries=context.retries,
        )
        return context, instance
