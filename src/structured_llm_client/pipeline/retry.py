"""Retry controller turning validation failures into corrective messages."""

import logging
from typing import Any, NamedTuple, cast

from structured_llm_client.exceptions import ResponseValidationError
from structured_llm_client.messages import user_message
from structured_llm_client.pipeline.context import SharedContext
from structured_llm_client.pipeline.result import ErrorKind, Failure
from structured_llm_client.schema.validators import Violation

logger = logging.getLogger(__name__)


def render_violation(model_name: str, violation: Violation) -> str:
    """Render one violation for the model, without the offending value."""
    return (
        f"An instance of {model_name} has failed the validation:\n"
        f" - property {violation.path} has failed the following constraints: "
        f"{violation.constraint}: {violation.message}"
    )


def corrective_messages(error: ResponseValidationError) -> tuple[dict[str, Any], ...]:
    """One user message per violation, in violation order."""
    return tuple(
        user_message(render_violation(error.model_name, violation))
        for violation in error.violations
    )


class RetryPlan(NamedTuple):
    """Context and corrective messages for the next attempt."""

    context: SharedContext
    messages: tuple[dict[str, Any], ...]


class RetryController:
    """Decides whether a failed attempt is retried.

    Only validation failures with remaining budget (``retries < max_retries``)
    are retried; everything else is terminal.
    """

    def plan(self, failure: Failure) -> RetryPlan | None:
        """Plan the next attempt, or return None if ``failure`` is terminal."""
        context = failure.context

        if failure.kind is not ErrorKind.VALIDATION:
            logger.warning(
                "Extraction of %s failed with %s: %s",
                context.model_name,
                failure.kind.value,
                failure.error,
            )
            return None

        if not context.can_retry:
            logger.warning(
                "Extraction of %s failed validation after %d retr%s",
                context.model_name,
                context.retries,
                "y" if context.retries == 1 else "ies",
            )
            return None

        error = cast(ResponseValidationError, failure.error)
        messages = corrective_messages(error)
        logger.info(
            "Retrying extraction of %s (%d/%d) with %d corrective message(s)",
            context.model_name,
            context.retries + 1,
            context.max_retries,
            len(messages),
        )
        return RetryPlan(context.next_retry(), messages)
