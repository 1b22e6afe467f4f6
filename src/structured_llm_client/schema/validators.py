"""Parsing and validation of tool-call arguments against response models."""

import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from structured_llm_client.exceptions import (
    ResponseValidationError,
    UnableToParseResponse,
)
from structured_llm_client.schema.provider import schema_name

logger = logging.getLogger(__name__)

ROOT_PATH = "<root>"


@dataclass(frozen=True)
class Violation:
    """A single field constraint violation.

    Attributes:
        path: Dotted field path (``"dynamic_context.0.category"``)
        constraint: Name of the failed constraint (``"int_parsing"``,
            ``"missing"``, ``"string_too_short"``...)
        message: Human-readable description of the failure
    """

    path: str
    constraint: str
    message: str

    @classmethod
    def from_error_details(cls, details: dict[str, Any]) -> "Violation":
        """Build a violation from one entry of ``ValidationError.errors()``."""
        location = details.get("loc") or ()
        path = ".".join(str(part) for part in location) or ROOT_PATH
        return cls(
            path=path,
            constraint=str(details.get("type", "unknown")),
            message=str(details.get("msg", "")),
        )


class ResponseValidator:
    """Turns an argument string into a validated response model instance.

    Parsing and validation are separate steps: a reply that cannot be parsed
    is terminal, while a reply that parses but violates constraints is
    reported with every violation so it can be corrected on retry.
    """

    def parse(self, arguments: str | None) -> dict[str, Any]:
        """Deserialize tool-call arguments into a JSON object.

        Args:
            arguments: Argument string from the tool call, or None if the
                model did not call the tool

        Returns:
            Decoded JSON object

        Raises:
            UnableToParseResponse: If arguments are absent, empty, malformed
                or not a JSON object
        """
        if arguments is None or not arguments.strip():
            raise UnableToParseResponse(
                "Upstream response contains no tool call arguments",
                response_text=arguments,
            )

        try:
            data = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise UnableToParseResponse(
                f"Tool call arguments are not valid JSON: {e}",
                response_text=arguments,
            ) from e

        if not isinstance(data, dict):
            raise UnableToParseResponse(
                f"Tool call arguments must be a JSON object, got {type(data).__name__}",
                response_text=arguments,
            )
        return data

    def validate(
        self,
        data: dict[str, Any],
        target_model: type[BaseModel],
        retries: int = 0,
    ) -> BaseModel:
        """Validate decoded arguments against the response model.

        Args:
            data: Decoded tool-call arguments
            target_model: Response model to validate against
            retries: Current retry count, exposed to validators as context

        Returns:
            Validated model instance

        Raises:
            ResponseValidationError: Carrying every violation found
        """
        try:
            return target_model.model_validate(data, context={"retries": retries})
        except ValidationError as e:
            violations = [Violation.from_error_details(d) for d in e.errors()]
            name = schema_name(target_model)
            logger.debug(
                "%s failed validation with %d violation(s)", name, len(violations)
            )
            raise ResponseValidationError(
                f"{name} failed validation with {len(violations)} violation(s)",
                model_name=name,
                violations=violations,
            ) from e
