"""Result type for pipeline stages: a success value or a tagged failure."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, NoReturn, TypeVar, Union

from structured_llm_client.exceptions import (
    ExtractionFailedError,
    ProviderException,
    ResponseValidationError,
    SchemaResolutionError,
    UnableToParseResponse,
)
from structured_llm_client.pipeline.context import SharedContext

T = TypeVar("T")

# Errors a stage may fail with; anything else is a bug and propagates
CLASSIFIED_ERRORS = (
    ResponseValidationError,
    UnableToParseResponse,
    SchemaResolutionError,
    ProviderException,
)


class ErrorKind(str, Enum):
    """Classification of a stage failure; only VALIDATION is retried."""

    VALIDATION = "validation"
    UNABLE_TO_PARSE = "unable_to_parse"
    TRANSPORT = "transport"
    SCHEMA_RESOLUTION = "schema_resolution"


@dataclass(frozen=True)
class Success(Generic[T]):
    """A stage completed; ``context`` is the updated context."""

    context: SharedContext
    value: T


@dataclass(frozen=True)
class Failure:
    """A stage failed; ``context`` is the snapshot at failure time."""

    kind: ErrorKind
    error: Exception
    context: SharedContext

    @classmethod
    def from_error(cls, error: Exception, context: SharedContext) -> "Failure":
        """Classify ``error`` and bundle it with ``context``.

        Raises:
            TypeError: If ``error`` is not one of ``CLASSIFIED_ERRORS``
        """
        if isinstance(error, ResponseValidationError):
            kind = ErrorKind.VALIDATION
        elif isinstance(error, UnableToParseResponse):
            kind = ErrorKind.UNABLE_TO_PARSE
        elif isinstance(error, SchemaResolutionError):
            kind = ErrorKind.SCHEMA_RESOLUTION
        elif isinstance(error, ProviderException):
            kind = ErrorKind.TRANSPORT
        else:
            raise TypeError(
                f"Cannot classify {type(error).__name__} as a stage failure"
            ) from error
        return cls(kind=kind, error=error, context=context)

    def raise_for_caller(self) -> NoReturn:
        """Raise the failure as ``ExtractionFailedError(error, context)``."""
        raise ExtractionFailedError(self.error, self.context) from self.error


StageResult = Union[Success[Any], Failure]
