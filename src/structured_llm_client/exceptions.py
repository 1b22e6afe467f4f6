"""Custom exceptions for the structured LLM client."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from structured_llm_client.pipeline.context import SharedContext
    from structured_llm_client.schema.validators import Violation


class StructuredLLMException(Exception):
    """Base exception for the structured LLM client.

    All custom exceptions in this package should inherit from this base class.
    """

    pass


class UnableToParseResponse(StructuredLLMException):
    """Raised when the upstream reply carries no usable tool-call arguments.

    This exception is raised when:
    - The model did not select the extraction tool
    - The tool call arguments are empty
    - The arguments are not a JSON object

    It is never retried.

    Attributes:
        response_text: The argument string that could not be parsed, if any
    """

    def __init__(self, message: str, response_text: str | None = None):
        super().__init__(message)
        self.response_text = response_text


class ResponseValidationError(StructuredLLMException):
    """Raised when parsed arguments violate the response model's constraints.

    Carries every violation found in one attempt, not just the first, so that
    all of them can be fed back to the model on retry.

    Attributes:
        model_name: Name of the response model that failed validation
        violations: Ordered list of constraint violations
    """

    def __init__(
        self,
        message: str,
        model_name: str,
        violations: list["Violation"],
    ):
        super().__init__(message)
        self.model_name = model_name
        self.violations = list(violations)


class SchemaResolutionError(StructuredLLMException):
    """Raised when a response model cannot be turned into a schema.

    This is a programmer error: a model was declared but no schema could be
    resolved for it, or two different models share one name.

    Attributes:
        schema_name: The schema name that failed to resolve
    """

    def __init__(self, message: str, schema_name: str | None = None):
        super().__init__(message)
        self.schema_name = schema_name


class SchemaNotFoundError(SchemaResolutionError):
    """Raised when a requested schema name is not known."""

    pass


class SchemaLoadError(SchemaResolutionError):
    """Raised when a JSON schema description cannot be loaded or is invalid.

    Covers unreadable files, failed fetches, invalid or recursive schemas and
    unresolvable references.
    """

    pass


class ProviderException(StructuredLLMException):
    """Raised when the upstream chat-completion call fails.

    Wraps whatever the transport raised (authentication, rate limiting,
    unknown model, network errors) so callers see one error type. Never
    retried by the extraction pipeline.

    Attributes:
        provider: Provider inferred from the model name
        model: Model identifier of the failed call
        original_error: The exception raised by the transport
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        model: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.original_error = original_error


class ConfigurationException(StructuredLLMException):
    """Raised when the client cannot be configured from the environment.

    Typically an unknown provider name or a missing API key variable.

    Attributes:
        config_key: Setting or environment variable at fault
        config_value: The rejected value, if any
    """

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        config_value: str | None = None,
    ):
        super().__init__(message)
        self.config_key = config_key
        self.config_value = config_value


class ExtractionFailedError(StructuredLLMException):
    """Raised when an extraction call chain terminates without a result.

    Bundles the terminal error with the shared context as it stood when the
    chain stopped, so the accumulated raw responses stay available for
    diagnostics.

    Attributes:
        error: The terminal error (parse, validation, provider or schema error)
        context: Shared context snapshot at failure time
    """

    def __init__(self, error: Exception, context: "SharedContext"):
        super().__init__(f"{type(error).__name__}: {error}")
        self.error = error
        self.context = context

    @property
    def api_responses(self) -> tuple[Any, ...]:
        """Raw upstream responses collected before the failure."""
        return self.context.api_responses
