"""Structured LLM Client - validated structured extraction over chat completions."""

__version__ = "0.1.0"

# Entry point
from .client import CapabilityEndpoint, ExtractionResult, Instructor, build

# Capabilities
from .capabilities import (
    ApiResponse,
    Capability,
    CapabilityRegistry,
    ChatCompletionsCapability,
    CreateCall,
    SupportedCapabilities,
)

# Custom exceptions
from .exceptions import (
    ConfigurationException,
    ExtractionFailedError,
    ProviderException,
    ResponseValidationError,
    SchemaLoadError,
    SchemaNotFoundError,
    SchemaResolutionError,
    StructuredLLMException,
    UnableToParseResponse,
)

# Messages and requests
from .messages import Role, assistant_message, system_message, user_message
from .request_types import DecoratedRequest, ExtractionRequest, ToolDefinition

# Schema handling
from .schema import ResponseValidator, SchemaManager, SchemaProvider, Violation

# Usage tracking
from .tracking import UsageMetrics, summarize_usage

# Transport
from .transport import ChatTransport, LiteLLMTransport

# Configuration utilities
from .utils import (
    create_instructor,
    get_available_providers,
    get_default_models,
    load_environment,
)

__all__ = [
    "__version__",
    "build",
    "Instructor",
    "CapabilityEndpoint",
    "ExtractionResult",
    "ApiResponse",
    "Capability",
    "CapabilityRegistry",
    "ChatCompletionsCapability",
    "CreateCall",
    "SupportedCapabilities",
    "Role",
    "user_message",
    "system_message",
    "assistant_message",
    "ExtractionRequest",
    "DecoratedRequest",
    "ToolDefinition",
    "SchemaManager",
    "SchemaProvider",
    "ResponseValidator",
    "Violation",
    "UsageMetrics",
    "summarize_usage",
    "ChatTransport",
    "LiteLLMTransport",
    "load_environment",
    "create_instructor",
    "get_available_providers",
    "get_default_models",
    # Exceptions
    "StructuredLLMException",
    "ConfigurationException",
    "ExtractionFailedError",
    "ProviderException",
    "ResponseValidationError",
    "SchemaLoadError",
    "SchemaNotFoundError",
    "SchemaResolutionError",
    "UnableToParseResponse",
]
