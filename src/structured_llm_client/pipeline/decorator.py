"""Request decoration: inject the schema-bound extraction tool."""

from pydantic import BaseModel

from structured_llm_client.request_types import (
    DecoratedRequest,
    ExtractionRequest,
    ToolDefinition,
)
from structured_llm_client.schema.provider import SchemaProvider, schema_name

TOOL_DESCRIPTION = (
    "Correctly extract {name} with all required parameters and correct types"
)


def build_tool(
    request: ExtractionRequest, response_model: type[BaseModel] | None = None
) -> ToolDefinition:
    """Build the single function tool whose parameters equal the model schema.

    Args:
        request: Caller request
        response_model: Resolved response model; defaults to the request's own

    Raises:
        SchemaResolutionError: If the response model cannot be resolved
    """
    model = response_model or request.response_model
    provider = SchemaProvider.from_model(model)  # type: ignore[arg-type]
    name = schema_name(model)  # type: ignore[arg-type]

    parameters = provider.resolve_schema(name)
    definitions = provider.resolve_definitions(name)
    if definitions:
        parameters["definitions"] = definitions

    return ToolDefinition(
        name=name,
        description=TOOL_DESCRIPTION.format(name=name),
        parameters=parameters,
    )


def decorate_request(
    request: ExtractionRequest, response_model: type[BaseModel] | None = None
) -> DecoratedRequest:
    """Derive the transport-ready request from a caller request.

    Message content is never inspected; the result depends only on the
    response model, model id, messages and options.
    """
    tool = build_tool(request, response_model)
    return DecoratedRequest(
        model=request.model,
        messages=request.messages,
        tools=(tool,),
        tool_choice=tool.forced_choice(),
        options=request.options,
    )
