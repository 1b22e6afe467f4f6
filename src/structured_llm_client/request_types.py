"""Request types flowing through the extraction pipeline.

``ExtractionRequest`` is what the caller submits. ``DecoratedRequest`` is the
transport-ready form derived from it: model-selection metadata stripped, a
single schema-bound ``ToolDefinition`` injected and tool selection forced.
Both are immutable; every attempt derives a fresh decorated request.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Union

from pydantic import BaseModel

# Model class, JSON schema dict, or name of a schema known to a SchemaManager
ResponseModelInput = Union[type[BaseModel], dict[str, Any], str]


def _freeze_messages(
    messages: Iterable[Mapping[str, Any]],
) -> tuple[dict[str, Any], ...]:
    return tuple(dict(message) for message in messages)


@dataclass(frozen=True)
class ExtractionRequest:
    """Caller-supplied extraction request.

    Args:
        response_model: Pydantic model the reply is extracted into, or a
            schema dict or schema name resolved into one by the pipeline.
        model: Upstream model identifier (e.g. ``"gpt-4o-mini"``).
        messages: Ordered conversation as role/content dicts.
        max_retries: Validation retries allowed after the first attempt.
        options: Extra transport options (``temperature``, ``max_tokens``...).
    """

    response_model: ResponseModelInput
    model: str
    messages: tuple[dict[str, Any], ...]
    max_retries: int = 0
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        object.__setattr__(self, "messages", _freeze_messages(self.messages))
        object.__setattr__(self, "options", dict(self.options))


@dataclass(frozen=True)
class ToolDefinition:
    """Function-tool definition sent to the upstream model.

    Args:
        name: Tool name; equals the response model's schema name.
        description: Human-readable description of the tool.
        parameters: JSON Schema describing the tool arguments.
    """

    name: str
    description: str
    parameters: dict[str, Any]

    def to_litellm_schema(self) -> dict[str, Any]:
        """Convert to the OpenAI-format dict expected by LiteLLM.

        Returns:
            A tool definition dict with ``type`` and ``function`` keys.
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def forced_choice(self) -> dict[str, Any]:
        """Tool-choice directive forcing the model to call this tool."""
        return {"type": "function", "function": {"name": self.name}}


@dataclass(frozen=True)
class DecoratedRequest:
    """Transport-ready request carrying the extraction tool."""

    model: str
    messages: tuple[dict[str, Any], ...]
    tools: tuple[ToolDefinition, ...]
    tool_choice: dict[str, Any]
    options: Mapping[str, Any] = field(default_factory=dict)

    def with_messages(
        self, extra_messages: Iterable[Mapping[str, Any]]
    ) -> "DecoratedRequest":
        """Return a copy with ``extra_messages`` appended to the conversation."""
        return replace(
            self, messages=self.messages + _freeze_messages(extra_messages)
        )

    def to_wire(self) -> dict[str, Any]:
        """Keyword arguments for the upstream transport."""
        return {
            **self.options,
            "model": self.model,
            "messages": [dict(message) for message in self.messages],
            "tools": [tool.to_litellm_schema() for tool in self.tools],
            "tool_choice": self.tool_choice,
        }
