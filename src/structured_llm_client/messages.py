"""Chat message roles and helpers for building role/content dicts."""

from enum import Enum
from typing import Any


class Role(str, Enum):
    """Conversation roles understood by chat-completion APIs."""

    USER = "user"
    SYSTEM = "system"
    ASSISTANT = "assistant"
    FUNCTION = "function"
    TOOL = "tool"


def _message(role: Role, content: str) -> dict[str, Any]:
    return {"role": role.value, "content": content}


def user_message(content: str) -> dict[str, Any]:
    """Build a user message."""
    return _message(Role.USER, content)


def system_message(content: str) -> dict[str, Any]:
    """Build a system message."""
    return _message(Role.SYSTEM, content)


def assistant_message(content: str) -> dict[str, Any]:
    """Build an assistant message."""
    return _message(Role.ASSISTANT, content)
