"""Shared pytest configuration and fixtures for the test suite."""

import os
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest
from pydantic import BaseModel


class UserProfile(BaseModel):
    """Minimal response model used across the unit tests."""

    name: str
    age: int


def make_completion(
    arguments: str | None,
    tool_name: str = "UserProfile",
    prompt_tokens: int = 10,
    completion_tokens: int = 5,
) -> Mock:
    """Build a chat completion response, with a tool call unless ``arguments`` is None."""
    message = Mock()
    message.content = None
    if arguments is None:
        message.tool_calls = None
    else:
        tool_call = Mock()
        tool_call.function.name = tool_name
        tool_call.function.arguments = arguments
        message.tool_calls = [tool_call]

    response = Mock()
    response.choices = [Mock(message=message)]
    response.usage = Mock(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        prompt_tokens_details=None,
    )
    return response


@pytest.fixture
def user_profile_model() -> type[UserProfile]:
    """The ``{name: str, age: int}`` response model."""
    return UserProfile


@pytest.fixture
def completion_factory() -> Callable[..., Mock]:
    """Factory building mocked chat completion responses."""
    return make_completion


@pytest.fixture
def scripted_transport() -> Callable[..., Mock]:
    """Factory for a transport replaying the given responses in order."""

    def factory(*responses: Any) -> Mock:
        transport = Mock()
        transport.chat_completion = AsyncMock(side_effect=list(responses))
        return transport

    return factory


@pytest.fixture
def sample_api_key() -> str:
    """Sample API key for testing."""
    return "test-api-key-12345"


class SecureTestConfig:
    """Test configuration that doesn't expose API keys in repr."""

    def __init__(self, openai_key: str | None) -> None:
        self._openai_key = openai_key

    @property
    def openai_api_key(self) -> str | None:
        return self._openai_key

    def __repr__(self) -> str:
        return "SecureTestConfig(keys_available=True)"


@pytest.fixture
def integration_test_setup() -> SecureTestConfig:
    """Setup fixture for integration tests - requires a real API key."""
    openai_key = os.getenv("OPENAI_API_KEY")

    if not openai_key:
        pytest.skip("Integration tests require OPENAI_API_KEY to be set.")

    return SecureTestConfig(openai_key=openai_key)
