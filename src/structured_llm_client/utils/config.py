"""Configuration utilities for environment-based setup."""

import os

from dotenv import load_dotenv

from structured_llm_client.client import Instructor, build
from structured_llm_client.exceptions import ConfigurationException

API_KEY_VARIABLES = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def load_environment() -> None:
    """Load environment variables from .env file if it exists."""
    load_dotenv()


def create_instructor(
    provider: str = "openai",
    api_key: str | None = None,
    max_tokens: int = 1000,
) -> Instructor:
    """Create a client with environment-based configuration.

    Args:
        provider: Provider whose key to use ('openai' or 'anthropic')
        api_key: API key (if None, loads from the provider's env var)
        max_tokens: Default maximum tokens for responses

    Returns:
        Configured Instructor exposing ``completions.create``

    Raises:
        ConfigurationException: If the provider is unknown or no API key is
            found in parameter or environment
    """
    load_environment()

    variable = API_KEY_VARIABLES.get(provider)
    if variable is None:
        raise ConfigurationException(
            f"Unknown provider '{provider}'. "
            f"Supported providers: {sorted(API_KEY_VARIABLES)}",
            config_key="provider",
            config_value=provider,
        )

    if api_key is None:
        api_key = os.getenv(variable)

    if api_key is None:
        raise ConfigurationException(
            f"API key not found for provider '{provider}'. Set {variable} "
            "environment variable or pass api_key parameter.",
            config_key=variable,
        )

    return build(api_key=api_key, max_tokens=max_tokens)


def get_available_providers() -> dict[str, bool]:
    """Check which providers have API keys available.

    Returns:
        Dictionary mapping provider names to availability status
    """
    load_environment()

    return {
        provider: os.getenv(variable) is not None
        for provider, variable in API_KEY_VARIABLES.items()
    }


def get_default_models() -> dict[str, str]:
    """Get default models for each provider.

    Returns:
        Dictionary mapping provider names to default model names
    """
    return {
        "openai": "gpt-4o-mini",
        "anthropic": "claude-3-5-haiku-20241022",
    }
