"""Configuration utilities."""

from .config import (
    create_instructor,
    get_available_providers,
    get_default_models,
    load_environment,
)

__all__ = [
    "load_environment",
    "create_instructor",
    "get_available_providers",
    "get_default_models",
]
