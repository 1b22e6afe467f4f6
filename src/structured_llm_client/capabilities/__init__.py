"""Pluggable upstream capabilities (chat completions today)."""

from .base import ApiResponse, Capability, CreateCall, SupportedCapabilities
from .completions import ChatCompletionsCapability, extract_tool_arguments
from .registry import CapabilityRegistry

__all__ = [
    "ApiResponse",
    "Capability",
    "CapabilityRegistry",
    "ChatCompletionsCapability",
    "CreateCall",
    "SupportedCapabilities",
    "extract_tool_arguments",
]
