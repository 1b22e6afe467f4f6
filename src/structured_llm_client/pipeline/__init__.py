"""Extraction pipeline: decoration, execution, results and retries."""

from .context import SharedContext
from .decorator import TOOL_DESCRIPTION, build_tool, decorate_request
from .executor import PipelineExecutor
from .result import ErrorKind, Failure, StageResult, Success
from .retry import RetryController, RetryPlan, corrective_messages, render_violation

__all__ = [
    "SharedContext",
    "TOOL_DESCRIPTION",
    "build_tool",
    "decorate_request",
    "PipelineExecutor",
    "ErrorKind",
    "Failure",
    "StageResult",
    "Success",
    "RetryController",
    "RetryPlan",
    "corrective_messages",
    "render_violation",
]
