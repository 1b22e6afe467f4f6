"""Usage tracking across extraction attempts."""

from .usage_metrics import UsageMetrics, summarize_usage

__all__ = ["UsageMetrics", "summarize_usage"]
