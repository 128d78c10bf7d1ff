"""Metrics for collaborator calls and pipeline stages."""

from compass.metrics.core import record_tool_call
from compass.metrics.registry import MetricsClient, get_metrics

__all__ = ["MetricsClient", "get_metrics", "record_tool_call"]
