"""Collaborator execution with timeouts, retries, circuit breaking, and caching."""

from compass.exec.context import RunContext
from compass.exec.executor import (
    CircuitBreaker,
    InMemoryCache,
    ToolExecutor,
    cache_key,
)
from compass.exec.types import (
    ExecutorErrorKind,
    ToolCallable,
    ToolName,
    ToolRequest,
    ToolResponse,
)

__all__ = [
    "CircuitBreaker",
    "ExecutorErrorKind",
    "InMemoryCache",
    "RunContext",
    "ToolCallable",
    "ToolExecutor",
    "ToolName",
    "ToolRequest",
    "ToolResponse",
    "cache_key",
]
