"""Type definitions for collaborator execution."""

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field

ToolName = Literal["vision", "places_search", "place_details", "llm_chat"]

ExecutorErrorKind = Literal["timeout_soft", "timeout_hard", "tool_error", "breaker_open"]

# Tools take a JSON-able args dict and return a JSON-able result dict.
ToolCallable = Callable[[dict[str, Any]], dict[str, Any]]


class ToolRequest(BaseModel):
    """A single collaborator call."""

    name: ToolName
    args: dict[str, Any] = Field(default_factory=dict)
    timeout_soft_ms: int | None = Field(
        default=None, description="Per-attempt timeout override"
    )
    timeout_hard_ms: int | None = Field(
        default=None, description="Overall timeout override, retries included"
    )
    cacheable: bool = Field(default=False, description="Whether results may be cached")


class ToolResponse(BaseModel):
    """Outcome of a collaborator call with every policy applied."""

    ok: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    from_cache: bool = False
    latency_ms: int = 0
    retries: int = 0
    breaker_open: bool = False
