"""Run progress models."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class ProcessingStage(str, Enum):
    """Coarse stage of a planning run."""

    uploading = "uploading"
    extracting = "extracting"
    validating = "validating"
    clustering = "clustering"
    optimizing = "optimizing"
    generating = "generating"
    complete = "complete"
    error = "error"

    @property
    def terminal(self) -> bool:
        return self in (ProcessingStage.complete, ProcessingStage.error)


class ProcessingStatus(BaseModel):
    """A single progress event for a run."""

    stage: ProcessingStage
    progress: int = Field(ge=0, le=100)
    message: str
    current_agent: str | None = None
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))
