"""Pipeline state passed between stage nodes."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from compass.models.budget import BudgetReport
from compass.models.intent import TripPreferences
from compass.models.itinerary import Itinerary
from compass.models.poi import PointOfInterest
from compass.models.schedule import TripSchedule
from compass.models.tool_results import (
    EnrichmentResult,
    ValidationResult,
    VibeClassification,
    VisionSummary,
)
from compass.planning.clustering import ClusteringResult


class Screenshot(BaseModel):
    """One uploaded image."""

    filename: str
    content: bytes


class PipelineState(BaseModel):
    """Typed state for one planning run.

    Each node reads the previous stage's output and fills in its own.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    run_id: str = Field(description="Run id, also used as itinerary id")
    preferences: TripPreferences = Field(default_factory=TripPreferences)
    destination: str | None = Field(
        default=None, description="Destination supplied by the user"
    )
    screenshots: list[Screenshot] = Field(default_factory=list)
    today: date | None = Field(
        default=None, description="Base date when preferences have no start date"
    )

    vision: VisionSummary | None = None
    validation: ValidationResult | None = None
    enrichment: EnrichmentResult | None = None
    vibe: VibeClassification | None = None
    pois: list[PointOfInterest] = Field(
        default_factory=list, description="Current working POI set"
    )
    route: ClusteringResult | None = None
    num_days: int = Field(default=1, ge=1)
    budget: BudgetReport | None = None
    schedule: TripSchedule | None = None
    itinerary: Itinerary | None = None

    stage_times_ms: dict[str, int] = Field(default_factory=dict)

    @property
    def destination_name(self) -> str:
        if self.destination:
            return self.destination
        if self.enrichment is not None:
            return self.enrichment.destination_name
        return "Unknown Destination"
