"""Result models returned by external collaborator adapters."""

from pydantic import BaseModel, Field

from .common import Platform
from .poi import PointOfInterest, VibeScore


class ScreenshotAnalysis(BaseModel):
    """Text and places extracted from one screenshot."""

    id: str
    source_name: str = Field(description="Uploaded file name")
    extracted_text: list[str] = Field(default_factory=list)
    location_names: list[str] = Field(default_factory=list)
    hashtags: list[str] = Field(default_factory=list)
    platform: Platform | None = None
    confidence: float = Field(default=0.0, ge=0, le=1)
    fallback: bool = Field(default=False, description="Produced by the mock extractor")


class VisionSummary(BaseModel):
    """Merged view over every analysed screenshot."""

    screenshots: list[ScreenshotAnalysis] = Field(default_factory=list)
    all_locations: list[str] = Field(default_factory=list)
    all_hashtags: list[str] = Field(default_factory=list)
    platforms: list[Platform] = Field(default_factory=list)


class RejectedLocation(BaseModel):
    name: str
    reason: str


class ValidationResult(BaseModel):
    """Outcome of checking extracted names against the places service."""

    verified_pois: list[PointOfInterest] = Field(default_factory=list)
    rejected: list[RejectedLocation] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    overall_confidence: float = Field(default=0.0, ge=0, le=1)


class EnrichmentResult(BaseModel):
    """Enriched POIs plus the inferred destination."""

    pois: list[PointOfInterest] = Field(default_factory=list)
    destination_name: str = "Unknown Destination"


class VibeClassification(BaseModel):
    """Trip-wide vibe, per-POI vibes and the POIs that clash with preferences."""

    overall_vibe: VibeScore = Field(default_factory=VibeScore)
    location_vibes: dict[str, VibeScore] = Field(default_factory=dict)
    incompatible_poi_ids: list[str] = Field(default_factory=list)
    style_recommendations: list[str] = Field(default_factory=list)
