"""Final itinerary output models."""

from datetime import UTC, date, datetime

from pydantic import BaseModel, Field

from .budget import BudgetBreakdown
from .common import TravelMode
from .intent import TripPreferences
from .poi import PointOfInterest


class ItineraryItem(BaseModel):
    """One stop in a day, with display copy."""

    poi: PointOfInterest
    start_time: str = Field(description="HH:MM")
    end_time: str = Field(description="HH:MM")
    duration_minutes: int = Field(ge=0)
    travel_time_minutes: int = Field(default=0, ge=0)
    travel_mode: TravelMode = Field(default=TravelMode.walking)
    note: str | None = None
    tips: list[str] = Field(default_factory=list, max_length=3)


class DayItinerary(BaseModel):
    date: date
    day_number: int = Field(ge=1)
    title: str
    items: list[ItineraryItem] = Field(default_factory=list)
    total_cost: float = Field(default=0.0, ge=0)
    total_distance_km: float = Field(default=0.0, ge=0)


class Itinerary(BaseModel):
    """Complete multi-day itinerary."""

    id: str
    name: str
    destination: str
    days: list[DayItinerary] = Field(default_factory=list)
    total_budget: float = Field(default=0.0, ge=0)
    budget_breakdown: BudgetBreakdown | None = None
    preferences: TripPreferences
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    map_url: str = ""
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class ProcessingReport(BaseModel):
    """Timing and counts for one pipeline run."""

    total_time_ms: int = 0
    stage_times_ms: dict[str, int] = Field(default_factory=dict)
    locations_found: int = 0
    locations_verified: int = 0
    clusters_created: int = 0


class PlanResult(BaseModel):
    itinerary: Itinerary
    report: ProcessingReport
