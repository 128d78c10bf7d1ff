"""Convenient imports for all model types."""

# Common types and enums
from .common import (
    Aesthetic,
    Ambiance,
    CompanionType,
    CrowdLevel,
    GeoPoint,
    Platform,
    PoiCategory,
    TravelMode,
    TravelStyle,
)

# Budget models
from .budget import (
    BudgetBreakdown,
    BudgetCheck,
    BudgetOptimization,
    BudgetReport,
    KeepDecision,
    RemoveDecision,
    ReplaceDecision,
)

# Preferences
from .intent import TripPreferences

# Itinerary models
from .itinerary import (
    DayItinerary,
    Itinerary,
    ItineraryItem,
    PlanResult,
    ProcessingReport,
)

# POI models
from .poi import Cluster, PointOfInterest, VibeScore

# Schedule models
from .schedule import DaySchedule, TimeSlot, TripSchedule

# Status models
from .status import ProcessingStage, ProcessingStatus

# Tool result models
from .tool_results import (
    EnrichmentResult,
    RejectedLocation,
    ScreenshotAnalysis,
    ValidationResult,
    VibeClassification,
    VisionSummary,
)

__all__ = [
    "Aesthetic",
    "Ambiance",
    "BudgetBreakdown",
    "BudgetCheck",
    "BudgetOptimization",
    "BudgetReport",
    "Cluster",
    "CompanionType",
    "CrowdLevel",
    "DayItinerary",
    "DaySchedule",
    "EnrichmentResult",
    "GeoPoint",
    "Itinerary",
    "ItineraryItem",
    "KeepDecision",
    "PlanResult",
    "Platform",
    "PoiCategory",
    "PointOfInterest",
    "ProcessingReport",
    "ProcessingStage",
    "ProcessingStatus",
    "RejectedLocation",
    "RemoveDecision",
    "ReplaceDecision",
    "ScreenshotAnalysis",
    "TimeSlot",
    "TravelMode",
    "TravelStyle",
    "TripPreferences",
    "TripSchedule",
    "ValidationResult",
    "VibeClassification",
    "VibeScore",
    "VisionSummary",
]
