"""Common data types and enums used across the application."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """Geographic coordinates in WGS84 decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90, description="Latitude in decimal degrees")
    lng: float = Field(ge=-180, le=180, description="Longitude in decimal degrees")

    def as_pair(self) -> str:
        """Render as the ``lat,lng`` form used in map URLs."""
        return f"{self.lat},{self.lng}"


class PoiCategory(str, Enum):
    """Kind of point of interest."""

    restaurant = "restaurant"
    attraction = "attraction"
    activity = "activity"
    accommodation = "accommodation"
    viewpoint = "viewpoint"
    market = "market"
    temple = "temple"
    cafe = "cafe"
    other = "other"


class CompanionType(str, Enum):
    """Who the traveller is going with."""

    solo = "solo"
    partner = "partner"
    friends = "friends"
    family = "family"


class TravelStyle(str, Enum):
    """Trip style preferences."""

    adventure = "adventure"
    relaxation = "relaxation"
    culture = "culture"
    food = "food"
    luxury = "luxury"
    budget = "budget"


class TravelMode(str, Enum):
    """How the traveller reaches the next stop."""

    walking = "walking"
    transit = "transit"
    driving = "driving"


class Platform(str, Enum):
    """Social platform a screenshot came from."""

    instagram = "instagram"
    tiktok = "tiktok"
    youtube = "youtube"
    other = "other"


class Aesthetic(str, Enum):
    """Overall look and price feel of a place."""

    luxury = "luxury"
    budget = "budget"
    local = "local"
    touristy = "touristy"
    hidden_gem = "hidden-gem"


class Ambiance(str, Enum):
    """Mood of a place."""

    romantic = "romantic"
    family_friendly = "family-friendly"
    adventure = "adventure"
    relaxed = "relaxed"
    vibrant = "vibrant"


class CrowdLevel(str, Enum):
    """Expected crowd level."""

    low = "low"
    medium = "medium"
    high = "high"
