"""Point of interest and cluster models."""

from pydantic import BaseModel, Field

from .common import Aesthetic, Ambiance, CrowdLevel, GeoPoint, PoiCategory


class VibeScore(BaseModel):
    """Aesthetic and mood classification for a place or a whole trip."""

    aesthetic: Aesthetic = Field(default=Aesthetic.local)
    ambiance: Ambiance = Field(default=Ambiance.relaxed)
    crowd_level: CrowdLevel | None = Field(default=None)


class PointOfInterest(BaseModel):
    """A single visitable location.

    ``id`` is unique across one planning run. A POI without ``coordinates``
    never joins a cluster but is still scheduled.
    """

    id: str = Field(description="Unique id within one run")
    name: str = Field(description="Display name")
    address: str | None = Field(default=None, description="Formatted address")
    coordinates: GeoPoint | None = Field(default=None)
    category: PoiCategory = Field(default=PoiCategory.other)
    rating: float | None = Field(default=None, ge=0, le=5)
    price_level: int | None = Field(default=None, ge=1, le=4)
    estimated_cost: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None)
    verified: bool = Field(default=False)
    opening_hours: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    source: str | None = Field(default=None, description="Where the POI came from")
    vibe: VibeScore | None = Field(default=None)


class Cluster(BaseModel):
    """Geographically coherent group of POIs."""

    id: str = Field(description="Cluster id, e.g. cluster-1")
    name: str = Field(description="Area name derived from the first member")
    centroid: GeoPoint = Field(description="Mean coordinate of the members")
    members: list[PointOfInterest] = Field(default_factory=list)
    suggested_duration_minutes: int = Field(
        default=0, description="Sum of member visit estimates"
    )
