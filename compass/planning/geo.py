"""Geo primitives over WGS84 coordinates.

Great-circle distance, arithmetic centroid and the route helpers built on
them. Pure functions; every other planning module depends on these.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from compass.models.common import GeoPoint
from compass.models.poi import PointOfInterest

EARTH_RADIUS_KM = 6371.0
MAPS_DIRECTIONS_BASE = "https://www.google.com/maps/dir/"


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle (haversine) distance between two points in km."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lam = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    # Rounding noise can push h a hair above 1 for near-antipodal points.
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, h)))


def centroid(points: Sequence[GeoPoint], default: GeoPoint) -> GeoPoint:
    """Arithmetic mean of latitudes and longitudes.

    Not a spherical centroid; good enough at city scale.

    Args:
        points: Points to average
        default: Returned unchanged when ``points`` is empty

    Returns:
        Mean point, or ``default``
    """
    if not points:
        return default
    n = len(points)
    return GeoPoint(
        lat=sum(p.lat for p in points) / n,
        lng=sum(p.lng for p in points) / n,
    )


def total_distance_km(pois: Iterable[PointOfInterest]) -> float:
    """Sum of hops between consecutive located POIs, rounded to 2 decimals.

    A hop is only counted when both neighbours have coordinates.
    """
    total = 0.0
    previous: PointOfInterest | None = None
    for poi in pois:
        if previous is not None and previous.coordinates and poi.coordinates:
            total += distance_km(previous.coordinates, poi.coordinates)
        previous = poi
    return round(total, 2)


def maps_directions_url(pois: Sequence[PointOfInterest]) -> str:
    """Google Maps directions URL through every located POI, in order."""
    if not pois:
        return ""
    waypoints = "/".join(p.coordinates.as_pair() for p in pois if p.coordinates)
    return f"{MAPS_DIRECTIONS_BASE}{waypoints}"
