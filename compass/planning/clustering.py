"""Proximity clustering, greedy routing and cluster sequencing.

Single-pass greedy agglomeration around seed POIs, followed by greedy
nearest-neighbour ordering inside each cluster and across cluster
centroids. These are O(n^2) approximations, not optimal tours.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from compass.models.common import GeoPoint, PoiCategory
from compass.models.poi import Cluster, PointOfInterest
from compass.planning.geo import (
    centroid,
    distance_km,
    maps_directions_url,
    total_distance_km,
)

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_KM = 3.0

# Visit estimates used for cluster sizing only; the scheduler has its own table.
CLUSTER_VISIT_MINUTES: dict[PoiCategory, int] = {
    PoiCategory.restaurant: 75,
    PoiCategory.attraction: 90,
    PoiCategory.activity: 120,
    PoiCategory.accommodation: 0,
    PoiCategory.viewpoint: 30,
    PoiCategory.market: 60,
    PoiCategory.temple: 60,
    PoiCategory.cafe: 45,
    PoiCategory.other: 45,
}

T = TypeVar("T")


@dataclass
class ClusteringResult:
    """Sequenced clusters and the flattened global order."""

    clusters: list[Cluster]
    ordered_pois: list[PointOfInterest]
    unlocated_pois: list[PointOfInterest] = field(default_factory=list)
    total_distance_km: float = 0.0
    map_url: str = ""


def _cluster_name(members: Sequence[PointOfInterest]) -> str:
    if not members:
        return "Unknown Area"
    first = members[0]
    parts = [part.strip() for part in (first.address or first.name).split(",")]
    if len(parts) > 2:
        return parts[1]
    return " ".join(first.name.split(" ")[:2]) + " Area"


def cluster(
    pois: Sequence[PointOfInterest], radius_km: float = DEFAULT_RADIUS_KM
) -> list[Cluster]:
    """Partition located POIs into clusters around seed POIs.

    Iterates in input order. Each unassigned located POI seeds a new
    cluster and pulls in every other unassigned POI within ``radius_km``
    of the seed (not of a moving centroid). Order dependent and
    deterministic for a fixed input order.

    Args:
        pois: Candidate POIs; those without coordinates are skipped
        radius_km: Max haversine distance from the seed

    Returns:
        Clusters in creation order
    """
    clusters: list[Cluster] = []
    assigned: set[str] = set()

    for seed in pois:
        if seed.id in assigned or seed.coordinates is None:
            continue
        members = [seed]
        assigned.add(seed.id)

        for other in pois:
            if other.id in assigned or other.coordinates is None:
                continue
            if distance_km(seed.coordinates, other.coordinates) <= radius_km:
                members.append(other)
                assigned.add(other.id)

        clusters.append(
            Cluster(
                id=f"cluster-{len(clusters) + 1}",
                name=_cluster_name(members),
                centroid=centroid(
                    [m.coordinates for m in members if m.coordinates],
                    default=seed.coordinates,
                ),
                members=members,
                suggested_duration_minutes=sum(
                    CLUSTER_VISIT_MINUTES.get(m.category, 45) for m in members
                ),
            )
        )

    return clusters


def _greedy_nearest(
    items: Sequence[T], position: Callable[[T], GeoPoint | None]
) -> list[T]:
    """Nearest-neighbour ordering starting from the first item.

    Ties go to the earliest remaining item. Once no candidate with a
    position is reachable, the leftovers are appended in input order.
    """
    if len(items) <= 2:
        return list(items)

    ordered = [items[0]]
    remaining = list(items[1:])

    while remaining:
        current = position(ordered[-1])
        nearest_idx: int | None = None
        nearest_dist = float("inf")

        if current is not None:
            for idx, candidate in enumerate(remaining):
                point = position(candidate)
                if point is None:
                    continue
                dist = distance_km(current, point)
                if dist < nearest_dist:
                    nearest_dist = dist
                    nearest_idx = idx

        if nearest_idx is None:
            ordered.extend(remaining)
            break
        ordered.append(remaining.pop(nearest_idx))

    return ordered


def route_within_cluster(pois: Sequence[PointOfInterest]) -> list[PointOfInterest]:
    """Order POIs by greedy nearest neighbour. Returns a permutation."""
    return _greedy_nearest(pois, lambda poi: poi.coordinates)


def sequence_clusters(clusters: Sequence[Cluster]) -> list[Cluster]:
    """Order clusters by greedy nearest neighbour over their centroids."""
    return _greedy_nearest(clusters, lambda c: c.centroid)


def plan_route(
    pois: Sequence[PointOfInterest], radius_km: float = DEFAULT_RADIUS_KM
) -> ClusteringResult:
    """Cluster, route each cluster, sequence clusters and flatten.

    POIs without coordinates cannot be clustered; they are appended after
    the flattened order so the scheduler still sees them.
    """
    clusters = cluster(pois, radius_km=radius_km)
    routed = [
        c.model_copy(update={"members": route_within_cluster(c.members)})
        for c in clusters
    ]
    sequenced = sequence_clusters(routed)

    ordered = [poi for c in sequenced for poi in c.members]
    unlocated = [poi for poi in pois if poi.coordinates is None]

    result = ClusteringResult(
        clusters=sequenced,
        ordered_pois=ordered + unlocated,
        unlocated_pois=unlocated,
        total_distance_km=total_distance_km(ordered),
        map_url=maps_directions_url(ordered),
    )
    logger.info(
        "clusters_built",
        extra={
            "clusters": len(sequenced),
            "located": len(ordered),
            "unlocated": len(unlocated),
            "total_distance_km": result.total_distance_km,
        },
    )
    return result
