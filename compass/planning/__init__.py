"""Core planning: geo primitives, clustering, day allocation, scheduling, budget."""

from .budget import (
    apply_optimization,
    estimate_budget,
    estimate_poi_cost,
    optimize_budget,
    simple_optimization,
)
from .clustering import (
    ClusteringResult,
    cluster,
    plan_route,
    route_within_cluster,
    sequence_clusters,
)
from .days import allocate_days, default_num_days
from .geo import centroid, distance_km, maps_directions_url, total_distance_km
from .scheduler import SchedulerConfig, build_day_schedule, schedule_trip

__all__ = [
    "ClusteringResult",
    "SchedulerConfig",
    "allocate_days",
    "apply_optimization",
    "build_day_schedule",
    "centroid",
    "cluster",
    "default_num_days",
    "distance_km",
    "estimate_budget",
    "estimate_poi_cost",
    "maps_directions_url",
    "optimize_budget",
    "plan_route",
    "route_within_cluster",
    "schedule_trip",
    "sequence_clusters",
    "simple_optimization",
    "total_distance_km",
]
