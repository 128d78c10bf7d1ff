"""Split a globally ordered POI sequence into days."""

from __future__ import annotations

import math
from collections.abc import Sequence

from compass.models.poi import PointOfInterest

DEFAULT_POIS_PER_DAY = 5


def default_num_days(num_pois: int, pois_per_day: int = DEFAULT_POIS_PER_DAY) -> int:
    """Recommended trip length: about ``pois_per_day`` stops per day, at least one."""
    return max(1, math.ceil(num_pois / pois_per_day))


def allocate_days(
    ordered_pois: Sequence[PointOfInterest], num_days: int
) -> list[list[PointOfInterest]]:
    """Cut the ordered POIs into contiguous day chunks.

    Chunk size is ``ceil(n / num_days)``. Trailing chunks may be smaller;
    empty chunks are dropped. Day boundaries ignore geography, so a tight
    cluster can be split across two days.

    Args:
        ordered_pois: POIs in global visiting order
        num_days: Number of days requested (must be >= 1)

    Returns:
        Non-empty chunks whose sizes sum to ``len(ordered_pois)``
    """
    if num_days < 1:
        raise ValueError(f"num_days must be >= 1, got {num_days}")
    if not ordered_pois:
        return []

    per_day = math.ceil(len(ordered_pois) / num_days)
    chunks = [
        list(ordered_pois[day * per_day : (day + 1) * per_day])
        for day in range(num_days)
    ]
    return [chunk for chunk in chunks if chunk]
