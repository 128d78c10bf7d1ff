"""Schedule advisories: packed-day warnings and trip-wide suggestions.

Free-text strings for the traveller, never control signals.
"""

from collections.abc import Sequence

from compass.models.common import PoiCategory
from compass.models.poi import PointOfInterest
from compass.models.schedule import DaySchedule
from compass.utils.numbers import round_half_up

GOLDEN_HOUR_SUGGESTION = (
    "Viewpoints are best visited during golden hour (sunrise/sunset) "
    "for the best experience."
)
BOOKING_SUGGESTION = "Consider booking restaurants in advance, especially for dinner."


def packed_day_warnings(
    days: Sequence[DaySchedule], limit_minutes: int = 600
) -> list[str]:
    """Warn about every day whose schedule runs longer than ``limit_minutes``."""
    warnings = []
    for day_number, day in enumerate(days, start=1):
        if day.total_duration_minutes > limit_minutes:
            hours = round_half_up(day.total_duration_minutes / 60)
            warnings.append(
                f"Day {day_number} is quite packed ({hours} hours). "
                "Consider moving some activities."
            )
    return warnings


def trip_suggestions(pois: Sequence[PointOfInterest]) -> list[str]:
    suggestions = []
    if any(p.category == PoiCategory.viewpoint for p in pois):
        suggestions.append(GOLDEN_HOUR_SUGGESTION)
    if sum(1 for p in pois if p.category == PoiCategory.restaurant) > 3:
        suggestions.append(BOOKING_SUGGESTION)
    return suggestions
