"""Time scheduler: concrete start/end times for each day's stops.

Each day's POIs are re-sorted by their optimal start minute (timing beats
the spatial order here), then walked with a running clock that adds travel
time, periodic rest breaks and meal alignment before each visit.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from compass.config import Settings
from compass.models.common import PoiCategory
from compass.models.intent import TripPreferences
from compass.models.poi import PointOfInterest
from compass.models.schedule import DaySchedule, TimeSlot, TripSchedule
from compass.planning.days import allocate_days
from compass.planning.geo import distance_km
from compass.utils.numbers import round_half_up
from compass.verify.schedule import packed_day_warnings, trip_suggestions

logger = logging.getLogger(__name__)

VISIT_MINUTES: dict[PoiCategory, int] = {
    PoiCategory.restaurant: 75,
    PoiCategory.attraction: 90,
    PoiCategory.activity: 120,
    PoiCategory.accommodation: 0,
    PoiCategory.viewpoint: 45,
    PoiCategory.market: 60,
    PoiCategory.temple: 60,
    PoiCategory.cafe: 45,
    PoiCategory.other: 45,
}

# Inclusive hour ranges; categories not listed are always optimal.
OPTIMAL_HOURS: dict[PoiCategory, tuple[tuple[int, int], ...]] = {
    PoiCategory.viewpoint: ((16, 19),),
    PoiCategory.attraction: ((9, 11),),
    PoiCategory.market: ((8, 11),),
    PoiCategory.restaurant: ((12, 14), (18, 21)),
}


@dataclass(frozen=True)
class SchedulerConfig:
    """Tunable constants for the scheduler."""

    urban_speed_kmh: float = 15.0
    min_travel_minutes: int = 10
    missing_coords_travel_minutes: int = 20
    rest_break_every: int = 3
    rest_break_minutes: int = 20
    # Restaurant arriving during hour H is pushed to the given minute.
    meal_snaps: tuple[tuple[int, int], ...] = ((11, 12 * 60), (17, 18 * 60))

    @classmethod
    def from_settings(cls, settings: Settings) -> "SchedulerConfig":
        return cls(
            urban_speed_kmh=settings.urban_speed_kmh,
            min_travel_minutes=settings.min_travel_minutes,
            missing_coords_travel_minutes=settings.missing_coords_travel_minutes,
            rest_break_every=settings.rest_break_every,
            rest_break_minutes=settings.rest_break_minutes,
        )


def optimal_start_minute(poi: PointOfInterest) -> int:
    """Preferred start, in minutes since midnight, for a POI's category."""
    if poi.category == PoiCategory.viewpoint:
        return 17 * 60
    if poi.category == PoiCategory.market:
        return 10 * 60
    if poi.category == PoiCategory.restaurant:
        lowered = poi.name.lower()
        if "breakfast" in lowered:
            return 8 * 60
        if "dinner" in lowered:
            return 19 * 60
        return 12 * 60
    if poi.category == PoiCategory.attraction:
        return 9 * 60
    return 11 * 60


def visit_minutes(poi: PointOfInterest) -> int:
    return VISIT_MINUTES.get(poi.category, 45)


def travel_minutes(
    origin: PointOfInterest,
    destination: PointOfInterest,
    config: SchedulerConfig | None = None,
) -> int:
    """Estimated travel time between two stops at urban speed."""
    config = config or SchedulerConfig()
    if origin.coordinates is None or destination.coordinates is None:
        return config.missing_coords_travel_minutes
    km = distance_km(origin.coordinates, destination.coordinates)
    return max(
        config.min_travel_minutes, round_half_up(km / config.urban_speed_kmh * 60)
    )


def is_optimal_time(category: PoiCategory, minute: int) -> bool:
    hour = minute // 60
    windows = OPTIMAL_HOURS.get(category)
    if windows is None:
        return True
    return any(low <= hour <= high for low, high in windows)


def time_note(category: PoiCategory, minute: int) -> str | None:
    """Short advisory shown next to a slot."""
    hour = minute // 60
    if category == PoiCategory.viewpoint and 16 <= hour <= 18:
        return "Perfect for sunset views"
    if category == PoiCategory.attraction and 9 <= hour <= 10:
        return "Best time - fewer crowds"
    if category == PoiCategory.market and 8 <= hour <= 10:
        return "Freshest produce available"
    if category == PoiCategory.restaurant:
        return "Consider making a reservation"
    return None


def minutes_to_hhmm(minutes: int) -> str:
    """Format minutes since midnight as HH:MM; hours wrap past midnight."""
    return f"{(minutes // 60) % 24:02d}:{minutes % 60:02d}"


def _meal_aligned(poi: PointOfInterest, clock: int, config: SchedulerConfig) -> int:
    if poi.category != PoiCategory.restaurant:
        return clock
    hour = clock // 60
    for snap_hour, snap_to in config.meal_snaps:
        if hour == snap_hour:
            return snap_to
    return clock


def build_day_schedule(
    pois: Sequence[PointOfInterest],
    day_index: int,
    preferences: TripPreferences,
    config: SchedulerConfig | None = None,
    today: date | None = None,
) -> DaySchedule:
    """Assign start/end times for one day's stops.

    Args:
        pois: The day's POIs in routed order
        day_index: Zero-based day number, used for the date
        preferences: Trip preferences (start hour, start date)
        config: Scheduler constants
        today: Base date when preferences carry no start date

    Returns:
        DaySchedule with one slot per POI
    """
    config = config or SchedulerConfig()
    # sorted() is stable, so equal optimal starts keep their routed order.
    ordered = sorted(pois, key=optimal_start_minute)

    start_clock = preferences.start_hour * 60
    clock = start_clock
    rest_breaks = 0
    slots: list[TimeSlot] = []

    for i, poi in enumerate(ordered):
        travel = travel_minutes(ordered[i - 1], poi, config) if i > 0 else 0
        clock += travel

        if i > 0 and i % config.rest_break_every == 0:
            clock += config.rest_break_minutes
            rest_breaks += 1

        clock = _meal_aligned(poi, clock, config)
        duration = visit_minutes(poi)

        slots.append(
            TimeSlot(
                poi_id=poi.id,
                start_time=minutes_to_hhmm(clock),
                end_time=minutes_to_hhmm(clock + duration),
                visit_duration_minutes=duration,
                travel_time_minutes=travel,
                is_optimal_time=is_optimal_time(poi.category, clock),
                note=time_note(poi.category, clock),
            )
        )
        clock += duration

    base_date = preferences.start_date or today or date.today()
    return DaySchedule(
        date=base_date + timedelta(days=day_index),
        slots=slots,
        total_duration_minutes=clock - start_clock,
        rest_break_count=rest_breaks,
    )


def schedule_trip(
    ordered_pois: Sequence[PointOfInterest],
    num_days: int,
    preferences: TripPreferences,
    config: SchedulerConfig | None = None,
    packed_day_minutes: int = 600,
    today: date | None = None,
) -> TripSchedule:
    """Allocate ordered POIs to days and schedule each non-empty day."""
    config = config or SchedulerConfig()
    days = [
        build_day_schedule(chunk, day_index, preferences, config=config, today=today)
        for day_index, chunk in enumerate(allocate_days(ordered_pois, num_days))
    ]
    schedule = TripSchedule(
        days=days,
        warnings=packed_day_warnings(days, limit_minutes=packed_day_minutes),
        suggestions=trip_suggestions(ordered_pois),
    )
    logger.info(
        "trip_scheduled",
        extra={
            "days": len(days),
            "stops": sum(len(d.slots) for d in days),
            "warnings": len(schedule.warnings),
        },
    )
    return schedule
