"""Itinerary writer: turns day schedules into display-ready itinerary days."""

import logging
import uuid
from collections.abc import Mapping, Sequence

from compass.models.budget import BudgetBreakdown
from compass.models.common import PoiCategory, TravelMode
from compass.models.intent import TripPreferences
from compass.models.itinerary import DayItinerary, Itinerary, ItineraryItem
from compass.models.poi import PointOfInterest
from compass.models.schedule import DaySchedule, TimeSlot, TripSchedule
from compass.planning.geo import total_distance_km

logger = logging.getLogger(__name__)

MAX_TIPS = 3
WALKING_MAX_MINUTES = 15
TRANSIT_MAX_MINUTES = 30


def travel_mode_for(travel_minutes: int) -> TravelMode:
    if travel_minutes <= WALKING_MAX_MINUTES:
        return TravelMode.walking
    if travel_minutes <= TRANSIT_MAX_MINUTES:
        return TravelMode.transit
    return TravelMode.driving


def tips_for(poi: PointOfInterest, slot: TimeSlot) -> list[str]:
    """Up to three short tips for one stop."""
    tips = []
    if slot.is_optimal_time:
        tips.append("You're visiting at the optimal time!")

    if poi.category == PoiCategory.restaurant:
        tips.append("Check if reservations are available")
        if poi.price_level is not None and poi.price_level >= 3:
            tips.append("Smart casual dress code recommended")
    elif poi.category == PoiCategory.attraction:
        tips.append("Buy tickets online to skip queues")
        tips.append("Bring a camera!")
    elif poi.category in (PoiCategory.temple, PoiCategory.viewpoint):
        tips.append("Wear comfortable walking shoes")
    elif poi.category == PoiCategory.market:
        tips.append("Bring cash for small vendors")
        tips.append("Great for souvenirs")

    if poi.rating is not None and poi.rating >= 4.5:
        tips.append("Highly rated by visitors")
    return tips[:MAX_TIPS]


def day_title(pois: Sequence[PointOfInterest], day_number: int) -> str:
    categories = [p.category for p in pois]
    if categories.count(PoiCategory.restaurant) >= 2:
        theme = "Culinary Exploration"
    elif PoiCategory.attraction in categories and PoiCategory.viewpoint in categories:
        theme = "Sights & Scenery"
    elif categories.count(PoiCategory.activity) >= 2:
        theme = "Adventure Day"
    elif PoiCategory.market in categories or PoiCategory.attraction in categories:
        theme = "Culture & Discovery"
    else:
        theme = "Explore & Experience"
    return f"Day {day_number}: {theme}"


def write_day(
    schedule: DaySchedule, pois_by_id: Mapping[str, PointOfInterest], day_number: int
) -> DayItinerary:
    items: list[ItineraryItem] = []
    visited: list[PointOfInterest] = []
    for slot in schedule.slots:
        poi = pois_by_id.get(slot.poi_id)
        if poi is None:
            logger.warning("slot_without_poi", extra={"poi_id": slot.poi_id})
            continue
        visited.append(poi)
        items.append(
            ItineraryItem(
                poi=poi,
                start_time=slot.start_time,
                end_time=slot.end_time,
                duration_minutes=slot.visit_duration_minutes,
                travel_time_minutes=slot.travel_time_minutes,
                travel_mode=travel_mode_for(slot.travel_time_minutes),
                note=slot.note,
                tips=tips_for(poi, slot),
            )
        )

    return DayItinerary(
        date=schedule.date,
        day_number=day_number,
        title=day_title(visited, day_number),
        items=items,
        total_cost=sum(p.estimated_cost or 0.0 for p in visited),
        total_distance_km=total_distance_km(visited),
    )


def write_itinerary(
    schedule: TripSchedule,
    pois: Sequence[PointOfInterest],
    preferences: TripPreferences,
    destination: str,
    breakdown: BudgetBreakdown | None = None,
    map_url: str = "",
    extra_suggestions: Sequence[str] = (),
    extra_warnings: Sequence[str] = (),
    itinerary_id: str | None = None,
) -> Itinerary:
    """Assemble the final itinerary.

    Args:
        schedule: Scheduled days with advisories
        pois: Every POI that may appear in a slot
        preferences: Trip preferences, echoed into the output
        destination: Display name of the destination
        breakdown: Budget estimate; its total becomes the itinerary budget
        map_url: Directions URL for the whole trip
        extra_suggestions: Advisories from earlier stages
        extra_warnings: Warnings from earlier stages, listed first
        itinerary_id: Fixed id, mainly for tests

    Returns:
        The itinerary; ``total_budget`` falls back to the sum of day costs
    """
    pois_by_id = {p.id: p for p in pois}
    days = [
        write_day(day, pois_by_id, day_number)
        for day_number, day in enumerate(schedule.days, start=1)
    ]

    total_budget = breakdown.total if breakdown and breakdown.total else None
    if total_budget is None:
        total_budget = sum(d.total_cost for d in days)

    suggestions = list(dict.fromkeys([*schedule.suggestions, *extra_suggestions]))
    itinerary = Itinerary(
        id=itinerary_id or str(uuid.uuid4()),
        name=f"{destination} Adventure",
        destination=destination,
        days=days,
        total_budget=total_budget,
        budget_breakdown=breakdown,
        preferences=preferences,
        map_url=map_url,
        warnings=list(dict.fromkeys([*extra_warnings, *schedule.warnings])),
        suggestions=suggestions,
    )
    logger.info(
        "itinerary_written",
        extra={"itinerary_id": itinerary.id, "days": len(days), "destination": destination},
    )
    return itinerary
