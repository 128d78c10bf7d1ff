"""Unit tests for the itinerary writer and exporters."""

from datetime import date

import pytest

from compass.models.budget import BudgetBreakdown
from compass.models.common import PoiCategory, TravelMode
from compass.models.intent import TripPreferences
from compass.models.schedule import DaySchedule, TimeSlot, TripSchedule
from compass.synth import format_as_text, from_json, to_json, write_itinerary
from compass.synth.writer import day_title, tips_for, travel_mode_for
from tests.unit.helpers import make_poi


def _slot(poi_id: str, travel: int = 0, optimal: bool = False) -> TimeSlot:
    return TimeSlot(
        poi_id=poi_id,
        start_time="09:00",
        end_time="10:00",
        visit_duration_minutes=60,
        travel_time_minutes=travel,
        is_optimal_time=optimal,
    )


@pytest.fixture
def trip():
    pois = [
        make_poi(
            "a",
            "Tokyo National Museum",
            35.7188,
            139.7765,
            PoiCategory.attraction,
            address="13-9 Uenokoen, Taito City, Tokyo",
            estimated_cost=10,
            rating=4.7,
        ),
        make_poi(
            "v",
            "Tokyo Skytree",
            35.7101,
            139.8107,
            PoiCategory.viewpoint,
            estimated_cost=25.5,
        ),
    ]
    schedule = TripSchedule(
        days=[
            DaySchedule(
                date=date(2024, 3, 1),
                slots=[_slot("a", optimal=True), _slot("v", travel=20)],
            )
        ],
        warnings=["Day 1 is long"],
        suggestions=["Go at sunset"],
    )
    return pois, schedule


# === Helpers ===


@pytest.mark.parametrize(
    ("minutes", "mode"),
    [
        (0, TravelMode.walking),
        (15, TravelMode.walking),
        (16, TravelMode.transit),
        (30, TravelMode.transit),
        (31, TravelMode.driving),
    ],
)
def test_travel_mode_for(minutes: int, mode: TravelMode) -> None:
    assert travel_mode_for(minutes) == mode


def test_tips_are_capped_at_three() -> None:
    poi = make_poi("a", category=PoiCategory.attraction, rating=4.9)
    tips = tips_for(poi, _slot("a", optimal=True))
    assert tips == [
        "You're visiting at the optimal time!",
        "Buy tickets online to skip queues",
        "Bring a camera!",
    ]


def test_fancy_restaurant_tips() -> None:
    poi = make_poi("r", category=PoiCategory.restaurant, price_level=3)
    assert tips_for(poi, _slot("r")) == [
        "Check if reservations are available",
        "Smart casual dress code recommended",
    ]


@pytest.mark.parametrize(
    ("categories", "theme"),
    [
        ([PoiCategory.restaurant, PoiCategory.restaurant], "Culinary Exploration"),
        ([PoiCategory.attraction, PoiCategory.viewpoint], "Sights & Scenery"),
        ([PoiCategory.activity, PoiCategory.activity], "Adventure Day"),
        ([PoiCategory.market], "Culture & Discovery"),
        ([PoiCategory.cafe], "Explore & Experience"),
    ],
)
def test_day_title(categories, theme: str) -> None:
    pois = [make_poi(f"p{i}", category=c) for i, c in enumerate(categories)]
    assert day_title(pois, 2) == f"Day 2: {theme}"


# === Itinerary ===


def test_write_itinerary(trip) -> None:
    pois, schedule = trip
    itinerary = write_itinerary(
        schedule,
        pois,
        TripPreferences(),
        "Tokyo",
        map_url="https://maps.example/route",
        extra_suggestions=["Go at sunset", "Pack light"],
        extra_warnings=["Low rating somewhere"],
        itinerary_id="it-1",
    )

    assert itinerary.id == "it-1"
    assert itinerary.name == "Tokyo Adventure"
    (day,) = itinerary.days
    assert day.title == "Day 1: Sights & Scenery"
    assert [i.poi.id for i in day.items] == ["a", "v"]
    assert day.items[1].travel_mode == TravelMode.transit
    assert day.total_cost == 35.5
    assert day.total_distance_km > 0
    assert itinerary.total_budget == 35.5
    assert itinerary.suggestions == ["Go at sunset", "Pack light"]
    assert itinerary.warnings == ["Low rating somewhere", "Day 1 is long"]


def test_breakdown_total_becomes_budget(trip) -> None:
    pois, schedule = trip
    itinerary = write_itinerary(
        schedule, pois, TripPreferences(), "Tokyo", breakdown=BudgetBreakdown(food=99)
    )
    assert itinerary.total_budget == 99
    assert itinerary.budget_breakdown.food == 99


def test_slots_without_pois_are_skipped(trip) -> None:
    pois, schedule = trip
    itinerary = write_itinerary(schedule, pois[:1], TripPreferences(), "Tokyo")
    assert [i.poi.id for i in itinerary.days[0].items] == ["a"]


# === Export ===


def test_text_export(trip) -> None:
    pois, schedule = trip
    itinerary = write_itinerary(
        schedule, pois, TripPreferences(), "Tokyo", map_url="https://maps.example/r"
    )
    text = format_as_text(itinerary)
    lines = text.splitlines()

    assert lines[:6] == [
        "COMPASS ITINERARY",
        "=" * 40,
        "",
        "Tokyo Adventure",
        "Destination: Tokyo",
        "Budget: $35.50",
    ]
    assert "2024-03-01" in lines
    assert "  13-9 Uenokoen, Taito City, Tokyo" in lines
    assert "  ~$10" in lines
    assert "  ~$25.50" in lines
    assert lines[-1] == "View Route: https://maps.example/r"
    assert text.endswith("\n")


def test_json_export_parses_back(trip) -> None:
    pois, schedule = trip
    itinerary = write_itinerary(schedule, pois, TripPreferences(), "Tokyo")
    assert from_json(to_json(itinerary)) == itinerary


@pytest.mark.parametrize(
    ("currency", "budget_line", "cost_line"),
    [
        ("EUR", "Budget: €35.50", "  ~€10"),
        ("jpy", "Budget: ¥35.50", "  ~¥10"),
        ("THB", "Budget: THB 35.50", "  ~THB 10"),
    ],
)
def test_text_export_uses_trip_currency(trip, currency, budget_line, cost_line) -> None:
    pois, schedule = trip
    itinerary = write_itinerary(
        schedule, pois, TripPreferences(currency=currency), "Tokyo"
    )
    lines = format_as_text(itinerary).splitlines()
    assert budget_line in lines
    assert cost_line in lines
    assert not any("$" in line for line in lines)


def test_large_amounts_are_not_in_scientific_notation(trip) -> None:
    pois, schedule = trip
    itinerary = write_itinerary(
        schedule,
        pois,
        TripPreferences(),
        "Tokyo",
        breakdown=BudgetBreakdown(accommodation=1_250_000),
    )
    assert "Budget: $1250000" in format_as_text(itinerary).splitlines()
