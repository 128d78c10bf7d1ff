"""Unit tests for the time scheduler."""

from datetime import date

import pytest

from compass.models.common import PoiCategory
from compass.models.intent import TripPreferences
from compass.planning.scheduler import (
    SchedulerConfig,
    build_day_schedule,
    is_optimal_time,
    minutes_to_hhmm,
    optimal_start_minute,
    schedule_trip,
    travel_minutes,
)
from compass.verify.schedule import GOLDEN_HOUR_SUGGESTION
from tests.unit.helpers import make_poi

START = date(2024, 3, 1)


@pytest.fixture
def prefs() -> TripPreferences:
    return TripPreferences(start_date=START)


# === Time helpers ===


@pytest.mark.parametrize(
    ("minutes", "expected"),
    [(0, "00:00"), (9 * 60 + 5, "09:05"), (24 * 60, "00:00"), (25 * 60 + 5, "01:05")],
)
def test_minutes_to_hhmm_wraps(minutes: int, expected: str) -> None:
    assert minutes_to_hhmm(minutes) == expected


@pytest.mark.parametrize(
    ("name", "category", "minute"),
    [
        ("Sky Deck", PoiCategory.viewpoint, 17 * 60),
        ("Fish Market", PoiCategory.market, 10 * 60),
        ("Breakfast Club", PoiCategory.restaurant, 8 * 60),
        ("Dinner Hall", PoiCategory.restaurant, 19 * 60),
        ("Ramen Bar", PoiCategory.restaurant, 12 * 60),
        ("Castle", PoiCategory.attraction, 9 * 60),
        ("Spa", PoiCategory.activity, 11 * 60),
    ],
)
def test_optimal_start_minute(name: str, category: PoiCategory, minute: int) -> None:
    assert optimal_start_minute(make_poi("x", name, category=category)) == minute


def test_optimal_windows_are_inclusive_hours() -> None:
    """Test that the optimal window includes its last hour."""
    assert is_optimal_time(PoiCategory.restaurant, 14 * 60 + 59)
    assert not is_optimal_time(PoiCategory.restaurant, 15 * 60)
    assert is_optimal_time(PoiCategory.other, 3 * 60)


# === Travel time ===


def test_travel_time_has_a_floor() -> None:
    a = make_poi("a", lat=0, lng=0)
    b = make_poi("b", lat=0, lng=0)
    assert travel_minutes(a, b) == 10


def test_travel_time_at_urban_speed() -> None:
    """Test that about 3 km at 15 km/h takes 12 minutes."""
    a = make_poi("a", lat=0, lng=0)
    b = make_poi("b", lat=0, lng=0.027)
    assert travel_minutes(a, b) == 12


def test_travel_time_without_coordinates() -> None:
    a = make_poi("a", lat=0, lng=0)
    assert travel_minutes(a, make_poi("b")) == 20
    config = SchedulerConfig(missing_coords_travel_minutes=35)
    assert travel_minutes(make_poi("c"), a, config) == 35


# === Day schedules ===


def test_restaurant_at_eleven_waits_for_noon() -> None:
    """Test that a restaurant reached during 11:xx starts at 12:00."""
    prefs = TripPreferences(start_date=START, day_start_time="11:00")
    day = build_day_schedule(
        [make_poi("r", "Ramen Bar", category=PoiCategory.restaurant)], 0, prefs
    )
    (slot,) = day.slots
    assert slot.start_time == "12:00"
    assert slot.end_time == "13:15"
    assert slot.is_optimal_time
    assert day.total_duration_minutes == 135


def test_restaurant_at_nine_is_not_moved(prefs: TripPreferences) -> None:
    """Test that only a clock in the 11:xx or 17:xx hour snaps a restaurant.

    The optimal 12:00 start orders the day but never advances the clock, so a
    lone restaurant on a day starting at 09:00 starts at 09:00.
    """
    day = build_day_schedule(
        [make_poi("r", "Ramen Bar", category=PoiCategory.restaurant)], 0, prefs
    )
    (slot,) = day.slots
    assert slot.start_time == "09:00"
    assert slot.end_time == "10:15"
    assert slot.travel_time_minutes == 0
    assert not slot.is_optimal_time
    assert slot.note == "Consider making a reservation"


def test_stops_are_sorted_by_optimal_start(prefs: TripPreferences) -> None:
    """Test that timing preference overrides the routed order."""
    pois = [
        make_poi("view", category=PoiCategory.viewpoint),
        make_poi("market", category=PoiCategory.market),
        make_poi("sight", category=PoiCategory.attraction),
    ]
    day = build_day_schedule(pois, 0, prefs)
    assert [s.poi_id for s in day.slots] == ["sight", "market", "view"]
    assert day.slots[0].note == "Best time - fewer crowds"


def test_rest_break_before_every_third_stop(prefs: TripPreferences) -> None:
    """Test running clock with travel time and one rest break."""
    pois = [make_poi(f"p{i}") for i in range(4)]
    day = build_day_schedule(pois, 0, prefs)

    assert [(s.start_time, s.end_time) for s in day.slots] == [
        ("09:00", "09:45"),
        ("10:05", "10:50"),
        ("11:10", "11:55"),
        ("12:35", "13:20"),
    ]
    assert [s.travel_time_minutes for s in day.slots] == [0, 20, 20, 20]
    assert day.rest_break_count == 1
    assert day.total_duration_minutes == 260


def test_day_date_offsets_from_start(prefs: TripPreferences) -> None:
    day = build_day_schedule([make_poi("a")], 2, prefs)
    assert day.date == date(2024, 3, 3)


def test_day_date_uses_today_without_start_date() -> None:
    day = build_day_schedule(
        [make_poi("a")], 1, TripPreferences(), today=date(2025, 1, 31)
    )
    assert day.date == date(2025, 2, 1)


def test_empty_day(prefs: TripPreferences) -> None:
    day = build_day_schedule([], 0, prefs)
    assert day.slots == []
    assert day.total_duration_minutes == 0


# === Trip schedules ===


def test_schedule_trip_splits_days(prefs: TripPreferences) -> None:
    pois = [make_poi(f"p{i}") for i in range(5)]
    schedule = schedule_trip(pois, 2, prefs)
    assert [len(d.slots) for d in schedule.days] == [3, 2]
    assert [d.date for d in schedule.days] == [date(2024, 3, 1), date(2024, 3, 2)]


def test_packed_day_warning(prefs: TripPreferences) -> None:
    """Test that a day longer than the limit is flagged."""
    pois = [make_poi(f"a{i}", category=PoiCategory.activity) for i in range(6)]
    schedule = schedule_trip(pois, 1, prefs)
    assert len(schedule.warnings) == 1
    assert schedule.warnings[0].startswith("Day 1 is quite packed (")


def test_viewpoint_suggestion(prefs: TripPreferences) -> None:
    pois = [make_poi("v", category=PoiCategory.viewpoint)]
    schedule = schedule_trip(pois, 1, prefs)
    assert schedule.suggestions == [GOLDEN_HOUR_SUGGESTION]
    assert schedule.warnings == []
