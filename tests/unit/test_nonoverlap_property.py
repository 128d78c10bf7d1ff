"""Property-based tests for non-overlapping time slots."""

from datetime import date

from hypothesis import given, settings
from hypothesis import strategies as st

from compass.models.common import PoiCategory
from compass.models.intent import TripPreferences
from compass.planning.scheduler import build_day_schedule
from tests.unit.helpers import make_poi

PREFS = TripPreferences(start_date=date(2024, 3, 1))


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


# Stops stay inside a small city box so a day never runs past midnight.
stops = st.lists(
    st.tuples(
        st.sampled_from(list(PoiCategory)),
        st.one_of(
            st.none(),
            st.tuples(
                st.floats(min_value=35.65, max_value=35.70),
                st.floats(min_value=139.70, max_value=139.75),
            ),
        ),
    ),
    min_size=1,
    max_size=3,
)


@given(stops)
@settings(max_examples=100, deadline=None)
def test_slots_never_overlap(day_stops) -> None:
    pois = [
        make_poi(f"p{i}", None, *(coords or (None, None)), category=category)
        for i, (category, coords) in enumerate(day_stops)
    ]
    day = build_day_schedule(pois, 0, PREFS)

    assert len(day.slots) == len(pois)
    assert _minutes(day.slots[0].start_time) >= PREFS.start_hour * 60
    for slot in day.slots:
        assert _minutes(slot.end_time) - _minutes(slot.start_time) == (
            slot.visit_duration_minutes
        )
    for earlier, later in zip(day.slots, day.slots[1:]):
        assert _minutes(later.start_time) >= (
            _minutes(earlier.end_time) + later.travel_time_minutes
        )
