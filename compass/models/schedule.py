"""Per-day schedule models produced by the time scheduler."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class TimeSlot(BaseModel):
    """One scheduled visit. Immutable once emitted."""

    model_config = ConfigDict(frozen=True)

    poi_id: str
    start_time: str = Field(description="HH:MM")
    end_time: str = Field(description="HH:MM")
    visit_duration_minutes: int = Field(ge=0)
    travel_time_minutes: int = Field(ge=0)
    is_optimal_time: bool
    note: str | None = None


class DaySchedule(BaseModel):
    """All slots for one day, in visiting order."""

    date: date
    slots: list[TimeSlot] = Field(default_factory=list)
    total_duration_minutes: int = Field(default=0, ge=0)
    rest_break_count: int = Field(default=0, ge=0)


class TripSchedule(BaseModel):
    """Schedules for every non-empty day plus advisory text."""

    days: list[DaySchedule] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
