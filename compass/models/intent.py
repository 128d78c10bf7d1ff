"""Trip preferences supplied by the caller."""

import re
from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from .common import CompanionType, TravelStyle

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class TripPreferences(BaseModel):
    """User preferences for one trip. Read-only for every stage."""

    daily_budget: float = Field(default=500.0, ge=0, description="Budget per day")
    currency: str = Field(default="USD", description="ISO currency code")
    companion_type: CompanionType = Field(default=CompanionType.solo)
    travel_styles: list[TravelStyle] = Field(
        default_factory=lambda: [TravelStyle.culture, TravelStyle.food]
    )
    start_date: date | None = Field(default=None)
    end_date: date | None = Field(default=None)
    day_start_time: str = Field(default="09:00", description="HH:MM")
    day_end_time: str = Field(default="21:00", description="HH:MM")

    @field_validator("day_start_time", "day_end_time")
    @classmethod
    def _validate_hhmm(cls, value: str) -> str:
        if not _HHMM.match(value):
            raise ValueError(f"expected HH:MM, got {value!r}")
        return value

    @field_validator("travel_styles")
    @classmethod
    def _dedupe_styles(cls, value: list[TravelStyle]) -> list[TravelStyle]:
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def _validate_dates(self) -> "TripPreferences":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def has_style(self, style: TravelStyle) -> bool:
        return style in self.travel_styles

    @property
    def start_hour(self) -> int:
        """Hour component of the day start; minutes are ignored."""
        return int(self.day_start_time.split(":")[0])
