"""Verification module for budget and schedule checks."""

from .budget import check_budget
from .schedule import packed_day_warnings, trip_suggestions

__all__ = [
    "check_budget",
    "packed_day_warnings",
    "trip_suggestions",
]
