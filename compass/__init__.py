"""Compass: turn travel screenshots into a clustered, timed itinerary."""

__version__ = "0.1.0"
