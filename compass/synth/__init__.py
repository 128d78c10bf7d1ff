"""Itinerary synthesis and export."""

from compass.synth.export import format_as_text, from_json, to_json
from compass.synth.writer import write_itinerary

__all__ = ["format_as_text", "from_json", "to_json", "write_itinerary"]
