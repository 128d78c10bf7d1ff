"""Adapters for external collaborators: vision, places, LLM chat, vibe."""

from compass.adapters.llm import ChatSessionCache, LLMAdapter
from compass.adapters.places import PlacesAdapter, classify_type, infer_destination_name
from compass.adapters.vibe import VibeAdapter
from compass.adapters.vision import VisionAdapter, merge_analyses

__all__ = [
    "ChatSessionCache",
    "LLMAdapter",
    "PlacesAdapter",
    "VibeAdapter",
    "VisionAdapter",
    "classify_type",
    "infer_destination_name",
    "merge_analyses",
]
