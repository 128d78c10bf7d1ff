"""Vibe classification: trip aesthetic, per-POI mood, and preference clashes."""

import json
import logging
import re
from collections.abc import Sequence

from pydantic import ValidationError

from compass.adapters.llm import ChatSessionCache, LLMAdapter
from compass.exec.context import RunContext
from compass.models.common import (
    Aesthetic,
    Ambiance,
    CompanionType,
    CrowdLevel,
    PoiCategory,
    TravelStyle,
)
from compass.models.intent import TripPreferences
from compass.models.poi import PointOfInterest, VibeScore
from compass.models.tool_results import VibeClassification

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

LUXURY_ON_BUDGET = (
    "Your screenshots show luxury venues but you prefer budget travel. "
    "Consider filtering for local alternatives."
)
FOOD_FOCUSED = (
    "This looks like a food-focused trip! Consider adding cultural attractions "
    "for variety."
)
FAMILY_PACE = (
    "With family, consider reducing locations per day. "
    "We recommend 4-5 max for a relaxed pace."
)
FAMILY_PACE_THRESHOLD = 8


def build_vibe_prompt(pois: Sequence[PointOfInterest], hashtags: Sequence[str]) -> str:
    return f"""Analyze these travel locations and hashtags to determine the trip vibe:

Locations: {", ".join(p.name for p in pois)}
Hashtags: {", ".join(hashtags)}

Classify the overall trip as:
1. Aesthetic type: luxury, budget, local, touristy, or hidden-gem
2. Ambiance: romantic, family-friendly, adventure, relaxed, or vibrant

Respond in JSON format: {{"aesthetic": "...", "ambiance": "..."}}"""


def parse_vibe_response(answer: str) -> VibeScore:
    """Parse the LLM's overall vibe.

    Raises:
        ValueError: No JSON object in the answer (``json.JSONDecodeError``
            is a subclass).
        ValidationError: Values outside the known vocabularies.
    """
    match = _JSON_OBJECT.search(answer)
    if not match:
        raise ValueError("no JSON object in vibe response")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("vibe response is not an object")
    return VibeScore(
        aesthetic=parsed.get("aesthetic") or Aesthetic.local,
        ambiance=parsed.get("ambiance") or Ambiance.relaxed,
    )


def infer_vibe_from_hashtags(hashtags: Sequence[str]) -> VibeScore:
    text = " ".join(hashtags).lower()

    aesthetic = Aesthetic.local
    if "luxury" in text or "premium" in text:
        aesthetic = Aesthetic.luxury
    elif "budget" in text or "cheap" in text:
        aesthetic = Aesthetic.budget
    elif "hidden" in text or "secret" in text:
        aesthetic = Aesthetic.hidden_gem

    ambiance = Ambiance.relaxed
    if "romantic" in text or "couple" in text:
        ambiance = Ambiance.romantic
    elif "family" in text or "kids" in text:
        ambiance = Ambiance.family_friendly
    elif "adventure" in text or "hiking" in text:
        ambiance = Ambiance.adventure
    elif "party" in text or "nightlife" in text:
        ambiance = Ambiance.vibrant

    return VibeScore(aesthetic=aesthetic, ambiance=ambiance)


def infer_location_vibe(poi: PointOfInterest) -> VibeScore:
    """Rule-based vibe from price level and category."""
    aesthetic = Aesthetic.local
    ambiance = Ambiance.relaxed
    crowd = CrowdLevel.medium

    if poi.price_level == 4:
        aesthetic = Aesthetic.luxury
    elif poi.price_level == 1:
        aesthetic = Aesthetic.budget

    if poi.category == PoiCategory.attraction:
        crowd = CrowdLevel.high
    elif poi.category == PoiCategory.restaurant:
        if poi.price_level is not None and poi.price_level > 2:
            ambiance = Ambiance.romantic
    elif poi.category == PoiCategory.activity:
        ambiance = Ambiance.adventure
    elif poi.category == PoiCategory.viewpoint:
        ambiance = Ambiance.romantic
        crowd = CrowdLevel.low
    elif poi.category == PoiCategory.market:
        ambiance = Ambiance.vibrant
        aesthetic = Aesthetic.local

    return VibeScore(aesthetic=aesthetic, ambiance=ambiance, crowd_level=crowd)


def is_compatible(vibe: VibeScore, preferences: TripPreferences) -> bool:
    if (
        preferences.companion_type == CompanionType.family
        and vibe.ambiance == Ambiance.vibrant
    ):
        return False
    if preferences.has_style(TravelStyle.budget) and vibe.aesthetic == Aesthetic.luxury:
        return False
    return True


def style_recommendations(
    overall: VibeScore,
    pois: Sequence[PointOfInterest],
    preferences: TripPreferences | None,
) -> list[str]:
    recommendations = []
    if (
        overall.aesthetic == Aesthetic.luxury
        and preferences is not None
        and preferences.has_style(TravelStyle.budget)
    ):
        recommendations.append(LUXURY_ON_BUDGET)

    restaurants = sum(1 for p in pois if p.category == PoiCategory.restaurant)
    attractions = sum(1 for p in pois if p.category == PoiCategory.attraction)
    if restaurants > attractions * 2:
        recommendations.append(FOOD_FOCUSED)

    if (
        len(pois) > FAMILY_PACE_THRESHOLD
        and preferences is not None
        and preferences.companion_type == CompanionType.family
    ):
        recommendations.append(FAMILY_PACE)
    return recommendations


class VibeAdapter:
    """Classifies trip vibe and flags POIs that clash with the traveller."""

    def __init__(self, llm: LLMAdapter | None = None) -> None:
        self.llm = llm

    def overall_vibe(
        self,
        pois: Sequence[PointOfInterest],
        hashtags: Sequence[str],
        ctx: RunContext,
        sessions: ChatSessionCache | None = None,
    ) -> VibeScore:
        if self.llm is not None:
            answer = self.llm.ask(build_vibe_prompt(pois, hashtags), "vibe", ctx, sessions)
            if answer is not None:
                try:
                    return parse_vibe_response(answer)
                except (ValueError, ValidationError) as e:
                    logger.warning(
                        "vibe_response_unparseable",
                        extra={"error_type": type(e).__name__},
                    )
        return infer_vibe_from_hashtags(hashtags)

    def classify(
        self,
        pois: Sequence[PointOfInterest],
        hashtags: Sequence[str],
        preferences: TripPreferences | None,
        ctx: RunContext,
        sessions: ChatSessionCache | None = None,
    ) -> VibeClassification:
        overall = self.overall_vibe(pois, hashtags, ctx, sessions)

        location_vibes: dict[str, VibeScore] = {}
        incompatible: list[str] = []
        for poi in pois:
            vibe = infer_location_vibe(poi)
            location_vibes[poi.id] = vibe
            if preferences is not None and not is_compatible(vibe, preferences):
                incompatible.append(poi.id)

        logger.info(
            "vibe_classified",
            extra={
                "run_id": ctx.run_id,
                "aesthetic": overall.aesthetic.value,
                "ambiance": overall.ambiance.value,
                "incompatible": len(incompatible),
            },
        )
        return VibeClassification(
            overall_vibe=overall,
            location_vibes=location_vibes,
            incompatible_poi_ids=incompatible,
            style_recommendations=style_recommendations(overall, pois, preferences),
        )
