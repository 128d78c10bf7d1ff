"""Unit tests for vibe classification."""

import pytest
from pydantic import ValidationError

from compass.adapters.vibe import (
    FAMILY_PACE,
    FOOD_FOCUSED,
    LUXURY_ON_BUDGET,
    VibeAdapter,
    infer_location_vibe,
    infer_vibe_from_hashtags,
    is_compatible,
    parse_vibe_response,
    style_recommendations,
)
from compass.models.common import (
    Aesthetic,
    Ambiance,
    CompanionType,
    CrowdLevel,
    PoiCategory,
    TravelStyle,
)
from compass.models.intent import TripPreferences
from compass.models.poi import VibeScore
from tests.unit.helpers import StubLLM, make_poi

FAMILY = TripPreferences(companion_type=CompanionType.family)
BUDGET = TripPreferences(travel_styles=[TravelStyle.budget])

# === Parsing ===


def test_parse_vibe_response() -> None:
    vibe = parse_vibe_response('Here: {"aesthetic": "hidden-gem", "ambiance": "romantic"}')
    assert vibe == VibeScore(aesthetic=Aesthetic.hidden_gem, ambiance=Ambiance.romantic)


def test_parse_vibe_response_defaults_missing_fields() -> None:
    vibe = parse_vibe_response("{}")
    assert vibe.aesthetic == Aesthetic.local
    assert vibe.ambiance == Ambiance.relaxed


def test_parse_vibe_response_rejects_unknown_values() -> None:
    with pytest.raises(ValidationError):
        parse_vibe_response('{"aesthetic": "gothic"}')


def test_parse_vibe_response_requires_json() -> None:
    with pytest.raises(ValueError):
        parse_vibe_response("very chill")


# === Rules ===


@pytest.mark.parametrize(
    ("hashtags", "aesthetic", "ambiance"),
    [
        (["#luxurytravel", "#couplegoals"], Aesthetic.luxury, Ambiance.romantic),
        (["#cheapeats", "#kidsfun"], Aesthetic.budget, Ambiance.family_friendly),
        (["#hiddengem", "#hiking"], Aesthetic.hidden_gem, Ambiance.adventure),
        (["#nightlife"], Aesthetic.local, Ambiance.vibrant),
        ([], Aesthetic.local, Ambiance.relaxed),
    ],
)
def test_infer_vibe_from_hashtags(hashtags, aesthetic, ambiance) -> None:
    assert infer_vibe_from_hashtags(hashtags) == VibeScore(
        aesthetic=aesthetic, ambiance=ambiance
    )


def test_location_vibe_rules() -> None:
    """Test price-level aesthetics and category moods."""
    fancy = infer_location_vibe(
        make_poi("r", category=PoiCategory.restaurant, price_level=4)
    )
    assert fancy == VibeScore(
        aesthetic=Aesthetic.luxury,
        ambiance=Ambiance.romantic,
        crowd_level=CrowdLevel.medium,
    )

    view = infer_location_vibe(make_poi("v", category=PoiCategory.viewpoint))
    assert view.ambiance == Ambiance.romantic
    assert view.crowd_level == CrowdLevel.low

    sight = infer_location_vibe(make_poi("a", category=PoiCategory.attraction))
    assert sight.crowd_level == CrowdLevel.high

    market = infer_location_vibe(
        make_poi("m", category=PoiCategory.market, price_level=4)
    )
    assert market.aesthetic == Aesthetic.local
    assert market.ambiance == Ambiance.vibrant


def test_compatibility() -> None:
    vibrant = VibeScore(ambiance=Ambiance.vibrant)
    luxury = VibeScore(aesthetic=Aesthetic.luxury)

    assert not is_compatible(vibrant, FAMILY)
    assert is_compatible(vibrant, TripPreferences())
    assert not is_compatible(luxury, BUDGET)
    assert is_compatible(luxury, FAMILY)


def test_style_recommendations() -> None:
    restaurants = [make_poi(f"r{i}", category=PoiCategory.restaurant) for i in range(9)]
    recommendations = style_recommendations(
        VibeScore(aesthetic=Aesthetic.luxury),
        restaurants,
        BUDGET.model_copy(update={"companion_type": CompanionType.family}),
    )
    assert recommendations == [LUXURY_ON_BUDGET, FOOD_FOCUSED, FAMILY_PACE]


def test_balanced_trip_has_no_recommendations() -> None:
    pois = [
        make_poi("r", category=PoiCategory.restaurant),
        make_poi("a", category=PoiCategory.attraction),
    ]
    assert style_recommendations(VibeScore(), pois, TripPreferences()) == []


# === Adapter ===


def test_classify_flags_incompatible_pois(ctx) -> None:
    pois = [
        make_poi("market", category=PoiCategory.market),
        make_poi("museum", category=PoiCategory.attraction),
    ]
    result = VibeAdapter().classify(pois, ["#family"], FAMILY, ctx)

    assert result.incompatible_poi_ids == ["market"]
    assert set(result.location_vibes) == {"market", "museum"}
    assert result.overall_vibe.ambiance == Ambiance.family_friendly


def test_overall_vibe_prefers_llm_answer(ctx) -> None:
    llm = StubLLM({"vibe": '{"aesthetic": "luxury", "ambiance": "romantic"}'})
    vibe = VibeAdapter(llm).overall_vibe([make_poi("a")], ["#cheap"], ctx)

    assert vibe.aesthetic == Aesthetic.luxury
    assert llm.prompts[0][0] == "vibe"
    assert "#cheap" in llm.prompts[0][1]


@pytest.mark.parametrize("answer", [None, "no idea", '{"aesthetic": "gothic"}'])
def test_overall_vibe_falls_back_to_hashtags(answer, ctx) -> None:
    llm = StubLLM({"vibe": answer})
    vibe = VibeAdapter(llm).overall_vibe([make_poi("a")], ["#cheap"], ctx)
    assert vibe.aesthetic == Aesthetic.budget
