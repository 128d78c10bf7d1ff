"""Demo endpoint returning a sample plan built from fixed Tokyo locations."""

from datetime import date

from fastapi import APIRouter, Depends

from compass.api.deps import get_app_settings
from compass.config import Settings
from compass.graph.runner import plan_from_pois
from compass.models.common import GeoPoint, PoiCategory
from compass.models.intent import TripPreferences
from compass.models.itinerary import PlanResult
from compass.models.poi import PointOfInterest

router = APIRouter(tags=["demo"])

DEMO_DESTINATION = "Tokyo, Japan"
DEMO_START = date(2024, 3, 1)

DEMO_POIS = [
    PointOfInterest(
        id="loc-1",
        name="Senso-ji Temple",
        address="2 Chome-3-1 Asakusa, Taito City, Tokyo",
        coordinates=GeoPoint(lat=35.7148, lng=139.7967),
        category=PoiCategory.attraction,
        rating=4.6,
        estimated_cost=0,
        currency="USD",
        verified=True,
        source="demo",
    ),
    PointOfInterest(
        id="loc-2",
        name="Nakamise Shopping Street",
        address="1 Chome-36-3 Asakusa, Taito City, Tokyo",
        coordinates=GeoPoint(lat=35.7119, lng=139.7965),
        category=PoiCategory.market,
        rating=4.4,
        estimated_cost=20,
        currency="USD",
        verified=True,
        source="demo",
    ),
    PointOfInterest(
        id="loc-3",
        name="Tokyo Skytree",
        address="1 Chome-1-2 Oshiage, Sumida City, Tokyo",
        coordinates=GeoPoint(lat=35.7101, lng=139.8107),
        category=PoiCategory.viewpoint,
        rating=4.5,
        estimated_cost=25,
        currency="USD",
        verified=True,
        source="demo",
    ),
]


def build_demo_plan(settings: Settings) -> PlanResult:
    preferences = TripPreferences(start_date=DEMO_START)
    return plan_from_pois(
        DEMO_POIS, preferences, DEMO_DESTINATION, settings, run_id="demo-itinerary-1"
    )


@router.get("/demo", response_model=PlanResult)
def demo(settings: Settings = Depends(get_app_settings)) -> PlanResult:
    """Sample plan for trying the UI without uploading screenshots."""
    return build_demo_plan(settings)
