"""Google Places adapter: location validation and enrichment.

Both lookups go through the tool executor. When the service is unavailable
a deterministic mock place stands in so a run can still complete offline.
"""

import hashlib
import logging
from collections import Counter
from collections.abc import Sequence
from typing import Any

import httpx

from compass.config import MissingAPIKeyError, Settings, get_google_maps_api_key
from compass.exceptions import CollaboratorError
from compass.exec.context import RunContext
from compass.exec.executor import InMemoryCache, SimpleCache, ToolExecutor
from compass.exec.types import ToolRequest
from compass.metrics.registry import MetricsClient
from compass.models.common import GeoPoint, PoiCategory
from compass.models.poi import PointOfInterest
from compass.models.tool_results import (
    EnrichmentResult,
    RejectedLocation,
    ValidationResult,
)
from compass.planning.budget import estimate_poi_cost

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 5
MAX_PHOTOS = 5
LOW_RATING_THRESHOLD = 3.5
NOT_FOUND_REASON = "Location not found or may have closed"
UNKNOWN_DESTINATION = "Unknown Destination"
MOCK_ID_PREFIX = "mock-"
MOCK_ADDRESS = "123 Travel Street, Tokyo, Japan"
DETAIL_FIELDS = "name,formatted_address,geometry,rating,price_level,opening_hours,photos,types"

_TYPE_RULES: list[tuple[tuple[str, ...], PoiCategory]] = [
    (("restaurant", "food"), PoiCategory.restaurant),
    (("lodging", "hotel"), PoiCategory.accommodation),
    (("museum", "tourist_attraction"), PoiCategory.attraction),
    (("park", "natural_feature"), PoiCategory.viewpoint),
    (("shopping_mall", "store"), PoiCategory.market),
    (("gym", "spa"), PoiCategory.activity),
]

# Keyword guesses used only for mock places, which carry no real types.
_NAME_HINTS: list[tuple[tuple[str, ...], PoiCategory]] = [
    (("temple", "shrine", "-ji", "torii"), PoiCategory.temple),
    (("market", "shopping", "street", "gai"), PoiCategory.market),
    (("restaurant", "sushi", "ramen", "izakaya"), PoiCategory.restaurant),
    (("cafe", "coffee"), PoiCategory.cafe),
    (("park", "grove", "garden", "view", "tower", "skytree"), PoiCategory.viewpoint),
    (("museum", "statue", "crossing", "castle"), PoiCategory.attraction),
    (("hotel", "ryokan", "hostel"), PoiCategory.accommodation),
]


def classify_type(types: Sequence[str]) -> PoiCategory:
    """Map Google place types onto a POI category."""
    for keys, category in _TYPE_RULES:
        if any(key in types for key in keys):
            return category
    return PoiCategory.other


def guess_category(name: str) -> PoiCategory:
    lowered = name.lower()
    for keys, category in _NAME_HINTS:
        if any(key in lowered for key in keys):
            return category
    return PoiCategory.other


def infer_destination_name(pois: Sequence[PointOfInterest]) -> str:
    """Most common city-like address component, or "Unknown Destination"."""
    names: list[str] = []
    for poi in pois:
        if not poi.address:
            continue
        parts = [part.strip() for part in poi.address.split(",") if part.strip()]
        if not parts:
            continue
        names.append(parts[-2] if len(parts) > 1 else parts[0])
    if not names:
        return UNKNOWN_DESTINATION
    return Counter(names).most_common(1)[0][0]


def _name_hash(name: str) -> int:
    return int(hashlib.sha256(name.encode("utf-8")).hexdigest(), 16)


def mock_place(name: str, center: GeoPoint) -> PointOfInterest:
    """Deterministic stand-in for a place the service could not look up."""
    h = _name_hash(name)
    return PointOfInterest(
        id=f"{MOCK_ID_PREFIX}{h % 16**10:010x}",
        name=name,
        address=MOCK_ADDRESS,
        coordinates=GeoPoint(
            lat=round(center.lat + (h % 1000) / 10000, 6),
            lng=round(center.lng + (h // 1000 % 1000) / 10000, 6),
        ),
        category=guess_category(name),
        rating=round(4.2 + (h // 10**6 % 7) / 10, 1),
        price_level=h // 10**7 % 3 + 1,
        verified=False,
        source="mock",
    )


def _coordinates(place: dict[str, Any]) -> GeoPoint | None:
    location = (place.get("geometry") or {}).get("location") or {}
    if "lat" not in location or "lng" not in location:
        return None
    return GeoPoint(lat=location["lat"], lng=location["lng"])


class PlacesAdapter:
    """Validates extracted place names and enriches POIs with place details."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.Client | None = None,
        cache: SimpleCache | None = None,
        metrics: MetricsClient | None = None,
    ) -> None:
        self.settings = settings
        self.metrics = metrics
        self.http = http_client or httpx.Client(timeout=settings.soft_timeout_s)
        self.executor = ToolExecutor(
            tools={"places_search": self._search, "place_details": self._details},
            settings=settings,
            cache=cache if cache is not None else InMemoryCache(),
            metrics=metrics,
        )
        self.center = GeoPoint(
            lat=settings.default_center_lat, lng=settings.default_center_lng
        )

    @property
    def enabled(self) -> bool:
        try:
            get_google_maps_api_key(self.settings)
        except MissingAPIKeyError:
            return False
        return True

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        params = {**params, "key": get_google_maps_api_key(self.settings)}
        response = self.http.get(f"{self.settings.maps_api_base}{path}", params=params)
        response.raise_for_status()
        return response.json()

    def _search(self, args: dict[str, Any]) -> dict[str, Any]:
        payload = self._get("/place/textsearch/json", {"query": args["query"]})
        status = payload.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            raise CollaboratorError("places", f"text search returned {status}")
        return {"results": list(payload.get("results") or [])[:MAX_SEARCH_RESULTS]}

    def _details(self, args: dict[str, Any]) -> dict[str, Any]:
        payload = self._get(
            "/place/details/json",
            {"place_id": args["place_id"], "fields": DETAIL_FIELDS},
        )
        status = payload.get("status")
        if status != "OK":
            raise CollaboratorError("places", f"details returned {status}")
        return {"result": payload.get("result") or {}}

    def _photo_urls(self, place: dict[str, Any]) -> list[str]:
        urls = []
        for photo in (place.get("photos") or [])[:MAX_PHOTOS]:
            ref = photo.get("photo_reference")
            if ref:
                urls.append(
                    f"{self.settings.maps_api_base}/place/photo"
                    f"?maxwidth=400&photo_reference={ref}"
                )
        return urls

    def _poi_from_place(self, place: dict[str, Any], fallback_name: str) -> PointOfInterest:
        return PointOfInterest(
            id=place.get("place_id")
            or f"place-{_name_hash(fallback_name) % 16**10:010x}",
            name=place.get("name") or fallback_name,
            address=place.get("formatted_address"),
            coordinates=_coordinates(place),
            category=classify_type(place.get("types") or []),
            rating=place.get("rating"),
            price_level=place.get("price_level") or None,
            verified=True,
            photos=self._photo_urls(place),
            source="google_places",
        )

    def search(
        self, name: str, destination: str | None, ctx: RunContext
    ) -> list[dict[str, Any]] | None:
        """Text-search one place; None when the lookup itself failed."""
        if not self.enabled:
            return None
        query = f"{name} {destination}".strip() if destination else name
        response = self.executor.execute(
            ToolRequest(name="places_search", args={"query": query}, cacheable=True),
            ctx,
        )
        if not response.ok or response.data is None:
            logger.warning(
                "places_search_failed", extra={"query": query, "error": response.error}
            )
            return None
        return list(response.data.get("results") or [])

    def validate(
        self, names: Sequence[str], destination: str | None, ctx: RunContext
    ) -> ValidationResult:
        """Check each extracted name against the places service."""
        verified: list[PointOfInterest] = []
        rejected: list[RejectedLocation] = []
        warnings: list[str] = []
        seen_ids: set[str] = set()
        resolved = 0

        for name in names:
            results = self.search(name, destination, ctx)
            if results is None:
                self._fallback("places_search")
                poi = mock_place(name, self.center)
            elif not results:
                rejected.append(RejectedLocation(name=name, reason=NOT_FOUND_REASON))
                continue
            else:
                poi = self._poi_from_place(results[0], name)

            resolved += 1
            if poi.id in seen_ids:
                logger.info("duplicate_place_skipped", extra={"name": name, "poi_id": poi.id})
                continue
            seen_ids.add(poi.id)
            if poi.rating is not None and poi.rating < LOW_RATING_THRESHOLD:
                warnings.append(f"{name}: Low rating - may not be worth visiting")
            verified.append(poi)

        confidence = resolved / len(names) if names else 0.0
        logger.info(
            "locations_validated",
            extra={
                "run_id": ctx.run_id,
                "requested": len(names),
                "verified": len(verified),
                "rejected": len(rejected),
            },
        )
        return ValidationResult(
            verified_pois=verified,
            rejected=rejected,
            warnings=warnings,
            overall_confidence=confidence,
        )

    def enrich(self, poi: PointOfInterest, ctx: RunContext) -> PointOfInterest:
        """Fill in details for one POI; the original is kept on any failure."""
        enriched = poi
        if self.enabled and not poi.id.startswith(MOCK_ID_PREFIX):
            response = self.executor.execute(
                ToolRequest(
                    name="place_details", args={"place_id": poi.id}, cacheable=True
                ),
                ctx,
            )
            if response.ok and response.data is not None:
                place = response.data.get("result") or {}
                update: dict[str, Any] = {}
                if place.get("formatted_address"):
                    update["address"] = place["formatted_address"]
                coordinates = _coordinates(place)
                if coordinates is not None:
                    update["coordinates"] = coordinates
                hours = (place.get("opening_hours") or {}).get("weekday_text")
                if hours:
                    update["opening_hours"] = list(hours)
                photos = self._photo_urls(place)
                if photos:
                    update["photos"] = photos
                enriched = poi.model_copy(update=update)
            else:
                logger.warning(
                    "place_details_failed",
                    extra={"poi_id": poi.id, "error": response.error},
                )
                self._fallback("place_details")

        return enriched.model_copy(
            update={
                "estimated_cost": (
                    enriched.estimated_cost
                    if enriched.estimated_cost is not None
                    else estimate_poi_cost(enriched)
                ),
                "currency": enriched.currency or "USD",
            }
        )

    def enrich_all(
        self, pois: Sequence[PointOfInterest], ctx: RunContext
    ) -> EnrichmentResult:
        enriched = [self.enrich(poi, ctx) for poi in pois]
        return EnrichmentResult(
            pois=enriched, destination_name=infer_destination_name(enriched)
        )

    def _fallback(self, tool: str) -> None:
        if self.metrics is not None:
            self.metrics.inc_fallback(tool)

    def close(self) -> None:
        self.executor.shutdown()
        self.http.close()
