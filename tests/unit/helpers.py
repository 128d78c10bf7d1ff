"""Common test helpers: POI factories and stub collaborators."""

from collections.abc import Sequence
from types import SimpleNamespace
from typing import Any

from compass.adapters.places import infer_destination_name
from compass.adapters.vibe import VibeAdapter
from compass.exec.context import RunContext
from compass.graph.runner import Collaborators
from compass.models.common import GeoPoint, PoiCategory
from compass.models.poi import PointOfInterest
from compass.models.tool_results import (
    EnrichmentResult,
    ScreenshotAnalysis,
    ValidationResult,
    VisionSummary,
)
from compass.planning.budget import estimate_poi_cost


def make_poi(
    poi_id: str,
    name: str | None = None,
    lat: float | None = None,
    lng: float | None = None,
    category: PoiCategory = PoiCategory.other,
    **fields: Any,
) -> PointOfInterest:
    """Create a test POI; coordinates are set only when both are given."""
    coordinates = GeoPoint(lat=lat, lng=lng) if lat is not None and lng is not None else None
    return PointOfInterest(
        id=poi_id,
        name=name or f"Place {poi_id}",
        coordinates=coordinates,
        category=category,
        **fields,
    )


def tokyo_pois() -> list[PointOfInterest]:
    """Three verified Asakusa-area POIs with known costs."""
    return [
        make_poi(
            "p1",
            "Senso-ji Temple",
            35.7148,
            139.7967,
            PoiCategory.attraction,
            address="2 Chome-3-1 Asakusa, Taito City, Tokyo",
            rating=4.6,
            estimated_cost=0,
            verified=True,
        ),
        make_poi(
            "p2",
            "Nakamise Shopping Street",
            35.7119,
            139.7965,
            PoiCategory.market,
            address="1 Chome-36-3 Asakusa, Taito City, Tokyo",
            rating=4.4,
            estimated_cost=20,
            verified=True,
        ),
        make_poi(
            "p3",
            "Asakusa Ramen Restaurant",
            35.7130,
            139.7950,
            PoiCategory.restaurant,
            address="1 Chome-1-1 Asakusa, Taito City, Tokyo",
            rating=4.2,
            estimated_cost=25,
            verified=True,
        ),
    ]


def fake_openai_client(*replies: str | Exception) -> SimpleNamespace:
    """Object shaped like ``openai.OpenAI`` whose completions return ``replies``.

    Each call consumes the next reply; the last one repeats. Exceptions are
    raised instead of returned. Every call's kwargs are kept in ``calls``.
    """
    calls: list[dict[str, Any]] = []
    queue = list(replies)

    def create(**kwargs: Any) -> SimpleNamespace:
        calls.append(kwargs)
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    return SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=create)),
        calls=calls,
    )


class StubVision:
    """Vision collaborator returning fixed location names."""

    def __init__(self, locations: Sequence[str], hashtags: Sequence[str] = ()) -> None:
        self.locations = list(locations)
        self.hashtags = list(hashtags)

    def analyze_batch(
        self, images: Sequence[tuple[str, bytes]], ctx: RunContext
    ) -> VisionSummary:
        analyses = [
            ScreenshotAnalysis(
                id=f"img-{i}",
                source_name=filename,
                location_names=self.locations,
                hashtags=self.hashtags,
                confidence=0.85,
            )
            for i, (filename, _) in enumerate(images)
        ]
        return VisionSummary(
            screenshots=analyses,
            all_locations=self.locations,
            all_hashtags=self.hashtags,
        )

    def close(self) -> None:
        pass


class StubPlaces:
    """Places collaborator resolving names against a fixed POI list."""

    def __init__(self, pois: Sequence[PointOfInterest]) -> None:
        self.by_name = {p.name: p for p in pois}

    def validate(
        self, names: Sequence[str], destination: str | None, ctx: RunContext
    ) -> ValidationResult:
        verified = [self.by_name[n] for n in names if n in self.by_name]
        return ValidationResult(
            verified_pois=verified,
            overall_confidence=len(verified) / len(names) if names else 0.0,
        )

    def enrich_all(
        self, pois: Sequence[PointOfInterest], ctx: RunContext
    ) -> EnrichmentResult:
        enriched = [
            p.model_copy(
                update={
                    "estimated_cost": (
                        p.estimated_cost
                        if p.estimated_cost is not None
                        else estimate_poi_cost(p)
                    ),
                    "currency": p.currency or "USD",
                }
            )
            for p in pois
        ]
        return EnrichmentResult(
            pois=enriched, destination_name=infer_destination_name(enriched)
        )

    def close(self) -> None:
        pass


class StubLLM:
    """LLM collaborator with canned answers per conversation."""

    def __init__(self, answers: dict[str, str | None] | None = None) -> None:
        self.answers = answers or {}
        self.prompts: list[tuple[str, str]] = []

    def ask(self, prompt, collaborator, ctx, sessions=None) -> str | None:
        self.prompts.append((collaborator, prompt))
        return self.answers.get(collaborator)

    def close(self) -> None:
        pass


def stub_collaborators(
    pois: Sequence[PointOfInterest], llm: StubLLM | None = None
) -> Collaborators:
    """Collaborators whose vision step finds every POI in ``pois`` by name."""
    llm = llm or StubLLM()
    return Collaborators(
        vision=StubVision([p.name for p in pois], ["#tokyo"]),
        places=StubPlaces(pois),
        llm=llm,
        vibe=VibeAdapter(llm),
    )
