"""Pipeline stage nodes.

Each node takes the run state plus its dependencies, does one stage of work
and returns the updated state. Collaborator failures are absorbed by the
adapters; the only fatal condition raised here is an empty location set.
"""

import logging
from dataclasses import dataclass, field

from compass.adapters.llm import ChatSessionCache, LLMAdapter
from compass.adapters.places import PlacesAdapter
from compass.adapters.vibe import VibeAdapter
from compass.adapters.vision import VisionAdapter
from compass.config import Settings
from compass.exceptions import NoUsableLocationsError, PipelineError
from compass.exec.context import RunContext
from compass.metrics.registry import MetricsClient
from compass.models.budget import BudgetReport
from compass.models.poi import PointOfInterest
from compass.planning.budget import (
    AskFn,
    apply_optimization,
    estimate_budget,
    optimize_budget,
)
from compass.planning.clustering import plan_route
from compass.planning.days import default_num_days
from compass.planning.geo import maps_directions_url
from compass.planning.scheduler import SchedulerConfig, schedule_trip
from compass.synth.writer import write_itinerary
from compass.verify.budget import check_budget

from .state import PipelineState

logger = logging.getLogger(__name__)


@dataclass
class PipelineDeps:
    """Everything a node may call for one run."""

    settings: Settings
    ctx: RunContext
    vision: VisionAdapter | None = None
    places: PlacesAdapter | None = None
    vibe: VibeAdapter | None = None
    llm: LLMAdapter | None = None
    sessions: ChatSessionCache = field(default_factory=ChatSessionCache)
    metrics: MetricsClient | None = None

    def ask(self, collaborator: str) -> AskFn | None:
        """Prompt function bound to one LLM conversation, or None."""
        if self.llm is None:
            return None
        llm, ctx, sessions = self.llm, self.ctx, self.sessions
        return lambda prompt: llm.ask(prompt, collaborator, ctx, sessions)


def _require(adapter, name: str):
    if adapter is None:
        raise PipelineError(f"{name} collaborator is not configured")
    return adapter


def vision_node(state: PipelineState, deps: PipelineDeps) -> PipelineState:
    vision = _require(deps.vision, "vision")
    images = [(s.filename, s.content) for s in state.screenshots]
    state.vision = vision.analyze_batch(images, deps.ctx)
    return state


def validate_node(state: PipelineState, deps: PipelineDeps) -> PipelineState:
    places = _require(deps.places, "places")
    names = state.vision.all_locations if state.vision else []
    state.validation = places.validate(names, state.destination, deps.ctx)
    if not state.validation.verified_pois:
        raise NoUsableLocationsError()
    state.pois = list(state.validation.verified_pois)
    return state


def enrich_node(state: PipelineState, deps: PipelineDeps) -> PipelineState:
    places = _require(deps.places, "places")
    state.enrichment = places.enrich_all(state.pois, deps.ctx)
    state.pois = list(state.enrichment.pois)
    return state


def vibe_node(state: PipelineState, deps: PipelineDeps) -> PipelineState:
    """Classify vibes and drop clashing POIs unless that would drop them all."""
    vibe = deps.vibe or VibeAdapter(deps.llm)
    hashtags = state.vision.all_hashtags if state.vision else []
    state.vibe = vibe.classify(
        state.pois, hashtags, state.preferences, deps.ctx, deps.sessions
    )

    pois = [
        p.model_copy(update={"vibe": state.vibe.location_vibes.get(p.id)})
        for p in state.pois
    ]
    incompatible = set(state.vibe.incompatible_poi_ids)
    if incompatible and len(pois) > len(incompatible):
        pois = [p for p in pois if p.id not in incompatible]
        logger.info(
            "incompatible_pois_filtered",
            extra={"run_id": state.run_id, "removed": len(incompatible)},
        )
    state.pois = pois
    return state


def cluster_node(state: PipelineState, deps: PipelineDeps) -> PipelineState:
    state.route = plan_route(state.pois, radius_km=deps.settings.cluster_radius_km)
    state.num_days = default_num_days(len(state.pois), deps.settings.pois_per_day)
    return state


def budget_node(state: PipelineState, deps: PipelineDeps) -> PipelineState:
    breakdown = estimate_budget(state.pois, state.num_days)
    check = check_budget(
        breakdown, state.preferences, state.num_days, metrics=deps.metrics
    )
    report = BudgetReport(breakdown=breakdown, check=check)

    if check.is_over_budget:
        optimization = optimize_budget(
            state.pois, breakdown.total, check.budget_limit, ask=deps.ask("budget")
        )
        report.optimization = optimization
        report.adjusted_pois = apply_optimization(state.pois, optimization)
        logger.info(
            "budget_optimized",
            extra={
                "run_id": state.run_id,
                "overage": check.overage_amount,
                "source": optimization.source,
                "removed": len(optimization.remove),
            },
        )
    state.budget = report
    return state


def _kept_in_route_order(state: PipelineState) -> list[PointOfInterest]:
    """Routed order restricted to the POIs that survived budgeting."""
    kept = state.pois
    if state.budget is not None and state.budget.adjusted_pois is not None:
        kept = state.budget.adjusted_pois
    kept_ids = {p.id for p in kept}
    ordered = state.route.ordered_pois if state.route else kept
    return [p for p in ordered if p.id in kept_ids]


def schedule_node(state: PipelineState, deps: PipelineDeps) -> PipelineState:
    state.schedule = schedule_trip(
        _kept_in_route_order(state),
        state.num_days,
        state.preferences,
        config=SchedulerConfig.from_settings(deps.settings),
        packed_day_minutes=deps.settings.packed_day_minutes,
        today=state.today,
    )
    return state


def write_node(state: PipelineState, deps: PipelineDeps) -> PipelineState:
    state.itinerary = write_itinerary(
        state.schedule,
        state.pois,
        state.preferences,
        state.destination_name,
        breakdown=state.budget.breakdown if state.budget else None,
        map_url=maps_directions_url(_kept_in_route_order(state)),
        extra_suggestions=state.vibe.style_recommendations if state.vibe else (),
        extra_warnings=state.validation.warnings if state.validation else (),
        itinerary_id=state.run_id,
    )
    return state
