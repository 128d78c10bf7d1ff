"""Pipeline runner: a LangGraph stage graph that reports progress per node."""

import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph

from compass.adapters.llm import ChatSessionCache, LLMAdapter
from compass.adapters.places import PlacesAdapter
from compass.adapters.vibe import VibeAdapter
from compass.adapters.vision import VisionAdapter
from compass.config import Settings
from compass.exceptions import PipelineError
from compass.exec.context import RunContext
from compass.metrics.registry import MetricsClient
from compass.models.intent import TripPreferences
from compass.models.itinerary import PlanResult, ProcessingReport
from compass.models.poi import PointOfInterest
from compass.models.status import ProcessingStage, ProcessingStatus

from .nodes import (
    PipelineDeps,
    budget_node,
    cluster_node,
    enrich_node,
    schedule_node,
    validate_node,
    vibe_node,
    vision_node,
    write_node,
)
from .state import PipelineState, Screenshot
from .store import RunRecord, RunStore

logger = logging.getLogger(__name__)

Reporter = Callable[[ProcessingStatus], None]
NodeFn = Callable[[PipelineState, PipelineDeps], PipelineState]


@dataclass(frozen=True)
class Stage:
    name: str
    node: NodeFn
    stage: ProcessingStage
    progress: int
    message: str
    agent: str

    @property
    def node_id(self) -> str:
        """Graph node name; stage names double as state keys."""
        return self.node.__name__


FULL_STAGES: tuple[Stage, ...] = (
    Stage(
        name="vision",
        node=vision_node,
        stage=ProcessingStage.extracting,
        progress=10,
        message="Analyzing screenshots...",
        agent="Vision Intelligence",
    ),
    Stage(
        name="validation",
        node=validate_node,
        stage=ProcessingStage.validating,
        progress=25,
        message="Verifying locations...",
        agent="Social Proof Validator",
    ),
    Stage(
        name="enrichment",
        node=enrich_node,
        stage=ProcessingStage.validating,
        progress=40,
        message="Enriching location data...",
        agent="Location Intelligence",
    ),
    Stage(
        name="vibe",
        node=vibe_node,
        stage=ProcessingStage.validating,
        progress=50,
        message="Analyzing trip vibes...",
        agent="Vibe Matching",
    ),
    Stage(
        name="clustering",
        node=cluster_node,
        stage=ProcessingStage.clustering,
        progress=60,
        message="Grouping nearby locations...",
        agent="Clustering & Route Optimizer",
    ),
    Stage(
        name="budget",
        node=budget_node,
        stage=ProcessingStage.optimizing,
        progress=70,
        message="Calculating budget...",
        agent="Budget Calculator",
    ),
    Stage(
        name="scheduling",
        node=schedule_node,
        stage=ProcessingStage.optimizing,
        progress=80,
        message="Creating optimal schedule...",
        agent="Time Orchestrator",
    ),
    Stage(
        name="writing",
        node=write_node,
        stage=ProcessingStage.generating,
        progress=90,
        message="Writing your itinerary...",
        agent="Itinerary Writer",
    ),
)

# Stages that need no external collaborator.
CORE_STAGES: tuple[Stage, ...] = FULL_STAGES[4:]

COMPLETE_MESSAGE = "Your itinerary is ready!"


def _graph_node(
    stage: Stage,
) -> Callable[[PipelineState, RunnableConfig], dict[str, Any]]:
    """Wrap a stage node with progress reporting, timing and metrics.

    Per-run dependencies arrive through ``config["configurable"]`` so one
    compiled graph serves every run.
    """

    def run(state: PipelineState, config: RunnableConfig) -> dict[str, Any]:
        configurable = config["configurable"]
        deps: PipelineDeps = configurable["deps"]
        reporter: Reporter | None = configurable.get("reporter")

        if reporter is not None:
            reporter(
                ProcessingStatus(
                    stage=stage.stage,
                    progress=stage.progress,
                    message=stage.message,
                    current_agent=stage.agent,
                )
            )
        started = time.perf_counter()
        state = stage.node(state, deps)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        state.stage_times_ms[stage.name] = elapsed_ms
        if deps.metrics is not None:
            deps.metrics.observe_stage_latency(stage.name, elapsed_ms)
        logger.info(
            "stage_completed",
            extra={"run_id": state.run_id, "stage": stage.name, "latency_ms": elapsed_ms},
        )
        return {field: getattr(state, field) for field in PipelineState.model_fields}

    return run


def build_pipeline(stages: Sequence[Stage]) -> Any:
    """Build the LangGraph pipeline for ``stages``.

    Graph flow is linear, in the order given. The full pipeline is:
        Vision → Validate → Enrich → Vibe → Cluster → Budget → Schedule → Write
    and the core pipeline starts at Cluster.

    Returns:
        Compiled LangGraph graph
    """
    graph = StateGraph(PipelineState)
    for stage in stages:
        graph.add_node(stage.node_id, _graph_node(stage))

    graph.set_entry_point(stages[0].node_id)
    for current, following in zip(stages, stages[1:]):
        graph.add_edge(current.node_id, following.node_id)
    graph.set_finish_point(stages[-1].node_id)

    return graph.compile()


FULL_PIPELINE = build_pipeline(FULL_STAGES)
CORE_PIPELINE = build_pipeline(CORE_STAGES)


@dataclass
class Collaborators:
    """Adapters shared by every run in the process.

    Breakers and caches live in the adapters' executors, so they see the
    failure history of all runs.
    """

    vision: VisionAdapter
    places: PlacesAdapter
    llm: LLMAdapter
    vibe: VibeAdapter

    @classmethod
    def from_settings(
        cls, settings: Settings, metrics: MetricsClient | None = None
    ) -> "Collaborators":
        llm = LLMAdapter(settings, metrics=metrics)
        return cls(
            vision=VisionAdapter(settings, metrics=metrics),
            places=PlacesAdapter(settings, metrics=metrics),
            llm=llm,
            vibe=VibeAdapter(llm),
        )

    def deps_for(
        self,
        ctx: RunContext,
        settings: Settings,
        metrics: MetricsClient | None = None,
    ) -> PipelineDeps:
        return PipelineDeps(
            settings=settings,
            ctx=ctx,
            vision=self.vision,
            places=self.places,
            vibe=self.vibe,
            llm=self.llm,
            sessions=ChatSessionCache(),
            metrics=metrics,
        )

    def close(self) -> None:
        self.vision.close()
        self.places.close()
        self.llm.close()


def _report(state: PipelineState) -> ProcessingReport:
    if state.vision is not None:
        found = len(state.vision.all_locations)
    else:
        found = len(state.pois)
    if state.validation is not None:
        verified = len(state.validation.verified_pois)
    else:
        verified = len(state.pois)
    return ProcessingReport(
        total_time_ms=sum(state.stage_times_ms.values()),
        stage_times_ms=dict(state.stage_times_ms),
        locations_found=found,
        locations_verified=verified,
        clusters_created=len(state.route.clusters) if state.route else 0,
    )


def execute_stages(
    state: PipelineState,
    deps: PipelineDeps,
    pipeline: Any = FULL_PIPELINE,
    reporter: Reporter | None = None,
) -> PlanResult:
    """Run a compiled pipeline over ``state``.

    Raises:
        PipelineError: When a stage cannot continue (no usable locations,
            missing collaborator).
    """
    final = pipeline.invoke(
        state, config={"configurable": {"deps": deps, "reporter": reporter}}
    )
    if not isinstance(final, PipelineState):
        final = PipelineState.model_validate(final)

    if final.itinerary is None:
        raise PipelineError("Pipeline finished without an itinerary")
    return PlanResult(itinerary=final.itinerary, report=_report(final))


def plan_from_pois(
    pois: Sequence[PointOfInterest],
    preferences: TripPreferences,
    destination: str,
    settings: Settings,
    today: date | None = None,
    run_id: str = "demo",
) -> PlanResult:
    """Run the collaborator-free core (clustering through writing) on known POIs."""
    state = PipelineState(
        run_id=run_id,
        preferences=preferences,
        destination=destination,
        pois=list(pois),
        today=today,
    )
    deps = PipelineDeps(settings=settings, ctx=RunContext(run_id))
    return execute_stages(state, deps, CORE_PIPELINE)


def _execute_run(record: RunRecord, state: PipelineState, deps: PipelineDeps) -> None:
    """Execute a run in a background thread, recording outcome on ``record``.

    The terminal event is appended last, after the result or error is stored
    and the outcome counted.
    """
    try:
        result = execute_stages(state, deps, FULL_PIPELINE, reporter=record.append)
    except PipelineError as e:
        logger.warning("run_failed", extra={"run_id": record.run_id, "error": str(e)})
        record.fail(str(e))
        terminal = ProcessingStatus(
            stage=ProcessingStage.error, progress=0, message=str(e)
        )
    except Exception as e:
        logger.exception("run_crashed", extra={"run_id": record.run_id})
        message = f"Failed to process screenshots: {e}"
        record.fail(message)
        terminal = ProcessingStatus(
            stage=ProcessingStage.error, progress=0, message=message
        )
    else:
        record.complete(result)
        terminal = ProcessingStatus(
            stage=ProcessingStage.complete, progress=100, message=COMPLETE_MESSAGE
        )
    finally:
        deps.sessions.clear()

    if deps.metrics is not None:
        outcome = "success" if record.error is None else "error"
        deps.metrics.inc_run_outcome(outcome)
    record.append(terminal)


def start_run(
    store: RunStore,
    collaborators: Collaborators,
    screenshots: Sequence[Screenshot],
    preferences: TripPreferences,
    settings: Settings,
    *,
    destination: str | None = None,
    metrics: MetricsClient | None = None,
) -> RunRecord:
    """Register a run and start the pipeline in a background thread.

    Returns:
        The run record; poll it (or the store) for progress and the result.
    """
    record = store.create()
    deps = collaborators.deps_for(record.ctx, settings, metrics)
    state = PipelineState(
        run_id=record.run_id,
        preferences=preferences,
        destination=destination,
        screenshots=list(screenshots),
    )
    logger.info(
        "run_started",
        extra={"run_id": record.run_id, "screenshots": len(state.screenshots)},
    )
    thread = threading.Thread(
        target=_execute_run, args=(record, state, deps), daemon=True
    )
    thread.start()
    return record
