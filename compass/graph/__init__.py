"""Planning pipeline: state, stage nodes, runner and run store."""

from compass.graph.nodes import PipelineDeps
from compass.graph.runner import (
    CORE_PIPELINE,
    CORE_STAGES,
    FULL_PIPELINE,
    FULL_STAGES,
    Collaborators,
    Stage,
    build_pipeline,
    execute_stages,
    plan_from_pois,
    start_run,
)
from compass.graph.state import PipelineState, Screenshot
from compass.graph.store import RunRecord, RunStore, get_run_store

__all__ = [
    "CORE_PIPELINE",
    "CORE_STAGES",
    "FULL_PIPELINE",
    "FULL_STAGES",
    "Collaborators",
    "PipelineDeps",
    "PipelineState",
    "RunRecord",
    "RunStore",
    "Screenshot",
    "Stage",
    "build_pipeline",
    "execute_stages",
    "get_run_store",
    "plan_from_pois",
    "start_run",
]
